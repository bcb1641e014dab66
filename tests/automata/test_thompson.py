import itertools

import pytest

from regdfa.automata.nfa import EpsilonState, FailState, NonEpsilonState
from regdfa.automata.thompson import Builder, HoleKind, build_nfa
from regdfa.errors import MalformedTreeError, UnsupportedConstructError
from regdfa.syntax.ast import Alternation, Capture, Class, Concat, Empty, Literal, Look, Repetition


def binary_words(max_length):
    for length in range(max_length + 1):
        for tup in itertools.product("01", repeat=length):
            yield "".join(tup)


def test_reserved_start_and_accept_states():
    nfa = build_nfa(Literal(b"0"))
    # the accept state is a fail-kind sink, registered as the single accept state
    assert nfa.accept_states == [0]
    assert isinstance(nfa.states[0], FailState)
    assert isinstance(nfa.states[nfa.start_state], EpsilonState)


def test_literal_is_a_chain():
    nfa = build_nfa(Literal(b"011"))
    chain = [s for s in nfa.states if isinstance(s, NonEpsilonState)]
    assert len(chain) == 3
    assert all(len(s.transitions) == 1 for s in chain)
    assert nfa.is_accepting("011")
    assert not nfa.is_accepting("01")
    assert not nfa.is_accepting("0110")


def test_class_is_one_state():
    nfa = build_nfa(Class([(ord("0"), ord("1"))]))
    (state,) = [s for s in nfa.states if isinstance(s, NonEpsilonState)]
    assert sorted(sym for sym, _ in state.transitions) == [ord("0"), ord("1")]
    assert nfa.is_accepting("0")
    assert nfa.is_accepting("1")
    assert not nfa.is_accepting("")


def test_no_state_mixes_edge_kinds():
    ast = Concat([Repetition(Alternation([Literal(b"01"), Empty()])), Capture(Class([(48, 49)]))])
    nfa = build_nfa(ast)
    for state in nfa.states:
        assert isinstance(state, (EpsilonState, NonEpsilonState, FailState))


@pytest.mark.parametrize(
    "ast, accepted",
    [
        (Empty(), lambda w: w == ""),
        (Concat([]), lambda w: w == ""),
        (Alternation([Literal(b"00"), Literal(b"1")]), lambda w: w in ("00", "1")),
        (Repetition(Literal(b"0")), lambda w: set(w) <= {"0"}),
        (Repetition(Literal(b"01")), lambda w: w == "01" * (len(w) // 2)),
        (Concat([Repetition(Literal(b"0")), Literal(b"1")]), lambda w: w.endswith("1") and set(w[:-1]) <= {"0"}),
        (Concat([Capture(Literal(b"1")), Capture(Empty()), Literal(b"0")]), lambda w: w == "10"),
        (Repetition(Repetition(Literal(b"1"))), lambda w: set(w) <= {"1"}),
        (Concat([Concat([Literal(b"0"), Literal(b"1")]), Literal(b"1")]), lambda w: w == "011"),
    ],
)
def test_language_of_each_node_kind(ast, accepted):
    nfa = build_nfa(ast)
    for word in binary_words(6):
        assert nfa.is_accepting(word) == accepted(word), word


def test_lookaround_is_rejected():
    with pytest.raises(UnsupportedConstructError):
        build_nfa(Concat([Look("at_beginning"), Literal(b"0")]))


@pytest.mark.parametrize(
    "rep",
    [
        Repetition(Literal(b"0"), min=1),
        Repetition(Literal(b"0"), min=0, max=1),
        Repetition(Literal(b"0"), greedy=False),
    ],
)
def test_only_greedy_star_is_supported(rep):
    with pytest.raises(UnsupportedConstructError):
        build_nfa(rep)


def test_unknown_node_is_malformed():
    with pytest.raises(MalformedTreeError):
        build_nfa(Concat([Literal(b"0"), "1"]))


def test_hole_stack_underflow_is_malformed():
    builder = Builder()
    with pytest.raises(MalformedTreeError):
        builder.visit_pre(Literal(b"0"))


def test_left_over_holes_are_malformed():
    builder = Builder()
    builder.build(Literal(b"0"))
    builder.stack.append((HoleKind.ALTERNATION, 1, 0))
    with pytest.raises(MalformedTreeError):
        builder.finish()


def test_deep_tree_does_not_recurse():
    depth = 3000
    ast = Literal(b"1")
    for _ in range(depth):
        ast = Capture(ast)
    nfa = build_nfa(ast)
    assert nfa.is_accepting("1")
    assert not nfa.is_accepting("11")


def test_non_capturing_capture():
    nfa = build_nfa(Repetition(Capture(Literal(b"01"), index=None)))
    for word in binary_words(6):
        assert nfa.is_accepting(word) == (word == "01" * (len(word) // 2)), word
