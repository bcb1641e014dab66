import pytest

from regdfa.automata.nfa import NFA, EpsilonState, FailState, FinalState, NonEpsilonState


def _chain():
    # 0 --a--> 1 --ε--> 2 --b--> 3 (accepting)
    nfa = NFA()
    s0 = nfa.add_non_epsilon_state()
    s1 = nfa.add_epsilon_state()
    s2 = nfa.add_non_epsilon_state()
    s3 = nfa.add_final_state()
    nfa.add_transition(s0, ord("a"), s1)
    nfa.add_epsilon_transition(s1, s2)
    nfa.add_transition(s2, ord("b"), s3)
    nfa.set_start_state(s0)
    nfa.add_accept_state(s3)
    return nfa


def test_state_kinds_and_ids():
    nfa = _chain()
    assert nfa.state_count == 4
    assert isinstance(nfa.states[0], NonEpsilonState)
    assert isinstance(nfa.states[1], EpsilonState)
    assert isinstance(nfa.states[3], FinalState)
    assert nfa.add_fail_state() == 4
    assert isinstance(nfa.states[4], FailState)
    assert nfa.alphabet == {ord("a"), ord("b")}
    assert not nfa.is_epsilon_free


def test_kinds_are_never_mixed():
    nfa = _chain()
    with pytest.raises(ValueError):
        nfa.add_epsilon_transition(0, 2)    # non-epsilon state
    with pytest.raises(ValueError):
        nfa.add_transition(1, ord("a"), 2)  # epsilon state
    with pytest.raises(ValueError):
        nfa.add_transition(3, ord("a"), 2)  # final state


def test_deltas_grouped_by_symbol():
    nfa = NFA()
    s = nfa.add_non_epsilon_state()
    nfa.add_transition(s, ord("1"), 2)
    nfa.add_transition(s, ord("0"), 3)
    nfa.add_transition(s, ord("1"), 4)
    assert nfa.deltas(s) == [(ord("0"), [3]), (ord("1"), [2, 4])]


def test_epsilon_closure():
    nfa = NFA()
    a, b, c = nfa.add_epsilon_state(), nfa.add_epsilon_state(), nfa.add_fail_state()
    nfa.add_epsilon_transition(a, b)
    nfa.add_epsilon_transition(b, a)    # cycles are fine
    nfa.add_epsilon_transition(b, c)
    assert nfa.epsilon_closure([a]) == {a, b, c}
    assert nfa.epsilon_closure([c]) == {c}


def test_simulation():
    nfa = _chain()
    assert nfa.is_accepting("ab")
    assert nfa.is_accepting(b"ab")
    assert not nfa.is_accepting("a")
    assert not nfa.is_accepting("")
    assert not nfa.is_accepting("abb")


def test_from_regex():
    nfa = NFA.from_regex("0*1")
    assert nfa.is_accepting("1")
    assert nfa.is_accepting("0001")
    assert not nfa.is_accepting("10")
