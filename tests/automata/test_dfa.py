import torch
import pytest

from regdfa.automata.dfa import TRAP_STATE, DenseDFA, SparseDFA, to_dense
from regdfa.automata.epsilon import eliminate_epsilon
from regdfa.automata.nfa import NFA
from regdfa.automata.subset import build_dfa
from regdfa.errors import UnknownStateError, UnknownSymbolError

ZERO, ONE = ord("0"), ord("1")


def _sparse(pattern):
    return build_dfa(eliminate_epsilon(NFA.from_regex(pattern)))


def test_sparse_dfa_basics():
    dfa = SparseDFA()
    assert dfa.states.keys() == {TRAP_STATE}
    state = dfa.add_empty_state(0b100)
    state.add_transition(ZERO, 0b100)
    dfa.add_transition(0b100, ONE, 0b1)
    dfa.get_state(0b1)
    dfa.set_start_state(0b100)
    dfa.set_accept_state(0b1)
    assert dfa.state_ids() == [0, 0b1, 0b100]
    assert dfa.delta(0b100, ZERO) == 0b100
    assert dfa.is_accepting("0001")
    assert not dfa.is_accepting("0010")

    with pytest.raises(UnknownSymbolError):
        dfa.delta(0b100, ord("2"))
    with pytest.raises(UnknownStateError):
        dfa.delta(0b10, ZERO)


def test_unreachable_search_does_not_register_states():
    dfa = SparseDFA()
    dfa.add_empty_state(0b1).add_transition(ZERO, 0b10)
    dfa.set_start_state(0b1)
    with pytest.raises(UnknownStateError):
        dfa.search_unreachable_states()
    assert dfa.states.keys() == {TRAP_STATE, 0b1}

    dfa.add_empty_state(0b10)
    dfa.add_empty_state(0b100)
    assert dfa.search_unreachable_states() == {0b100}
    assert dfa.states.keys() == {TRAP_STATE, 0b1, 0b10, 0b100}


def test_dense_stride_is_power_of_two():
    assert DenseDFA(2, [ZERO, ONE], 1, []).stride == 2
    assert DenseDFA(2, b"abc", 1, []).stride == 4
    assert DenseDFA(2, b"a", 1, []).stride == 1


def test_dense_table_and_lookups():
    dfa = DenseDFA(3, b"abc", start_state=1, accept_states=[2])
    dfa.add_transition(1, ord("a"), 1)
    dfa.add_transition(1, ord("c"), 2)
    dfa.add_transition(2, ord("c"), 2)
    assert dfa.delta(1, ord("a")) == 1
    assert dfa.delta(1, ord("b")) == TRAP_STATE
    assert dfa.transition_table() == [[0, 0, 0], [1, 0, 2], [0, 0, 2]]
    assert dfa.is_accepting("aacc")
    assert not dfa.is_accepting("ab")
    assert not dfa.is_accepting("ad")
    assert dfa.is_no_way_out(0)
    assert not dfa.is_no_way_out(2)


def test_dense_lookup_failures():
    dfa = DenseDFA(2, [ZERO, ONE], 1, [1])
    with pytest.raises(UnknownSymbolError):
        dfa.delta(1, ord("2"))
    with pytest.raises(UnknownStateError):
        dfa.delta(2, ZERO)
    with pytest.raises(UnknownStateError):
        dfa.delta(-1, ZERO)
    # the specific errors are still the usual built-in ones
    with pytest.raises(KeyError):
        dfa.alphabet_index(ord("a"))
    with pytest.raises(IndexError):
        dfa.add_transition(5, ZERO, 1)


def test_predecessors_follow_every_write():
    dfa = DenseDFA(3, [ZERO, ONE], 1, [2])
    dfa.add_transition(1, ZERO, 2)
    dfa.add_transition(2, ZERO, 2)
    dfa.add_transition(1, ONE, 1)
    assert dfa.predecessors(2, ZERO) == {1, 2}
    assert dfa.predecessors(1, ONE) == {1}
    assert dfa.predecessors(2, ONE) == set()


def test_to_dense_renumbers_in_id_order():
    sparse = _sparse("0*1")
    dense = to_dense(sparse)
    ids = sparse.state_ids()
    assert dense.state_count == sparse.state_count
    assert ids[0] == TRAP_STATE
    assert dense.start_state == ids.index(sparse.start_state)
    assert dense.accept_states == {ids.index(a) for a in sparse.accept_states}
    for new, old in enumerate(ids):
        for symbol in (ZERO, ONE):
            assert dense.delta(new, symbol) == ids.index(sparse.delta(old, symbol))


def test_batched_run():
    dense = to_dense(_sparse("(0|1)*1"))
    words = ["0001", "0010", "1111", "1000"]
    accepted = dense.accepts_batch(words)
    assert accepted.dtype == torch.bool
    assert accepted.tolist() == [True, False, True, False]

    final = dense.run(words)
    assert final.tolist() == [dense.delta(dense.delta(dense.delta(dense.delta(dense.start_state, ord(w[0])), ord(w[1])), ord(w[2])), ord(w[3])) for w in words]

    states = torch.tensor([dense.start_state, TRAP_STATE])
    assert dense.advance(states, ONE).tolist() == [dense.delta(dense.start_state, ONE), TRAP_STATE]


def test_batched_run_edge_cases():
    dense = to_dense(_sparse("0*"))
    assert dense.accepts_batch(["", ""]).tolist() == [True, True]
    assert dense.run([]).numel() == 0
    with pytest.raises(ValueError):
        dense.run(["0", "00"])
