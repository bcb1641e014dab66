import logging
from typing import Iterable, List

from ..errors import TooManyStatesError, UnsupportedAlphabetError
from .dfa import BINARY_ALPHABET, TRAP_STATE, SparseDFA
from .nfa import NFA

logger = logging.getLogger(__name__)

# A DFA state *is* the bitmask of the NFA states it stands for, held in a
# 128-bit id: subset construction refuses NFAs with more states than that.
MAX_NFA_STATES = 128


def encode_subset(states: Iterable[int]) -> int:
    """Bitmask with bit `i` set for every NFA state `i` of *states*."""
    result = 0
    for i in states:
        result |= 1 << i
    return result


def decode_subset(subset_id: int) -> List[int]:
    """
    Split a subset id into the ids of its singleton subsets, e.g.
    0b11010 -> [0b00010, 0b01000, 0b10000].
    """
    singletons = []
    bit = 0
    while subset_id:
        if subset_id & 1:
            singletons.append(1 << bit)
        bit += 1
        subset_id >>= 1
    return singletons


def build_dfa(nfa: NFA) -> SparseDFA:
    """
    Determinise an epsilon-free NFA over '01' with the subset construction.

    The states of the result are identified by the bitmask of the NFA states
    they contain, so the union of two subsets is a bitwise OR and no
    interning table is needed. The empty subset, id 0, is the trap state.
    """
    count = nfa.state_count
    if count > MAX_NFA_STATES:
        raise TooManyStatesError(count, MAX_NFA_STATES)
    if not nfa.alphabet <= set(BINARY_ALPHABET):
        raise UnsupportedAlphabetError(nfa.alphabet)
    if not nfa.is_epsilon_free:
        raise ValueError("subset construction needs an epsilon-free NFA, call eliminate_epsilon first")
    if nfa.start_state is None:
        raise ValueError("the NFA has no start state")

    dfa = SparseDFA()
    dfa.set_start_state(1 << nfa.start_state)

    # DFA states holding a single NFA state come straight from the NFA.
    singletons = {1 << i for i in range(count)}
    stack: List[int] = []
    for i in range(count):
        state = dfa.add_empty_state(1 << i)
        for symbol, targets in nfa.deltas(i):
            to = encode_subset(targets)
            state.add_transition(symbol, to)
            if to not in singletons:
                stack.append(to)

    while stack:
        subset_id = stack.pop()
        if subset_id in dfa.states:
            continue
        # the successor of a union is the union of the successors
        on_zero = on_one = TRAP_STATE
        for singleton in decode_subset(subset_id):
            member = dfa.states[singleton]
            on_zero |= member.on_zero
            on_one |= member.on_one

        state = dfa.add_empty_state(subset_id)
        state.on_zero = on_zero
        state.on_one = on_one
        for nxt in (on_zero, on_one):
            if nxt not in dfa.states:
                stack.append(nxt)

    # the trap stays even when unreachable: it is index 0 of the dense form
    for state_id in dfa.search_unreachable_states() - {TRAP_STATE}:
        del dfa.states[state_id]

    accept_mask = encode_subset(nfa.accept_states)
    for state_id in dfa.states:
        if state_id & accept_mask:
            dfa.set_accept_state(state_id)

    logger.debug(
        "subset construction: %d NFA states -> %d DFA states (%d accepting)",
        count, dfa.state_count, len(dfa.accept_states),
    )
    return dfa
