import logging
from typing import List, Optional, Set, Tuple

from .nfa import NFA, EpsilonState, FailState, FinalState, NonEpsilonState

logger = logging.getLogger(__name__)


def closure_and_delta(nfa: NFA, state: int) -> Tuple[Set[int], Set[Tuple[int, int]]]:
    """
    Epsilon-closure of *state*, together with every non-epsilon transition
    leaving a state of that closure.
    """
    closure: Set[int] = set()
    targets: Set[Tuple[int, int]] = set()
    stack = [state]
    while stack:
        s = stack.pop()
        if s in closure:
            continue
        closure.add(s)
        current = nfa.states[s]
        if isinstance(current, EpsilonState):
            stack.extend(t for t in current.targets if t not in closure)
        elif isinstance(current, NonEpsilonState):
            targets.update(current.transitions)
    return closure, targets


def closure_to_non_epsilon(nfa: NFA, state: int) -> Set[int]:
    """Epsilon-closure of *state*, keeping only the states that are not epsilon states."""
    return {s for s in nfa.epsilon_closure([state]) if not isinstance(nfa.states[s], EpsilonState)}


def delta_hat_transitions(nfa: NFA, state: int) -> List[Tuple[int, int]]:
    """
    The "delta hat" transition function: every (symbol, target) reachable from
    *state* by epsilon moves, exactly one symbol, then epsilon moves again,
    where targets are restricted to non-epsilon states.
    """
    _, transitions = closure_and_delta(nfa, state)
    result: Set[Tuple[int, int]] = set()
    for symbol, to in transitions:
        result.update((symbol, target) for target in closure_to_non_epsilon(nfa, to))
    return sorted(result)


def search_unreachable_states(nfa: NFA) -> Set[int]:
    """States that cannot be reached from the start state over non-epsilon edges."""
    reachable: Set[int] = set()
    stack = [nfa.start_state]
    while stack:
        s = stack.pop()
        if s in reachable:
            continue
        reachable.add(s)
        state = nfa.states[s]
        if isinstance(state, NonEpsilonState):
            stack.extend(to for _, to in state.transitions if to not in reachable)
    return set(range(nfa.state_count)) - reachable


def remap_states(nfa: NFA) -> NFA:
    """
    Renumber the states contiguously, dropping every Fail state except the start state.
    Only meaningful on an epsilon-free automaton.
    """
    id_map: List[Optional[int]] = []
    new_index = 0
    for old, state in enumerate(nfa.states):
        if isinstance(state, FailState) and old != nfa.start_state:
            id_map.append(None)
        else:
            id_map.append(new_index)
            new_index += 1

    remapped = NFA()
    for old, state in enumerate(nfa.states):
        if id_map[old] is None:
            continue
        if isinstance(state, NonEpsilonState):
            new = remapped.add_non_epsilon_state()
            for symbol, to in state.transitions:
                if id_map[to] is None:
                    raise RuntimeError(f"transition {old} --{chr(symbol)}--> {to} maps to a dropped fail state")
                remapped.add_transition(new, symbol, id_map[to])
        else:
            remapped.add_state(type(state)())

    remapped.set_start_state(id_map[nfa.start_state])
    for accept in nfa.accept_states:
        if id_map[accept] is not None:
            remapped.add_accept_state(id_map[accept])
    return remapped


def eliminate_epsilon(nfa: NFA) -> NFA:
    """
    Build an equivalent NFA without epsilon transitions.

    Every state of the result is a NonEpsilonState, a FailState or a
    FinalState. States that cannot be reached from the start state are
    discarded and the remaining ones are renumbered contiguously. A state
    accepts iff its epsilon-closure contains an accept state of *nfa*.
    """
    if nfa.start_state is None:
        raise ValueError("the NFA has no start state")

    accept = set(nfa.accept_states)
    result = NFA()
    hats: List[List[Tuple[int, int]]] = []

    # First pass: decide the kind of every state. Transitions are added in a
    # second pass, once it is known which targets are fail states.
    for s in range(nfa.state_count):
        closure, _ = closure_and_delta(nfa, s)
        trans = delta_hat_transitions(nfa, s)
        hats.append(trans)
        accepting = not closure.isdisjoint(accept)
        if trans:
            result.add_non_epsilon_state()
        elif accepting:
            result.add_final_state()
        else:
            result.add_fail_state()
        if accepting:
            result.add_accept_state(s)

    for s, trans in enumerate(hats):
        if not isinstance(result.states[s], NonEpsilonState):
            continue
        for symbol, to in trans:
            if isinstance(result.states[to], FailState):
                continue
            result.add_transition(s, symbol, to)

    result.set_start_state(nfa.start_state)

    for s in search_unreachable_states(result):
        result.states[s] = FailState()

    result = remap_states(result)
    logger.debug(
        "epsilon elimination: %d states -> %d states, alphabet %s",
        nfa.state_count, result.state_count, sorted(result.alphabet),
    )
    return result
