from dataclasses import dataclass, field
from itertools import groupby
from typing import Iterable, List, Optional, Set, Tuple, Union

EPSILON_LABEL = "ε"


# A state never mixes epsilon and non-epsilon edges: Thompson's construction
# never needs both on one state, and closure computation relies on it.

@dataclass
class EpsilonState:
    targets: List[int] = field(default_factory=list)


@dataclass
class NonEpsilonState:
    transitions: List[Tuple[int, int]] = field(default_factory=list)   # (symbol, target)


@dataclass
class FailState:
    """No way out, not accepting."""


@dataclass
class FinalState:
    """No way out, accepting."""


State = Union[EpsilonState, NonEpsilonState, FailState, FinalState]


class NFA:
    """
    Nondeterministic finite automaton over byte symbols.

    States live in a list and are identified by their index. The same class
    holds the epsilon-bearing automaton produced by the Thompson builder and
    the epsilon-free one produced by `eliminate_epsilon`.
    """

    def __init__(self):
        self.states: List[State] = []
        # alphabet is the set of symbols seen on non-epsilon transitions
        self.alphabet: Set[int] = set()
        self.start_state: Optional[int] = None
        self.accept_states: List[int] = []

    # --------------------------------------------------------------
    # Basic construction helpers
    # --------------------------------------------------------------
    def add_state(self, state: State) -> int:
        """Append *state* and return its id."""
        self.states.append(state)
        return len(self.states) - 1

    def add_epsilon_state(self) -> int:
        return self.add_state(EpsilonState())

    def add_non_epsilon_state(self) -> int:
        return self.add_state(NonEpsilonState())

    def add_fail_state(self) -> int:
        return self.add_state(FailState())

    def add_final_state(self) -> int:
        return self.add_state(FinalState())

    def add_transition(self, src: int, symbol: int, dst: int) -> None:
        """Add a transition `src --symbol--> dst`."""
        state = self.states[src]
        if not isinstance(state, NonEpsilonState):
            raise ValueError(f"add_transition: state {src} should be a non-epsilon state")
        state.transitions.append((symbol, dst))
        self.alphabet.add(symbol)

    def add_epsilon_transition(self, src: int, dst: int) -> None:
        state = self.states[src]
        if not isinstance(state, EpsilonState):
            raise ValueError(f"add_epsilon_transition: state {src} should be an epsilon state")
        state.targets.append(dst)

    def set_start_state(self, state: int) -> None:
        self.start_state = state

    def add_accept_state(self, state: int) -> None:
        self.accept_states.append(state)

    @property
    def state_count(self) -> int:
        return len(self.states)

    @property
    def is_epsilon_free(self) -> bool:
        return not any(isinstance(s, EpsilonState) for s in self.states)

    # --------------------------------------------------------------
    # Transitions
    # --------------------------------------------------------------
    def deltas(self, state: int) -> List[Tuple[int, List[int]]]:
        """Transitions of a non-epsilon state grouped by symbol, sorted by symbol."""
        s = self.states[state]
        if not isinstance(s, NonEpsilonState):
            return []
        ordered = sorted(s.transitions, key=lambda t: t[0])
        return [(symbol, [dst for _, dst in group]) for symbol, group in groupby(ordered, key=lambda t: t[0])]

    def epsilon_closure(self, states: Iterable[int]) -> Set[int]:
        """Return the epsilon-closure of *states*."""
        stack = list(states)
        closure = set(stack)
        while stack:
            s = stack.pop()
            state = self.states[s]
            if isinstance(state, EpsilonState):
                for nxt in state.targets:
                    if nxt not in closure:
                        closure.add(nxt)
                        stack.append(nxt)
        return closure

    # --------------------------------------------------------------
    # Execution
    # --------------------------------------------------------------
    def is_accepting(self, word: Union[str, bytes]) -> bool:
        """True iff the automaton accepts *word*."""
        if isinstance(word, str):
            word = word.encode()
        if self.start_state is None:
            return False
        current = self.epsilon_closure({self.start_state})
        for symbol in word:
            nxt: Set[int] = set()
            for s in current:
                state = self.states[s]
                if isinstance(state, NonEpsilonState):
                    nxt.update(dst for sym, dst in state.transitions if sym == symbol)
            current = self.epsilon_closure(nxt)
            if not current:
                return False
        return any(a in current for a in self.accept_states)

    # --------------------------------------------------------------
    # Debug helpers
    # --------------------------------------------------------------
    def to_dot(self) -> str:
        from .render import nfa_to_dot
        return nfa_to_dot(self)

    @classmethod
    def from_regex(cls, pattern: str) -> "NFA":
        """Parse *pattern* and build an epsilon-NFA with Thompson's construction."""
        from ..syntax.sre import parse
        from .thompson import build_nfa
        return build_nfa(parse(pattern))

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"NFA(start={self.start_state}, "
            f"accept={self.accept_states}, "
            f"alphabet={sorted(self.alphabet)}, "
            f"states={self.states})"
        )
