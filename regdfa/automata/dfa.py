from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Sequence, Set, Tuple, Union

import torch

from ..errors import UnknownStateError, UnknownSymbolError

BINARY_ALPHABET = (ord("0"), ord("1"))

# Sparse id of the empty subset and dense index of the trap state. A
# transition to it means "no transition".
TRAP_STATE = 0

Word = Union[str, bytes]


def _symbols(word: Word) -> bytes:
    return word.encode() if isinstance(word, str) else bytes(word)


class CompletedDFA(ABC):
    """Read-only view of a finished DFA: transition function, start, accept states."""

    @property
    @abstractmethod
    def alphabet(self) -> List[int]:
        pass

    @property
    @abstractmethod
    def start_state(self) -> int:
        pass

    @property
    @abstractmethod
    def accept_states(self) -> Set[int]:
        pass

    @property
    @abstractmethod
    def state_count(self) -> int:
        pass

    @abstractmethod
    def state_ids(self) -> List[int]:
        """Every state id, in increasing order (the trap first)."""
        pass

    @abstractmethod
    def delta(self, state: int, symbol: int) -> int:
        """δ(state, symbol): the state reached from *state* on *symbol*."""
        pass

    def is_accepting(self, word: Word) -> bool:
        """True iff the machine accepts the string *word*."""
        alphabet = set(self.alphabet)
        current = self.start_state
        for symbol in _symbols(word):
            if symbol not in alphabet:
                return False
            current = self.delta(current, symbol)
        return current in self.accept_states

    def is_no_way_out(self, state: int) -> bool:
        return all(self.delta(state, symbol) == TRAP_STATE for symbol in self.alphabet)

    # --------------------------------------------------------------
    # Derived output formats
    # --------------------------------------------------------------
    def to_dot(self) -> str:
        from .render import dfa_to_dot
        return dfa_to_dot(self)

    def to_table(self) -> str:
        from .render import dfa_to_table
        return dfa_to_table(self)

    def to_grammar(self) -> str:
        from .render import dfa_to_grammar
        return dfa_to_grammar(self)

    def __str__(self) -> str:
        return self.to_table()


# --------------------------------------------------------------
# Sparse DFA
# --------------------------------------------------------------
@dataclass
class SparseState:
    """A state of the binary sparse DFA: one successor per symbol of '01'."""
    on_zero: int = TRAP_STATE
    on_one: int = TRAP_STATE

    def add_transition(self, symbol: int, to: int) -> None:
        if symbol == BINARY_ALPHABET[0]:
            self.on_zero = to
        elif symbol == BINARY_ALPHABET[1]:
            self.on_one = to
        else:
            raise UnknownSymbolError(symbol)

    def successor(self, symbol: int) -> int:
        if symbol == BINARY_ALPHABET[0]:
            return self.on_zero
        if symbol == BINARY_ALPHABET[1]:
            return self.on_one
        raise UnknownSymbolError(symbol)


class SparseDFA(CompletedDFA):
    """
    DFA over '01' storing every state as a record in a dict keyed by state id.

    Cheap to grow one state at a time, which is what subset construction
    needs. State ids are arbitrary non-negative integers (bitmasks during
    subset construction). The trap state `TRAP_STATE` is always present.
    """

    def __init__(self):
        self.states: Dict[int, SparseState] = {TRAP_STATE: SparseState()}
        self._start_state: Optional[int] = None
        self._accept_states: Set[int] = set()

    def add_empty_state(self, state_id: int) -> SparseState:
        """Insert a fresh state, replacing any state already registered under *state_id*."""
        state = SparseState()
        self.states[state_id] = state
        return state

    def get_state(self, state_id: int) -> SparseState:
        """The state registered under *state_id*, inserted empty if missing."""
        return self.states.setdefault(state_id, SparseState())

    def add_transition(self, src: int, symbol: int, dst: int) -> None:
        if src not in self.states:
            raise UnknownStateError(src)
        self.states[src].add_transition(symbol, dst)

    def set_start_state(self, state_id: int) -> None:
        self._start_state = state_id

    def set_accept_state(self, state_id: int) -> None:
        self._accept_states.add(state_id)

    def states_with_id_iter(self) -> Iterator[Tuple[int, SparseState]]:
        """Every (id, state) pair in increasing id order."""
        return iter(sorted(self.states.items(), key=lambda entry: entry[0]))

    def search_unreachable_states(self) -> Set[int]:
        reachable: Set[int] = set()
        stack = [] if self._start_state is None else [self._start_state]
        while stack:
            state_id = stack.pop()
            if state_id in reachable:
                continue
            reachable.add(state_id)
            if state_id not in self.states:
                raise UnknownStateError(state_id)
            state = self.states[state_id]
            for nxt in (state.on_zero, state.on_one):
                if nxt not in reachable:
                    stack.append(nxt)
        return set(self.states) - reachable

    @property
    def alphabet(self) -> List[int]:
        return list(BINARY_ALPHABET)

    @property
    def start_state(self) -> int:
        if self._start_state is None:
            raise RuntimeError("the DFA has no start state")
        return self._start_state

    @property
    def accept_states(self) -> Set[int]:
        return self._accept_states

    @property
    def state_count(self) -> int:
        return len(self.states)

    def state_ids(self) -> List[int]:
        return sorted(self.states)

    def delta(self, state: int, symbol: int) -> int:
        if state not in self.states:
            raise UnknownStateError(state)
        return self.states[state].successor(symbol)


# --------------------------------------------------------------
# Dense DFA
# --------------------------------------------------------------
class DenseDFA(CompletedDFA):
    """
    DFA whose transition function is one flat table.

    The successor of state `q` on the symbol at alphabet position `i` is stored
    at `(q << stride_bits) + i`, the stride being the alphabet size rounded up
    to a power of two. A second table of the same shape holds, for every
    (target, symbol) cell, the set of states leading there.

    Index 0 is the trap state: a cell holding 0 means "no transition".
    """

    def __init__(self, number_of_states: int, alphabet: Sequence[int], start_state: int, accept_states: Iterable[int]):
        self._alphabet: List[int] = list(alphabet)
        self._alphabet_index: Dict[int, int] = {symbol: i for i, symbol in enumerate(self._alphabet)}
        self._stride_bits = max(len(self._alphabet) - 1, 0).bit_length()
        self._number_of_states = number_of_states

        self._successors = torch.zeros(number_of_states << self._stride_bits, dtype=torch.long)
        self._predecessors: List[Set[int]] = [set() for _ in range(number_of_states << self._stride_bits)]

        self._start_state = start_state
        self._accept_states: Set[int] = set(accept_states)

    @property
    def stride(self) -> int:
        return 1 << self._stride_bits

    def alphabet_index(self, symbol: int) -> int:
        if symbol not in self._alphabet_index:
            raise UnknownSymbolError(symbol)
        return self._alphabet_index[symbol]

    def _check_state(self, state: int) -> None:
        if not 0 <= state < self._number_of_states:
            raise UnknownStateError(state)

    def add_transition(self, src: int, symbol: int, dst: int) -> None:
        self._check_state(src)
        self._check_state(dst)
        i = self.alphabet_index(symbol)
        self._successors[(src << self._stride_bits) + i] = dst
        self._predecessors[(dst << self._stride_bits) + i].add(src)

    def delta(self, state: int, symbol: int) -> int:
        self._check_state(state)
        return int(self._successors[(state << self._stride_bits) + self.alphabet_index(symbol)])

    def predecessors(self, state: int, symbol: int) -> FrozenSet[int]:
        """States leading to *state* on *symbol*."""
        self._check_state(state)
        return frozenset(self._predecessors[(state << self._stride_bits) + self.alphabet_index(symbol)])

    def transition_table(self) -> List[List[int]]:
        """Successor rows: `table[q][i]` is δ(q, alphabet[i])."""
        rows = self._successors.view(self._number_of_states, self.stride)
        return rows[:, : len(self._alphabet)].tolist()

    def is_no_way_out(self, state: int) -> bool:
        self._check_state(state)
        row = self._successors[state << self._stride_bits: (state + 1) << self._stride_bits]
        return bool((row == TRAP_STATE).all())

    # --------------------------------------------------------------
    # Batched execution
    # --------------------------------------------------------------
    def advance(self, states: torch.LongTensor, symbol: int) -> torch.LongTensor:
        """One step of every state in the batch *states* on *symbol*."""
        return self._successors[states * self.stride + self.alphabet_index(symbol)]

    def run(self, words: Sequence[Word]) -> torch.LongTensor:
        """Final state reached by each word of a batch of equal-length words."""
        encoded = [_symbols(w) for w in words]
        if not encoded:
            return torch.empty(0, dtype=torch.long)
        length = len(encoded[0])
        if any(len(w) != length for w in encoded):
            raise ValueError("all words of a batch must have the same length")

        indices = torch.tensor(
            [[self.alphabet_index(c) for c in w] for w in encoded], dtype=torch.long
        ).view(len(encoded), length)                       # (B, L)
        states = torch.full((len(encoded),), self._start_state, dtype=torch.long)
        for t in range(length):
            states = self._successors[states * self.stride + indices[:, t]]
        return states

    def accepts_batch(self, words: Sequence[Word]) -> torch.BoolTensor:
        final = self.run(words)
        accept = torch.tensor(sorted(self._accept_states), dtype=torch.long)
        return torch.isin(final, accept)

    # --------------------------------------------------------------
    # CompletedDFA
    # --------------------------------------------------------------
    @property
    def alphabet(self) -> List[int]:
        return list(self._alphabet)

    @property
    def start_state(self) -> int:
        return self._start_state

    @property
    def accept_states(self) -> Set[int]:
        return self._accept_states

    @property
    def state_count(self) -> int:
        return self._number_of_states

    def state_ids(self) -> List[int]:
        return list(range(self._number_of_states))

    @classmethod
    def from_sparse(cls, sparse: SparseDFA) -> "DenseDFA":
        """
        Renumber the states of *sparse* in increasing id order (the trap, id 0,
        becomes index 0) and copy every transition through that numbering.
        """
        id_map = {old: new for new, old in enumerate(sparse.state_ids())}
        dense = cls(
            number_of_states=len(id_map),
            alphabet=sparse.alphabet,
            start_state=id_map[sparse.start_state],
            accept_states=(id_map[a] for a in sparse.accept_states),
        )
        for old, state in sparse.states_with_id_iter():
            for symbol in sparse.alphabet:
                dense.add_transition(id_map[old], symbol, id_map[state.successor(symbol)])
        return dense

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"DenseDFA(states={self._number_of_states}, "
            f"start={self._start_state}, "
            f"accept={sorted(self._accept_states)}, "
            f"alphabet={bytes(self._alphabet)!r})"
        )


def to_dense(sparse: SparseDFA) -> DenseDFA:
    return DenseDFA.from_sparse(sparse)
