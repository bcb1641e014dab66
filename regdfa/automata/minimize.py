import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .dfa import TRAP_STATE, DenseDFA

logger = logging.getLogger(__name__)

Pair = Tuple[int, int]


@dataclass
class PairRecord:
    distinguishable: bool = False
    # pairs that are distinguishable as soon as this one is
    dependents: List[Pair] = field(default_factory=list)


class PairTable:
    """One record per unordered pair of distinct states, stored as a lower triangle."""

    def __init__(self, number_of_states: int):
        self.number_of_states = number_of_states
        self.records = [PairRecord() for _ in range(number_of_states * (number_of_states - 1) // 2)]

    @staticmethod
    def _index(p: int, q: int) -> int:
        if p > q:
            p, q = q, p
        return q * (q - 1) // 2 + p

    def __getitem__(self, pair: Pair) -> PairRecord:
        return self.records[self._index(*pair)]

    def is_distinguishable(self, p: int, q: int) -> bool:
        return self[p, q].distinguishable

    def distinguish(self, p: int, q: int) -> None:
        """Mark (p, q) distinguishable, then every pair that depended on it."""
        queue = [(p, q)]
        while queue:
            record = self[queue.pop()]
            if record.distinguishable:
                continue
            record.distinguishable = True
            queue.extend(record.dependents)
            record.dependents = []

    def add_dependency(self, pair: Pair, dependent: Pair) -> None:
        self[pair].dependents.append(dependent)

    def indistinguishable_pairs(self) -> Iterator[Pair]:
        for p in range(self.number_of_states):
            for q in range(p + 1, self.number_of_states):
                if not self.is_distinguishable(p, q):
                    yield p, q


class IndistinGroups:
    """Disjoint groups of pairwise indistinguishable states, each with at least two members."""

    def __init__(self):
        self.groups: List[Set[int]] = []

    def insert(self, p: int, q: int) -> None:
        """Record that p and q are indistinguishable, merging the groups they already belong to."""
        merged = {p, q}
        kept = []
        for group in self.groups:
            if p in group or q in group:
                merged |= group
            else:
                kept.append(group)
        kept.append(merged)
        self.groups = kept

    def __iter__(self) -> Iterator[Set[int]]:
        return iter(sorted(self.groups, key=min))

    def num_of_groups(self) -> int:
        return len(self.groups)

    def num_of_indistin_states(self) -> int:
        return sum(len(group) for group in self.groups)

    def contains_at(self, state: int) -> Optional[int]:
        """Position (in iteration order) of the group holding *state*, or None."""
        for i, group in enumerate(self):
            if state in group:
                return i
        return None

    def remap(self, number_of_states: int) -> Dict[int, int]:
        """
        Map every old state to its index in the minimized DFA.

        States outside every group keep their relative order and come first,
        each group follows as a single state. A group holding the trap state
        takes index 0 instead, so index 0 stays the trap.
        """
        groups = list(self)
        member_of = {s: i for i, group in enumerate(groups) for s in group}
        trap_group = member_of.get(TRAP_STATE)

        id_map: Dict[int, int] = {}
        next_index = 1 if trap_group is not None else 0
        for s in range(number_of_states):
            if s not in member_of:
                id_map[s] = next_index
                next_index += 1
        for i, group in enumerate(groups):
            if i == trap_group:
                new = TRAP_STATE
            else:
                new = next_index
                next_index += 1
            for s in group:
                id_map[s] = new
        return id_map


def compute_indistin_state_groups(dfa: DenseDFA) -> IndistinGroups:
    """
    Table-filling algorithm.

    Pairs made of an accepting and a non-accepting state are distinguishable.
    Every other pair (p, q) is then scanned once: if some symbol leads to an
    already distinguishable pair, so is (p, q); otherwise (p, q) is recorded
    as a dependent of every successor pair, to be marked later if one of
    them turns out distinguishable.
    """
    n = dfa.state_count
    rows = dfa.transition_table()
    accept = dfa.accept_states
    table = PairTable(n)

    for q in range(n):
        for p in range(q):
            if (p in accept) != (q in accept):
                table.distinguish(p, q)

    for p in range(n):
        for q in range(p + 1, n):
            if table.is_distinguishable(p, q):
                continue
            for p_next, q_next in zip(rows[p], rows[q]):
                if p_next == q_next:
                    continue
                if table.is_distinguishable(p_next, q_next):
                    table.distinguish(p, q)
                    break
                table.add_dependency((p_next, q_next), (p, q))

    groups = IndistinGroups()
    for p, q in table.indistinguishable_pairs():
        groups.insert(p, q)
    return groups


def minimize(dfa: DenseDFA) -> Optional[DenseDFA]:
    """
    Merge the indistinguishable states of *dfa*.

    Returns None when *dfa* is already minimal. Otherwise the new DFA has one
    state per group of indistinguishable states; every member of a group has
    the same successors up to the merge, so the transitions of any member
    serve for the whole group.
    """
    groups = compute_indistin_state_groups(dfa)
    if groups.num_of_groups() == 0:
        return None

    n = dfa.state_count
    id_map = groups.remap(n)
    rows = dfa.transition_table()
    alphabet = dfa.alphabet

    minimized = DenseDFA(
        number_of_states=n - groups.num_of_indistin_states() + groups.num_of_groups(),
        alphabet=alphabet,
        start_state=id_map[dfa.start_state],
        accept_states={id_map[a] for a in dfa.accept_states},
    )

    for old in range(n):
        if groups.contains_at(old) is not None:
            continue
        for symbol, to in zip(alphabet, rows[old]):
            minimized.add_transition(id_map[old], symbol, id_map[to])

    for group in groups:
        representative = min(group)
        for symbol, to in zip(alphabet, rows[representative]):
            minimized.add_transition(id_map[representative], symbol, id_map[to])

    logger.debug(
        "minimization: %d states -> %d states (%d groups merged)",
        n, minimized.state_count, groups.num_of_groups(),
    )
    return minimized
