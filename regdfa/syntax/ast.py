from dataclasses import dataclass, field
from typing import List, Optional, Tuple


# Node kinds of the regular-expression syntax tree consumed by the Thompson builder.
# Symbols are byte values (0..255); a character class is a list of inclusive byte ranges.


class Node:
    """Base class of every syntax-tree node."""

    def children(self) -> List["Node"]:
        return []


@dataclass
class Empty(Node):
    """Matches the empty string."""


@dataclass
class Literal(Node):
    data: bytes

    def __post_init__(self):
        if not self.data:
            raise ValueError("a Literal needs at least one byte, use Empty instead")


@dataclass
class Class(Node):
    ranges: List[Tuple[int, int]] = field(default_factory=list)

    def symbols(self):
        """Yield every byte of every range, in range order."""
        for lo, hi in self.ranges:
            yield from range(lo, hi + 1)


@dataclass
class Concat(Node):
    items: List[Node] = field(default_factory=list)

    def children(self) -> List[Node]:
        return list(self.items)


@dataclass
class Alternation(Node):
    branches: List[Node] = field(default_factory=list)

    def children(self) -> List[Node]:
        return list(self.branches)


@dataclass
class Repetition(Node):
    sub: Node
    min: int = 0
    max: Optional[int] = None     # None means unbounded
    greedy: bool = True

    def children(self) -> List[Node]:
        return [self.sub]

    @property
    def is_kleene_star(self) -> bool:
        return self.min == 0 and self.max is None and self.greedy


@dataclass
class Capture(Node):
    sub: Node
    index: Optional[int] = None   # None for a non-capturing group
    name: Optional[str] = None

    def children(self) -> List[Node]:
        return [self.sub]


@dataclass
class Look(Node):
    """Anchors and lookaround assertions (^, $, \\b, (?=...), ...)."""
    kind: str
    sub: Optional[Node] = None

    def children(self) -> List[Node]:
        return [] if self.sub is None else [self.sub]
