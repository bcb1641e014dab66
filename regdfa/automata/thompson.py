import collections
import enum
import logging
from typing import List

from ..errors import MalformedTreeError, UnsupportedConstructError
from ..syntax.ast import Alternation, Capture, Class, Concat, Empty, Literal, Look, Node, Repetition
from .nfa import NFA

logger = logging.getLogger(__name__)


class HoleKind(enum.Enum):
    ALTERNATION = "alternation"
    CONCATENATION = "concatenation"
    REPETITION = "repetition"


# A "hole" marks where the sub-automaton of the next visited node is spliced in:
# it is entered from `come_from` and must eventually lead to `go_to`.
Hole = collections.namedtuple("Hole", ["kind", "come_from", "go_to"])


class Builder:
    """
    Top-down Thompson construction.

    Instead of building every sub-automaton bottom-up and gluing them
    together, the builder walks the tree from the root and keeps a stack of
    holes. Visiting a node pops one hole, builds the node's own entry/exit
    states into it and pushes one hole per child. Neither the walk nor the
    construction recurses, so very deep trees cannot exhaust the call stack.
    """

    def __init__(self):
        self.nfa = NFA()
        self.stack: List[Hole] = []

    def build(self, root: Node) -> NFA:
        end = self.nfa.add_fail_state()
        self.nfa.add_accept_state(end)

        start = self.nfa.add_epsilon_state()
        self.nfa.set_start_state(start)

        self.stack.append(Hole(HoleKind.ALTERNATION, start, end))

        walk = [(root, False)]
        while walk:
            node, leaving = walk.pop()
            if leaving:
                self.visit_post(node)
                continue
            self.visit_pre(node)
            walk.append((node, True))
            # reversed so that the first child is visited first
            for child in reversed(node.children()):
                walk.append((child, False))

        return self.finish()

    def visit_pre(self, node: Node) -> None:
        # 1) exit state of this node's sub-automaton
        end = self.nfa.add_epsilon_state()

        # 2) where the sub-automaton comes from and where it goes to
        if not self.stack:
            raise MalformedTreeError("hole stack is empty")
        hole = self.stack.pop()
        if hole.kind is HoleKind.CONCATENATION:
            # the next item of the sequence continues from this node's exit
            self.stack.append(Hole(HoleKind.CONCATENATION, end, hole.go_to))

        # 3) entry state, built according to the node kind
        start = self._enter(node, end)

        # 4) fill the hole
        self.nfa.add_epsilon_transition(hole.come_from, start)
        if hole.kind is HoleKind.REPETITION:
            self.nfa.add_epsilon_transition(end, hole.go_to)
            self.nfa.add_epsilon_transition(end, start)
        elif hole.kind is HoleKind.ALTERNATION:
            self.nfa.add_epsilon_transition(end, hole.go_to)

    def visit_post(self, node: Node) -> None:
        if isinstance(node, Concat):
            # close the sequence: the exit of its last item leads to its own exit
            hole = self.stack.pop() if self.stack else None
            if hole is None or hole.kind is not HoleKind.CONCATENATION:
                raise MalformedTreeError(f"expected a concatenation hole after {node!r}, found {hole!r}")
            self.nfa.add_epsilon_transition(hole.come_from, hole.go_to)

    def finish(self) -> NFA:
        if self.stack:
            raise MalformedTreeError(f"{len(self.stack)} holes left unfilled: {self.stack}")
        logger.debug("Thompson construction built %d states", self.nfa.state_count)
        return self.nfa

    def _enter(self, node: Node, end: int) -> int:
        nfa = self.nfa

        if isinstance(node, Concat):
            start = nfa.add_epsilon_state()
            self.stack.append(Hole(HoleKind.CONCATENATION, start, end))
            return start

        elif isinstance(node, Alternation):
            # every branch shares the same entry and exit
            start = nfa.add_epsilon_state()
            for _ in node.branches:
                self.stack.append(Hole(HoleKind.ALTERNATION, start, end))
            return start

        elif isinstance(node, Literal):
            start = nfa.add_non_epsilon_state()
            current = start
            for c in node.data[:-1]:
                nxt = nfa.add_non_epsilon_state()
                nfa.add_transition(current, c, nxt)
                current = nxt
            nfa.add_transition(current, node.data[-1], end)
            return start

        elif isinstance(node, Class):
            start = nfa.add_non_epsilon_state()
            for c in node.symbols():
                nfa.add_transition(start, c, end)
            return start

        elif isinstance(node, Repetition):
            # only the greedy Kleene star is constructible
            if not node.is_kleene_star:
                raise UnsupportedConstructError(
                    f"unsupported repetition {{{node.min},{'' if node.max is None else node.max}}}"
                    f"{'' if node.greedy else '?'}, only greedy '*' is supported"
                )
            start = nfa.add_epsilon_state()
            nfa.add_epsilon_transition(start, end)     # zero occurrences
            self.stack.append(Hole(HoleKind.REPETITION, start, end))
            return start

        elif isinstance(node, Capture):
            start = nfa.add_epsilon_state()
            self.stack.append(Hole(HoleKind.ALTERNATION, start, end))
            return start

        elif isinstance(node, Empty):
            start = nfa.add_epsilon_state()
            nfa.add_epsilon_transition(start, end)
            return start

        elif isinstance(node, Look):
            raise UnsupportedConstructError(f"unexpected {node.kind!r} assertion, lookaround is not supported")

        raise MalformedTreeError(f"unknown syntax node {node!r}")


def build_nfa(ast: Node) -> NFA:
    """Build an epsilon-NFA recognising the language of *ast*."""
    return Builder().build(ast)
