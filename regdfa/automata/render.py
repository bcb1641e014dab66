from typing import TYPE_CHECKING, List

import graphviz

from .dfa import TRAP_STATE
from .nfa import EPSILON_LABEL, EpsilonState, NonEpsilonState

if TYPE_CHECKING:
    from .dfa import CompletedDFA
    from .nfa import NFA


def _start_arrow(dot: graphviz.Digraph, start) -> None:
    dot.node("start", shape="none", label="")
    dot.edge("start", str(start))


def nfa_to_dot(nfa: "NFA") -> str:
    """Graphviz source of *nfa*, epsilon edges labelled with ε."""
    dot = graphviz.Digraph("NFA")
    dot.attr(rankdir="LR")

    accept = set(nfa.accept_states)
    for state in range(nfa.state_count):
        dot.node(str(state), shape="doublecircle" if state in accept else "circle")
    if nfa.start_state is not None:
        _start_arrow(dot, nfa.start_state)

    for src, state in enumerate(nfa.states):
        if isinstance(state, EpsilonState):
            for dst in state.targets:
                dot.edge(str(src), str(dst), label=EPSILON_LABEL)
        elif isinstance(state, NonEpsilonState):
            for symbol, dst in state.transitions:
                dot.edge(str(src), str(dst), label=chr(symbol))
    return dot.source


def dfa_to_dot(dfa: "CompletedDFA") -> str:
    """Graphviz source of *dfa*. The trap state and the edges into it are left out."""
    dot = graphviz.Digraph("DFA")
    dot.attr(rankdir="LR")

    accept = dfa.accept_states
    states = [s for s in dfa.state_ids() if s != TRAP_STATE]
    for state in states:
        dot.node(str(state), shape="doublecircle" if state in accept else "circle")
    _start_arrow(dot, dfa.start_state)

    for state in states:
        for symbol in dfa.alphabet:
            to = dfa.delta(state, symbol)
            if to != TRAP_STATE:
                dot.edge(str(state), str(to), label=chr(symbol))
    return dot.source


def dfa_to_table(dfa: "CompletedDFA") -> str:
    """
    Transition table, one row per non-trap state.

    `*` marks an accepting state, `#` the start state and `N` a transition
    to the trap.
    """
    alphabet = dfa.alphabet
    accept = dfa.accept_states
    start = dfa.start_state

    lines: List[str] = ["\t" + "\t".join(chr(symbol) for symbol in alphabet)]
    for state in dfa.state_ids():
        if state == TRAP_STATE:
            continue
        head = ("*" if state in accept else "") + ("#" if state == start else "") + f"q{state}"
        cells = []
        for symbol in alphabet:
            to = dfa.delta(state, symbol)
            cells.append("N" if to == TRAP_STATE else f"q{to}")
        lines.append(head + "\t" + "\t".join(cells))
    return "\n".join(lines) + "\n"


def dfa_to_grammar(dfa: "CompletedDFA") -> str:
    """
    Right-linear grammar generating the language of *dfa*.

    `q_i -> a` when `a` leads from `q_i` to an accepting state, and
    `q_i -> a q_j` whenever `q_j` still has a way out.
    """
    accept = dfa.accept_states
    start = dfa.start_state

    lines: List[str] = [f"S -> q{start}" + (f" | {EPSILON_LABEL}" if start in accept else "")]
    for state in dfa.state_ids():
        if state == TRAP_STATE:
            continue
        alternatives = []
        for symbol in dfa.alphabet:
            to = dfa.delta(state, symbol)
            c = chr(symbol)
            if to in accept:
                alternatives.append(c)
            if to == TRAP_STATE or dfa.is_no_way_out(to):
                continue
            alternatives.append(f"{c}q{to}")
        if alternatives:
            lines.append(f"q{state} -> " + " | ".join(alternatives))
    return "\n".join(lines) + "\n"
