import logging
from typing import Union

from .automata.dfa import DenseDFA, to_dense
from .automata.epsilon import eliminate_epsilon
from .automata.minimize import minimize as minimize_dfa
from .automata.subset import build_dfa
from .automata.thompson import build_nfa
from .syntax.ast import Node
from .syntax.sre import parse

logger = logging.getLogger(__name__)


def ast_to_dfa(ast: Node, minimize: bool = True) -> DenseDFA:
    """Run the whole construction: AST -> ε-NFA -> NFA -> sparse DFA -> dense DFA -> minimal DFA."""
    nfa = eliminate_epsilon(build_nfa(ast))
    dense = to_dense(build_dfa(nfa))
    if not minimize:
        return dense

    minimized = minimize_dfa(dense)
    if minimized is None:
        logger.debug("DFA with %d states is already minimal", dense.state_count)
        return dense
    return minimized


def regex_to_dfa(pattern: Union[str, Node], minimize: bool = True) -> DenseDFA:
    """Convert a regular expression over '01' into its minimal DFA."""
    ast = parse(pattern) if isinstance(pattern, str) else pattern
    return ast_to_dfa(ast, minimize=minimize)
