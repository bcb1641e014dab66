from .errors import AutomatonError
from .errors import UnsupportedConstructError
from .errors import MalformedTreeError
from .errors import TooManyStatesError
from .errors import UnsupportedAlphabetError
from .errors import UnknownSymbolError
from .errors import UnknownStateError

from .syntax.ast import Alternation, Capture, Class, Concat, Empty, Literal, Look, Node, Repetition
from .syntax.sre import parse

from .automata.nfa import NFA
from .automata.thompson import build_nfa
from .automata.epsilon import eliminate_epsilon
from .automata.subset import build_dfa, MAX_NFA_STATES
from .automata.dfa import CompletedDFA, SparseDFA, DenseDFA, to_dense
from .automata.minimize import minimize

from .pipeline import ast_to_dfa, regex_to_dfa
