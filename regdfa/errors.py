class AutomatonError(Exception):
    """Base class of every failure raised while building or querying an automaton."""


class UnsupportedConstructError(AutomatonError, ValueError):
    """The syntax tree holds a node this construction cannot express (lookaround, bounded repeats, ...)."""


class MalformedTreeError(AutomatonError, ValueError):
    """The syntax tree does not have the shape the builder expects."""


class TooManyStatesError(AutomatonError, ValueError):
    def __init__(self, count: int, limit: int):
        super().__init__(f"too many states: {count} NFA states, at most {limit} can be encoded")
        self.count = count
        self.limit = limit


class UnsupportedAlphabetError(AutomatonError, ValueError):
    def __init__(self, alphabet):
        self.alphabet = set(alphabet)
        shown = "".join(sorted(chr(c) for c in self.alphabet))
        super().__init__(f"alphabet {shown!r} is not a subset of '01'")


class UnknownSymbolError(AutomatonError, KeyError):
    def __init__(self, symbol):
        super().__init__(symbol)
        self.symbol = symbol

    def __str__(self) -> str:
        return f"no such input: {self.symbol!r}"


class UnknownStateError(AutomatonError, IndexError):
    def __init__(self, state):
        super().__init__(f"no such state: {state}")
        self.state = state
