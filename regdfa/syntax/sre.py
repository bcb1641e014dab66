from re import _parser as sre_parse
import string
from typing import List, Tuple

from ..errors import UnsupportedConstructError
from .ast import Alternation, Capture, Class, Concat, Empty, Literal, Look, Node, Repetition

ALL_BYTES = (0, 0xFF)

_CATEGORY_MEMBERS = {
    sre_parse.CATEGORY_DIGIT: (string.digits, False),
    sre_parse.CATEGORY_NOT_DIGIT: (string.digits, True),
    sre_parse.CATEGORY_WORD: (string.ascii_letters + string.digits + "_", False),
    sre_parse.CATEGORY_NOT_WORD: (string.ascii_letters + string.digits + "_", True),
    sre_parse.CATEGORY_SPACE: (" \t\n\r\f\v", False),
    sre_parse.CATEGORY_NOT_SPACE: (" \t\n\r\f\v", True),
}


def parse(pattern: str) -> Node:
    """
    Parse a Python-re pattern and translate its parse tree into the syntax-tree
    node kinds understood by the Thompson builder.

    Only the translation happens here: anchors and lookarounds come out as
    `Look`, bounded or lazy repeats as `Repetition` with their bounds, and it
    is up to the builder to refuse what it cannot construct.
    """
    parsed = sre_parse.parse(pattern)
    return _translate_sequence(parsed)


def _translate_sequence(parsed) -> Node:
    """Translate a list of (op, arg); several items become one Concat."""
    items: List[Node] = []
    pending = bytearray()     # consecutive literal bytes are merged into one Literal

    for op, arg in parsed:
        if op is sre_parse.LITERAL:
            pending.append(_byte(arg))
            continue
        if pending:
            items.append(Literal(bytes(pending)))
            pending = bytearray()
        items.append(_translate_item(op, arg))
    if pending:
        items.append(Literal(bytes(pending)))

    if not items:       # parsed is empty iff the (sub)pattern is ""
        return Empty()
    if len(items) == 1:
        return items[0]
    return Concat(items)


def _translate_item(op, arg) -> Node:
    if op is sre_parse.ANY:
        # dot does not match a newline
        return Class(_complement([(ord("\n"), ord("\n"))]))

    elif op is sre_parse.NOT_LITERAL:
        c = _byte(arg)
        return Class(_complement([(c, c)]))

    elif op is sre_parse.IN:
        return Class(_class_ranges(arg))

    elif op is sre_parse.CATEGORY:
        return Class(_category_ranges(arg))

    elif op is sre_parse.SUBPATTERN:
        group, add_flags, del_flags, subparsed = arg
        if add_flags or del_flags:
            raise UnsupportedConstructError(f"scoped inline flags are not supported (group {group})")
        return Capture(_translate_sequence(subparsed), index=group)

    elif op is sre_parse.BRANCH:
        _, branches = arg
        return Alternation([_translate_sequence(b) for b in branches])

    elif op in (sre_parse.MAX_REPEAT, sre_parse.MIN_REPEAT):
        lo, hi, subparsed = arg
        return Repetition(
            _translate_sequence(subparsed),
            min=lo,
            max=None if hi == sre_parse.MAXREPEAT else hi,
            greedy=op is sre_parse.MAX_REPEAT,
        )

    elif op is sre_parse.AT:
        return Look(arg.name.lower())

    elif op in (sre_parse.ASSERT, sre_parse.ASSERT_NOT):
        direction, subparsed = arg
        kind = "lookahead" if direction == 1 else "lookbehind"
        if op is sre_parse.ASSERT_NOT:
            kind = "negative " + kind
        return Look(kind, _translate_sequence(subparsed))

    raise UnsupportedConstructError(f"Unsupported or non-regular token: {op}")


def _class_ranges(items) -> List[Tuple[int, int]]:
    ranges: List[Tuple[int, int]] = []
    negate = False
    for subop, subarg in items:
        if subop is sre_parse.NEGATE:
            negate = True
        elif subop is sre_parse.LITERAL:
            c = _byte(subarg)
            ranges.append((c, c))
        elif subop is sre_parse.RANGE:
            lo, hi = subarg
            ranges.append((_byte(lo), _byte(hi)))
        elif subop is sre_parse.CATEGORY:
            ranges.extend(_category_ranges(subarg))
        else:
            raise UnsupportedConstructError(f"Unsupported in-class op {subop}")
    ranges = _normalize(ranges)
    return _complement(ranges) if negate else ranges


def _category_ranges(category) -> List[Tuple[int, int]]:
    if category not in _CATEGORY_MEMBERS:
        raise UnsupportedConstructError(f"Unsupported category {category}")
    members, negate = _CATEGORY_MEMBERS[category]
    ranges = _normalize([(ord(c), ord(c)) for c in members])
    return _complement(ranges) if negate else ranges


def _normalize(ranges: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Sort and merge overlapping or adjacent ranges."""
    merged: List[Tuple[int, int]] = []
    for lo, hi in sorted(ranges):
        if merged and lo <= merged[-1][1] + 1:
            merged[-1] = (merged[-1][0], max(hi, merged[-1][1]))
        else:
            merged.append((lo, hi))
    return merged


def _complement(ranges: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    result: List[Tuple[int, int]] = []
    nxt = ALL_BYTES[0]
    for lo, hi in _normalize(ranges):
        if lo > nxt:
            result.append((nxt, lo - 1))
        nxt = hi + 1
    if nxt <= ALL_BYTES[1]:
        result.append((nxt, ALL_BYTES[1]))
    return result


def _byte(code: int) -> int:
    if code > 0xFF:
        raise UnsupportedConstructError(f"character {chr(code)!r} does not fit in a byte")
    return code
