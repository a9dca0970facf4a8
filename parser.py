import logging
import math
import string
from typing import Optional

from nodes import Binary, Constant, Error, Indeterminate, Kind, Node, Unary

logger = logging.getLogger(__name__)

FUNCTIONS = {
    "arcsin": Kind.ASIN,
    "arccos": Kind.ACOS,
    "arctan": Kind.ATAN,
    "arccot": Kind.ACOT,
    "arcsec": Kind.ASEC,
    "arccsc": Kind.ACSC,
    "floor": Kind.FLOOR,
    "sqrt": Kind.SQRT,
    "sin": Kind.SIN,
    "cos": Kind.COS,
    "tan": Kind.TAN,
    "cot": Kind.COT,
    "sec": Kind.SEC,
    "csc": Kind.CSC,
    "log": Kind.LOG,
    "ln": Kind.LN,
}

# longest first, so that "arcsin" is tried before "sin"
TOKENS = sorted([*FUNCTIONS, "pi", "e"], key=len, reverse=True)

# deepest nesting of factors (brackets, signs, powers) accepted before giving up
MAX_NESTING = 100


def strip_whitespace(text: str) -> str:
    return "".join(text.split())


def scan_constant(text: str, pos: int) -> tuple[float, int]:
    """
    Scan a numeric literal starting at `pos`.

    EBNF: [ `-` ] { digit } [ `.` { digit } ]

    Returns the value and the position of the next unread character.
    A literal without any digits is worth 0.0.
    """
    i = pos
    if i < len(text) and text[i] == "-":
        i += 1
    while i < len(text) and text[i] in string.digits:
        i += 1
    if i < len(text) and text[i] == ".":
        i += 1
        while i < len(text) and text[i] in string.digits:
            i += 1
    literal = text[pos:i]
    if not any(ch in string.digits for ch in literal):
        return 0.0, i
    return float(literal), i


class ExpressionParser:
    """
    Recursive-descent parser for single-variable expressions.

    Grammar, lowest precedence first:
        expression := term { ( `+` | `-` ) term }
        term       := factor { ( `*` | `/` ) factor }
        factor     := primary [ `^` factor ]
        primary    := constant | `-` factor | `(` expression `)` | `|` expression `|`
                    | function `(` expression `)` | `e^` factor | `e` | `pi`
                    | indeterminate

    Parsing never raises. A malformed construct becomes an Error node
    holding the offset where the problem was seen, and the position
    jumps to the end of the text so that every rule stops.
    """

    def __init__(self, indeterminate: str, expression: str):
        self.indeterminate = indeterminate
        self.text = strip_whitespace(expression)
        self.failure: Optional[int] = None
        self.depth = 0

    def parse(self) -> Node:
        tree, i = self.expression(0)
        if i < len(self.text):
            tree, i = self._fail(i)
        return tree

    def expression(self, pos: int) -> tuple[Node, int]:
        text = self.text
        result, i = self.term(pos)
        while i < len(text) and text[i] not in ")|":
            if text[i] in "+-":
                kind = Kind.PLUS if text[i] == "+" else Kind.MINUS
                child, i = self.term(i + 1)
                result = Binary(kind, result, child)
            else:
                result, i = self._fail(i)
        return result, i

    def term(self, pos: int) -> tuple[Node, int]:
        text = self.text
        result, i = self.factor(pos)
        while i < len(text) and text[i] in "*/":
            kind = Kind.TIMES if text[i] == "*" else Kind.DIV
            child, i = self.factor(i + 1)
            result = Binary(kind, result, child)
        return result, i

    def factor(self, pos: int) -> tuple[Node, int]:
        if self.depth >= MAX_NESTING:
            return self._fail(pos)
        self.depth += 1
        result, i = self._factor(pos)
        self.depth -= 1
        return result, i

    def _factor(self, pos: int) -> tuple[Node, int]:
        text = self.text
        if pos >= len(text):
            return self._fail(pos)

        ch = text[pos]
        if ch in string.digits:
            value, i = scan_constant(text, pos)
            result = Constant(value)
        elif ch == "-":
            child, i = self.factor(pos + 1)
            result = Unary(Kind.NEGATE, child)
        elif ch == "(":
            result, i = self._enclosed(Kind.GROUP, pos + 1, ")")
        elif ch == "|":
            result, i = self._enclosed(Kind.ABS, pos + 1, "|")
        else:
            result, i = self._name(pos)

        # right-recursive, so a^b^c is a^(b^c)
        if i < len(text) and text[i] == "^":
            exponent, i = self.factor(i + 1)
            result = Binary(Kind.POW, result, exponent)
        return result, i

    def _name(self, pos: int) -> tuple[Node, int]:
        text = self.text
        token = next((t for t in TOKENS if text.startswith(t, pos)), None)
        name = self.indeterminate
        if name and text.startswith(name, pos) and (token is None or len(name) > len(token)):
            return Indeterminate(name), pos + len(name)
        if token is None:
            return self._fail(pos)
        if token == "pi":
            return Constant(math.pi), pos + 2
        if token == "e":
            return self._exponential(pos + 1)
        i = pos + len(token)
        if i < len(text) and text[i] == "(":
            return self._enclosed(FUNCTIONS[token], i + 1, ")")
        return self._fail(i)

    def _exponential(self, pos: int) -> tuple[Node, int]:
        text = self.text
        if pos < len(text) and text[pos] == "^":
            if pos + 1 < len(text) and text[pos + 1] == "(":
                return self._enclosed(Kind.EXP, pos + 2, ")")
            child, i = self.factor(pos + 1)
            return Unary(Kind.EXP, child), i
        return Unary(Kind.EXP, Constant(1.0)), pos

    def _enclosed(self, kind: Kind, pos: int, closer: str) -> tuple[Node, int]:
        child, j = self.expression(pos)
        if self.failure is not None:
            return Unary(kind, child), j
        if j < len(self.text) and self.text[j] == closer:
            return Unary(kind, child), j + 1
        return self._fail(j)

    def _fail(self, pos: int) -> tuple[Node, int]:
        logger.debug("parse error at offset %d in %r", pos, self.text)
        if self.failure is None:
            self.failure = pos
        return Error(pos), len(self.text)


def parse(indeterminate: str, expression: str) -> Node:
    """
    Parse `expression` with `indeterminate` as its variable.
    Never raises; check the result with nodes.find_errors before evaluating.
    """
    return ExpressionParser(indeterminate, expression).parse()


def _read_number(text: str, pos: int):
    value, j = scan_constant(text, pos)
    if not any(ch in string.digits for ch in text[pos:j]):
        return None, pos
    return value, j


def read_x_values(text: str) -> list[float]:
    """Read comma-delimited constants such as '1,-2.5,3'. Malformed input gives []."""
    text = strip_whitespace(text)
    values = []
    pos = 0
    while pos < len(text):
        value, j = _read_number(text, pos)
        if value is None or (j < len(text) and text[j] != ","):
            return []
        values.append(value)
        pos = j + 1
    return values


def read_xy_values(text: str) -> list[tuple[float, float]]:
    """Read comma-delimited points such as '(1,2), (3,-4)'. Malformed input gives []."""
    text = strip_whitespace(text)
    points = []
    pos = 0
    while pos < len(text):
        if text[pos] != "(":
            return []
        x, j = _read_number(text, pos + 1)
        if x is None or j >= len(text) or text[j] != ",":
            return []
        y, k = _read_number(text, j + 1)
        if y is None or k >= len(text) or text[k] != ")":
            return []
        points.append((x, y))
        pos = k + 1
        if pos < len(text):
            if text[pos] != ",":
                return []
            pos += 1
    return points
