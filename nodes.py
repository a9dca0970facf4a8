import enum
from dataclasses import dataclass
from typing import ClassVar, Iterator

from errors import InvariantViolation


class Arity(enum.Enum):
    NULLARY = 0
    UNARY = 1
    BINARY = 2
    POLYNOMIAL = 3


class Kind(enum.Enum):
    """
    Closed set of node kinds. Each member carries its display symbol
    and the arity class that fixes how many children a node has.
    """
    INDETERMINATE = ("x", Arity.NULLARY)
    CONSTANT = ("constant", Arity.NULLARY)
    ERROR = ("error", Arity.NULLARY)

    NEGATE = ("-", Arity.UNARY)
    GROUP = ("(", Arity.UNARY)
    SIN = ("sin", Arity.UNARY)
    COS = ("cos", Arity.UNARY)
    TAN = ("tan", Arity.UNARY)
    COT = ("cot", Arity.UNARY)
    SEC = ("sec", Arity.UNARY)
    CSC = ("csc", Arity.UNARY)
    ASIN = ("arcsin", Arity.UNARY)
    ACOS = ("arccos", Arity.UNARY)
    ATAN = ("arctan", Arity.UNARY)
    ACOT = ("arccot", Arity.UNARY)
    ASEC = ("arcsec", Arity.UNARY)
    ACSC = ("arccsc", Arity.UNARY)
    LOG = ("log", Arity.UNARY)
    LN = ("ln", Arity.UNARY)
    EXP = ("exp", Arity.UNARY)
    FLOOR = ("floor", Arity.UNARY)
    SQRT = ("sqrt", Arity.UNARY)
    ABS = ("abs", Arity.UNARY)
    RECIPROCAL = ("1/", Arity.UNARY)

    PLUS = ("+", Arity.BINARY)
    MINUS = ("-", Arity.BINARY)
    TIMES = ("×", Arity.BINARY)
    DIV = ("÷", Arity.BINARY)
    POW = ("^", Arity.BINARY)

    POLYNOMIAL = ("polynomial", Arity.POLYNOMIAL)

    def __init__(self, symbol: str, arity: Arity):
        self.symbol = symbol
        self.arity = arity


# LaTeX has no built-in command for these
_OPERATOR_NAMES = frozenset({Kind.ACOT, Kind.ASEC, Kind.ACSC})


class Node:
    """
    Base of every expression-tree node. Nodes are immutable; transforms
    build new trees instead of editing children.
    """
    kind: Kind

    @property
    def children(self) -> tuple:
        return ()

    def __getitem__(self, i: int) -> "Node":
        return self.children[i]

    def latex(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Constant(Node):
    value: float
    kind: ClassVar[Kind] = Kind.CONSTANT

    def __str__(self):
        return str(float(self.value))

    def latex(self):
        return str(float(self.value))


@dataclass(frozen=True)
class Indeterminate(Node):
    name: str
    kind: ClassVar[Kind] = Kind.INDETERMINATE

    def __str__(self):
        return self.name

    def latex(self):
        return self.name


@dataclass(frozen=True)
class Error(Node):
    """Marks where parsing failed; `position` is an offset into the whitespace-free text."""
    position: int
    kind: ClassVar[Kind] = Kind.ERROR

    def __str__(self):
        return "error"

    def latex(self):
        return "error"


@dataclass(frozen=True)
class Unary(Node):
    kind: Kind
    child: Node

    def __post_init__(self):
        if self.kind.arity is not Arity.UNARY:
            raise InvariantViolation(f"{self.kind.name} is not a unary kind")

    @property
    def children(self):
        return (self.child,)

    def __str__(self):
        kind, child = self.kind, self.child
        if kind is Kind.NEGATE:
            return f"-{child}"
        if kind is Kind.GROUP:
            return f"({child})"
        if kind is Kind.EXP:
            return f"e^({child})"
        if kind is Kind.RECIPROCAL:
            return f"1/({child})"
        return f"{kind.symbol}({child})"

    def latex(self):
        kind, inner = self.kind, self.child.latex()
        if kind is Kind.NEGATE:
            if isinstance(self.child, Unary):
                return "-" + inner
            return "-\\left(" + inner + "\\right)"
        if kind is Kind.GROUP:
            return "\\left(" + inner + "\\right)"
        if kind is Kind.FLOOR:
            return "\\lfloor " + inner + "\\rfloor"
        if kind is Kind.SQRT:
            return "\\sqrt{" + inner + "}"
        if kind is Kind.ABS:
            return "\\left|" + inner + "\\right|"
        if kind is Kind.EXP:
            return "e^{" + inner + "}"
        if kind is Kind.RECIPROCAL:
            return "\\frac{1}{" + inner + "}"
        if kind in _OPERATOR_NAMES:
            return "\\operatorname{" + kind.symbol + "}(" + inner + ")"
        return "\\" + kind.symbol + "(" + inner + ")"


@dataclass(frozen=True)
class Binary(Node):
    kind: Kind
    left: Node
    right: Node

    def __post_init__(self):
        if self.kind.arity is not Arity.BINARY:
            raise InvariantViolation(f"{self.kind.name} is not a binary kind")

    @property
    def children(self):
        return (self.left, self.right)

    def __str__(self):
        return f"{self.left} {self.kind.symbol} {self.right}"

    def latex(self):
        left, right = self.left.latex(), self.right.latex()
        if self.kind is Kind.TIMES:
            return left + "\\cdot " + right
        if self.kind is Kind.DIV:
            return "\\frac{" + left + "}{" + right + "}"
        if self.kind is Kind.POW:
            return left + "^{" + right + "}"
        return left + self.kind.symbol + right


@dataclass(frozen=True)
class Polynomial(Node):
    """
    Canonical dense form of a polynomial in one indeterminate.
    `coefficients[i]` is the coefficient of `indeterminate ** i`, and
    there are always `degree + 1` of them.
    """
    indeterminate: str
    degree: int
    coefficients: tuple
    kind: ClassVar[Kind] = Kind.POLYNOMIAL

    def __post_init__(self):
        if self.degree < 0 or len(self.coefficients) != self.degree + 1:
            raise InvariantViolation(
                f"polynomial of degree {self.degree} needs {self.degree + 1} coefficients, "
                f"got {len(self.coefficients)}"
            )

    def _terms(self, latex: bool):
        for power in reversed(range(self.degree + 1)):
            coefficient = self.coefficients[power]
            if coefficient == 0.0:
                continue
            magnitude = abs(coefficient)
            if power > 1:
                name = f"{self.indeterminate}^{{{power}}}" if latex else f"{self.indeterminate}^{power}"
            elif power == 1:
                name = self.indeterminate
            else:
                name = ""
            if magnitude == 1.0 and name:
                body = name
            elif name:
                body = str(magnitude) + ("\\," if latex else " ") + name
            else:
                body = str(magnitude)
            yield coefficient < 0.0, body

    def _render(self, latex: bool) -> str:
        result = ""
        for negative, body in self._terms(latex):
            if not result:
                result = ("-" if negative else "") + body
            elif latex:
                result += ("-" if negative else "+") + body
            else:
                result += (" - " if negative else " + ") + body
        return result or "0.0"

    def __str__(self):
        return self._render(latex=False)

    def latex(self):
        return self._render(latex=True)


def to_display_string(tree: Node) -> str:
    return str(tree)


def to_latex_string(tree: Node) -> str:
    return tree.latex()


def walk(tree: Node) -> Iterator[Node]:
    """Yield every node of `tree` in pre-order."""
    stack = [tree]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def find_errors(tree: Node) -> list:
    """Return the error nodes reachable from `tree`, leftmost first."""
    return [node for node in walk(tree) if isinstance(node, Error)]
