import logging
import math

from errors import InvariantViolation
from evaluator import BINARY_OPERATIONS
from nodes import Binary, Constant, Error, Indeterminate, Kind, Node, Polynomial, Unary

logger = logging.getLogger(__name__)

# name given to a polynomial built from constants alone
DEFAULT_INDETERMINATE = "x"


def _is_natural(value: float) -> bool:
    return math.isfinite(value) and value >= 0.0 and math.floor(value) == math.ceil(value)


def is_polynomial(expr: Node) -> bool:
    if isinstance(expr, (Constant, Indeterminate, Polynomial)):
        return True
    if isinstance(expr, Unary):
        return expr.kind in (Kind.GROUP, Kind.NEGATE) and is_polynomial(expr.child)
    if isinstance(expr, Binary):
        if expr.kind in (Kind.PLUS, Kind.MINUS, Kind.TIMES):
            return is_polynomial(expr.left) and is_polynomial(expr.right)
        if expr.kind is Kind.POW:
            return (
                is_polynomial(expr.left)
                and isinstance(expr.right, Constant)
                and _is_natural(expr.right.value)
            )
    return False


def _trimmed(indeterminate: str, coefficients) -> Polynomial:
    """Drop zero leading coefficients, keeping at least the constant term."""
    degree = len(coefficients) - 1
    while degree > 0 and coefficients[degree] == 0.0:
        degree -= 1
    return Polynomial(indeterminate, degree, tuple(coefficients[:degree + 1]))


def _carried_name(first: Polynomial, second: Polynomial) -> str:
    return first.indeterminate if first.degree >= second.degree else second.indeterminate


def _convolve(first, second) -> list:
    result = [0.0] * (len(first) + len(second) - 1)
    for i, a in enumerate(first):
        for j, b in enumerate(second):
            result[i + j] += a * b
    return result


def _to_polynomial(expr: Node) -> Polynomial:
    if isinstance(expr, Polynomial):
        return expr
    if isinstance(expr, Constant):
        return Polynomial(DEFAULT_INDETERMINATE, 0, (float(expr.value),))
    if isinstance(expr, Indeterminate):
        return Polynomial(expr.name, 1, (0.0, 1.0))

    if isinstance(expr, Unary):
        child = _to_polynomial(expr.child)
        if expr.kind is Kind.GROUP:
            return child
        return Polynomial(child.indeterminate, child.degree, tuple(-c for c in child.coefficients))

    if expr.kind is Kind.POW:
        power = int(expr.right.value)
        base = expr.left
        if isinstance(base, Indeterminate):
            return Polynomial(base.name, power, (0.0,) * power + (1.0,))
        if isinstance(base, Constant):
            value = BINARY_OPERATIONS[Kind.POW](float(base.value), float(power))
            return Polynomial(DEFAULT_INDETERMINATE, 0, (value,))
        base = _to_polynomial(base)
        if power == 0:
            return Polynomial(base.indeterminate, 0, (1.0,))
        coefficients = base.coefficients
        for _ in range(power - 1):
            coefficients = _convolve(coefficients, base.coefficients)
        return _trimmed(base.indeterminate, coefficients)

    first, second = _to_polynomial(expr.left), _to_polynomial(expr.right)
    name = _carried_name(first, second)
    if expr.kind is Kind.TIMES:
        return _trimmed(name, _convolve(first.coefficients, second.coefficients))

    size = max(first.degree, second.degree) + 1
    sign = 1.0 if expr.kind is Kind.PLUS else -1.0
    coefficients = [0.0] * size
    for i, c in enumerate(first.coefficients):
        coefficients[i] += c
    for i, c in enumerate(second.coefficients):
        coefficients[i] += sign * c
    return _trimmed(name, coefficients)


def normalize(expr: Node) -> Node:
    """
    Convert a polynomial-shaped tree into its canonical Polynomial node.
    Anything else is returned unchanged.
    """
    if not is_polynomial(expr):
        return expr
    return _to_polynomial(expr)


def _as_leaf(polynomial: Polynomial) -> Node:
    if polynomial.degree == 0:
        return Constant(polynomial.coefficients[0])
    if polynomial.coefficients == (0.0, 1.0):
        return Indeterminate(polynomial.indeterminate)
    return polynomial


def _is_value(node: Node, value: float) -> bool:
    return isinstance(node, Constant) and node.value == value


def _parenthesized(node: Node) -> Node:
    """Group a polynomial used as an operand, so its display still reads as one term."""
    if isinstance(node, Polynomial):
        return Unary(Kind.GROUP, node)
    return node


def _constant_multiple(node: Node):
    """Split c*f or f*c (possibly parenthesized) into (c, f); None otherwise."""
    if isinstance(node, Unary) and node.kind is Kind.GROUP:
        node = node.child
    if isinstance(node, Binary) and node.kind is Kind.TIMES:
        if isinstance(node.left, Constant):
            return node.left.value, node.right
        if isinstance(node.right, Constant):
            return node.right.value, node.left
    return None


def _simplify_unary(kind: Kind, child: Node) -> Node:
    if kind is Kind.GROUP:
        if isinstance(child, (Constant, Indeterminate, Error)):
            return child
        if isinstance(child, Unary) and child.kind is Kind.GROUP:
            return child
    if kind is Kind.NEGATE:
        if isinstance(child, Constant):
            return Constant(-child.value)
        return Unary(kind, _parenthesized(child))
    return Unary(kind, child)


def _simplify_binary(kind: Kind, left: Node, right: Node) -> Node:
    if isinstance(left, Constant) and isinstance(right, Constant):
        return Constant(BINARY_OPERATIONS[kind](left.value, right.value))

    if kind is Kind.PLUS:
        if _is_value(left, 0.0):
            return right
        if _is_value(right, 0.0):
            return left
    elif kind is Kind.MINUS:
        if _is_value(right, 0.0):
            return left
    elif kind is Kind.TIMES:
        if _is_value(left, 1.0):
            return right
        if _is_value(right, 1.0):
            return left
        if _is_value(left, 0.0) or _is_value(right, 0.0):
            return Constant(0.0)
        if isinstance(left, Constant) and _constant_multiple(right):
            value, rest = _constant_multiple(right)
            return Binary(Kind.TIMES, Constant(left.value * value), _parenthesized(rest))
        if isinstance(right, Constant) and _constant_multiple(left):
            value, rest = _constant_multiple(left)
            return Binary(Kind.TIMES, Constant(right.value * value), _parenthesized(rest))
    elif kind in (Kind.DIV, Kind.POW):
        if _is_value(right, 1.0):
            return left
    return Binary(kind, _parenthesized(left), _parenthesized(right))


def simplify(expr: Node) -> Node:
    """
    Rebuild `expr` bottom-up with light algebraic clean-up:
      - polynomial sums, differences and powers become canonical polynomials,
        parenthesized wherever they are an operand
      - redundant groups are dropped
      - a+0, 0+a, a-0, a*1, 1*a, a/1, a^1 lose the neutral element
      - a*0 and 0*a become 0
      - constant operands are folded and constant multiples merged
    """
    if is_polynomial(expr) and expr.kind in (Kind.PLUS, Kind.MINUS, Kind.POW):
        return _as_leaf(_to_polynomial(expr))
    if isinstance(expr, Unary):
        return _simplify_unary(expr.kind, simplify(expr.child))
    if isinstance(expr, Binary):
        return _simplify_binary(expr.kind, simplify(expr.left), simplify(expr.right))
    return expr


class MathOptimizer:
    """
    Applies a pipeline of tree rewrites to an expression tree:
      1) simplify()    → constant-folding & basic algebraic simplify
      2) normalize() [opt] → canonical polynomial form for every polynomial subtree
    """

    def __init__(self, expand_polynomials: bool = False):
        self.expand_polynomials = expand_polynomials

    def expand(self, node: Node) -> Node:
        """
        Replace each maximal polynomial subtree with its Polynomial node,
        keeping explicit parentheses around it.
        """
        if isinstance(node, (Constant, Indeterminate, Error)):
            return node
        if isinstance(node, Unary) and node.kind is Kind.GROUP:
            return Unary(Kind.GROUP, self.expand(node.child))
        if is_polynomial(node):
            return normalize(node)
        if isinstance(node, Unary):
            child = self.expand(node.child)
            if node.kind is Kind.NEGATE:
                child = _parenthesized(child)
            return Unary(node.kind, child)
        if isinstance(node, Binary):
            return Binary(
                node.kind,
                _parenthesized(self.expand(node.left)),
                _parenthesized(self.expand(node.right)),
            )
        raise InvariantViolation(f"unknown node {node!r} encountered while optimizing")

    def optimize_tree(self, tree: Node) -> Node:
        folded = simplify(tree)
        final = self.expand(folded) if self.expand_polynomials else folded
        logger.debug("optimized %s into %s", tree, final)
        return final
