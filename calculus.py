import logging
import math

from errors import EvaluationError, InvariantViolation
from evaluator import evaluate, is_constant
from nodes import Binary, Constant, Error, Indeterminate, Kind, Node, Polynomial, Unary, find_errors

logger = logging.getLogger(__name__)


def _group(node: Node) -> Node:
    """Parenthesize binary nodes so the derivative still reads correctly when displayed."""
    if isinstance(node, (Binary, Polynomial)):
        return Unary(Kind.GROUP, node)
    return node


def _negate(node: Node) -> Node:
    return Unary(Kind.NEGATE, _group(node))


def _reciprocal(node: Node) -> Node:
    return Unary(Kind.RECIPROCAL, node)


def _square(node: Node) -> Node:
    return Binary(Kind.POW, _group(node), Constant(2.0))


def _times(left: Node, right: Node) -> Node:
    return Binary(Kind.TIMES, _group(left), _group(right))


def chain_rule(outer: Node, inner: Node) -> Node:
    """
    f'(u) * u' for f'(u) = `outer` and u = `inner`.
    Skips the product when u is constant (result 0) or the bare indeterminate (u' = 1).
    """
    if is_constant(inner):
        return Constant(0.0)
    if isinstance(inner, Indeterminate):
        return outer
    return Binary(Kind.TIMES, _group(outer), Unary(Kind.GROUP, derivative(inner)))


def _inverse_sine_rule(u: Node) -> Node:
    # (1 - u^2)^(-1/2)
    return Binary(
        Kind.POW,
        Unary(Kind.GROUP, Binary(Kind.MINUS, Constant(1.0), _square(u))),
        Constant(-0.5),
    )


def _inverse_tangent_rule(u: Node) -> Node:
    # 1/(1 + u^2)
    return _reciprocal(Binary(Kind.PLUS, Constant(1.0), _square(u)))


def _inverse_secant_rule(u: Node) -> Node:
    # (u^2 - 1)^(-1/2) / |u|
    return Binary(
        Kind.DIV,
        Binary(
            Kind.POW,
            Unary(Kind.GROUP, Binary(Kind.MINUS, _square(u), Constant(1.0))),
            Constant(-0.5),
        ),
        Unary(Kind.ABS, u),
    )


# outer derivative f'(u) for each f applied through the chain rule
OUTER_DERIVATIVES = {
    Kind.SIN: lambda u: Unary(Kind.COS, u),
    Kind.TAN: lambda u: _square(Unary(Kind.SEC, u)),
    Kind.SEC: lambda u: Binary(Kind.TIMES, Unary(Kind.SEC, u), Unary(Kind.TAN, u)),
    Kind.ASIN: _inverse_sine_rule,
    Kind.ATAN: _inverse_tangent_rule,
    Kind.ASEC: _inverse_secant_rule,
    Kind.LOG: lambda u: Binary(Kind.DIV, _reciprocal(u), Constant(math.log(10.0))),
    Kind.LN: _reciprocal,
    Kind.EXP: lambda u: Unary(Kind.EXP, u),
    Kind.RECIPROCAL: lambda u: Unary(Kind.NEGATE, _square(_reciprocal(u))),
    Kind.SQRT: lambda u: _reciprocal(Binary(Kind.TIMES, Constant(2.0), Unary(Kind.SQRT, u))),
    Kind.ABS: lambda u: Binary(Kind.DIV, Unary(Kind.ABS, u), _group(u)),
}

# f whose derivative is the negation of the derivative of its partner
NEGATED_PARTNERS = {
    Kind.COS: lambda u: Unary(Kind.SIN, u),
    Kind.COT: lambda u: _square(Unary(Kind.CSC, u)),
    Kind.CSC: lambda u: Binary(Kind.TIMES, Unary(Kind.CSC, u), Unary(Kind.COT, u)),
    Kind.ACOS: _inverse_sine_rule,
    Kind.ACOT: _inverse_tangent_rule,
    Kind.ACSC: _inverse_secant_rule,
}


def _unary_derivative(expr: Unary) -> Node:
    kind, u = expr.kind, expr.child
    if kind is Kind.NEGATE:
        return _negate(derivative(u))
    if kind is Kind.GROUP:
        return Unary(Kind.GROUP, derivative(u))
    if kind is Kind.FLOOR:
        # jumps are ignored
        errors = find_errors(u)
        if errors:
            raise EvaluationError(errors[0].position)
        return Constant(0.0)
    if kind in OUTER_DERIVATIVES:
        return chain_rule(OUTER_DERIVATIVES[kind](u), u)
    if kind in NEGATED_PARTNERS:
        return _negate(chain_rule(NEGATED_PARTNERS[kind](u), u))
    raise InvariantViolation(f"unknown unary kind {kind} encountered while computing derivative")


def _power_derivative(base: Node, exponent: Node) -> Node:
    if is_constant(exponent):
        # b * a^(b-1) * a'
        lowered = Constant(evaluate(exponent, 0.0) - 1.0)
        return chain_rule(
            Binary(Kind.TIMES, _group(exponent), Binary(Kind.POW, _group(base), lowered)),
            base,
        )
    logger.debug("exponent %s is not constant; differentiating logarithmically", exponent)
    # a^b * (b' * ln(a) + b * a' / a)
    return Binary(
        Kind.TIMES,
        Binary(Kind.POW, _group(base), _group(exponent)),
        Unary(Kind.GROUP, Binary(
            Kind.PLUS,
            _times(derivative(exponent), Unary(Kind.LN, base)),
            Binary(Kind.DIV, _times(exponent, derivative(base)), _group(base)),
        )),
    )


def _binary_derivative(expr: Binary) -> Node:
    kind, a, b = expr.kind, expr.left, expr.right
    if kind is Kind.PLUS:
        return Binary(Kind.PLUS, derivative(a), derivative(b))
    if kind is Kind.MINUS:
        return Binary(Kind.MINUS, derivative(a), _group(derivative(b)))
    if kind is Kind.TIMES:
        return Binary(Kind.PLUS, _times(derivative(a), b), _times(a, derivative(b)))
    if kind is Kind.DIV:
        # (a'b - ab') / b^2
        numerator = Binary(Kind.MINUS, _times(derivative(a), b), _times(a, derivative(b)))
        return Binary(Kind.DIV, Unary(Kind.GROUP, numerator), _square(b))
    if kind is Kind.POW:
        return _power_derivative(a, b)
    raise InvariantViolation(f"unknown binary kind {kind} encountered while computing derivative")


def _polynomial_derivative(expr: Polynomial) -> Polynomial:
    if expr.degree == 0:
        return Polynomial(expr.indeterminate, 0, (0.0,))
    coefficients = tuple(i * c for i, c in enumerate(expr.coefficients) if i > 0)
    return Polynomial(expr.indeterminate, expr.degree - 1, coefficients)


def derivative(expr: Node) -> Node:
    """
    Compute a new tree for the derivative of `expr` with respect to its indeterminate.
    Raises EvaluationError when `expr` contains an error node.
    """
    if isinstance(expr, Constant):
        return Constant(0.0)
    if isinstance(expr, Indeterminate):
        return Constant(1.0)
    if isinstance(expr, Error):
        raise EvaluationError(expr.position)
    if isinstance(expr, Unary):
        return _unary_derivative(expr)
    if isinstance(expr, Binary):
        return _binary_derivative(expr)
    if isinstance(expr, Polynomial):
        return _polynomial_derivative(expr)
    raise InvariantViolation(f"unknown node {expr!r} encountered while computing derivative")
