import logging
import math

from errors import EvaluationError, InvariantViolation
from nodes import Binary, Constant, Error, Indeterminate, Kind, Node, Polynomial, Unary

logger = logging.getLogger(__name__)


def _real(fn):
    """Wrap a math function so domain errors give nan and overflow gives inf, as IEEE floats do."""
    def wrapper(*args):
        try:
            return fn(*args)
        except ValueError:
            return math.nan
        except OverflowError:
            return math.inf
    wrapper.__name__ = fn.__name__
    return wrapper


def _divide(a: float, b: float) -> float:
    try:
        return a / b
    except ZeroDivisionError:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def _power(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError:
        if a < 0.0 and b % 2.0 == 1.0:
            return -math.inf
        return math.inf
    except ValueError:
        if a == 0.0 and b < 0.0:
            return math.inf
        return math.nan


def _logarithm(fn):
    checked = _real(fn)

    def wrapper(u):
        if u == 0.0:
            return -math.inf
        return checked(u)
    return wrapper


def _floor(u: float) -> float:
    if not math.isfinite(u):
        return u
    return float(math.floor(u))


_sin, _cos, _tan, _atan = (_real(fn) for fn in (math.sin, math.cos, math.tan, math.atan))

UNARY_OPERATIONS = {
    Kind.NEGATE: lambda u: -u,
    Kind.GROUP: lambda u: u,
    Kind.SIN: _sin,
    Kind.COS: _cos,
    Kind.TAN: _tan,
    Kind.COT: lambda u: _tan(math.pi / 2 - u),
    Kind.SEC: lambda u: _divide(1.0, _cos(u)),
    Kind.CSC: lambda u: _divide(1.0, _sin(u)),
    Kind.ASIN: _real(math.asin),
    Kind.ACOS: _real(math.acos),
    Kind.ATAN: _atan,
    Kind.ACOT: lambda u: math.pi / 2 - _atan(u),
    Kind.ASEC: lambda u: _real(math.acos)(_divide(1.0, u)),
    Kind.ACSC: lambda u: _real(math.asin)(_divide(1.0, u)),
    Kind.LOG: _logarithm(math.log10),
    Kind.LN: _logarithm(math.log),
    Kind.EXP: _real(math.exp),
    Kind.FLOOR: _floor,
    Kind.SQRT: _real(math.sqrt),
    Kind.ABS: abs,
    Kind.RECIPROCAL: lambda u: _divide(1.0, u),
}

BINARY_OPERATIONS = {
    Kind.PLUS: lambda a, b: a + b,
    Kind.MINUS: lambda a, b: a - b,
    Kind.TIMES: lambda a, b: a * b,
    Kind.DIV: _divide,
    Kind.POW: _power,
}


def evaluate(expr: Node, value: float) -> float:
    """
    Recursively evaluate `expr` with its indeterminate set to `value`.
    Raises EvaluationError on an error node.
    """
    if isinstance(expr, Constant):
        return expr.value
    if isinstance(expr, Indeterminate):
        return value
    if isinstance(expr, Error):
        raise EvaluationError(expr.position)
    if isinstance(expr, Unary):
        return UNARY_OPERATIONS[expr.kind](evaluate(expr.child, value))
    if isinstance(expr, Binary):
        return BINARY_OPERATIONS[expr.kind](
            evaluate(expr.left, value), evaluate(expr.right, value)
        )
    if isinstance(expr, Polynomial):
        result = 0.0
        for coefficient in reversed(expr.coefficients):
            result = result * value + coefficient
        return result
    raise InvariantViolation(f"unknown node {expr!r} encountered in evaluation")


def is_constant(expr: Node) -> bool:
    """
    True if and only if `expr` does not depend on the indeterminate;
    this holds even for expressions such as 2^(3+|-5|)*arcsin(4).
    """
    if isinstance(expr, Constant):
        return True
    if isinstance(expr, Polynomial):
        return expr.degree == 0
    if not expr.children:
        return False
    return all(is_constant(child) for child in expr.children)


def sample(expr: Node, start: float, stop: float, n: int) -> list[tuple[float, float]]:
    """
    Plot points of `expr`: n evenly spaced x-values from `start`
    (inclusive) towards `stop`, each paired with the value there.
    """
    if not (start < stop and n > 3):
        raise ValueError(f"need start < stop and more than 3 points, got [{start}, {stop}] with {n}")
    dx = (stop - start) / n
    logger.debug("sampling %d points on [%s, %s)", n, start, stop)
    return [(start + i * dx, evaluate(expr, start + i * dx)) for i in range(n)]
