import logging
import math

import sympy
from sympy import Symbol, diff as sym_diff

from errors import EvaluationError, InvariantViolation
from evaluator import evaluate
from nodes import Binary, Constant, Error, Indeterminate, Kind, Node, Polynomial, Unary

logger = logging.getLogger(__name__)

UNARY_FUNCTIONS = {
    Kind.NEGATE: lambda u: -u,
    Kind.GROUP: lambda u: u,
    Kind.SIN: sympy.sin,
    Kind.COS: sympy.cos,
    Kind.TAN: sympy.tan,
    Kind.COT: lambda u: sympy.tan(sympy.pi / 2 - u),
    Kind.SEC: lambda u: 1 / sympy.cos(u),
    Kind.CSC: lambda u: 1 / sympy.sin(u),
    Kind.ASIN: sympy.asin,
    Kind.ACOS: sympy.acos,
    Kind.ATAN: sympy.atan,
    Kind.ACOT: lambda u: sympy.pi / 2 - sympy.atan(u),
    Kind.ASEC: lambda u: sympy.acos(1 / u),
    Kind.ACSC: lambda u: sympy.asin(1 / u),
    Kind.LOG: lambda u: sympy.log(u, 10),
    Kind.LN: sympy.log,
    Kind.EXP: sympy.exp,
    Kind.FLOOR: sympy.floor,
    Kind.SQRT: sympy.sqrt,
    Kind.ABS: sympy.Abs,
    Kind.RECIPROCAL: lambda u: 1 / u,
}

BINARY_FUNCTIONS = {
    Kind.PLUS: lambda a, b: a + b,
    Kind.MINUS: lambda a, b: a - b,
    Kind.TIMES: lambda a, b: a * b,
    Kind.DIV: lambda a, b: a / b,
    Kind.POW: lambda a, b: a ** b,
}


def to_sympy(expr: Node, symbol: Symbol) -> sympy.Expr:
    """
    Convert a tree into a SymPy expression in `symbol`, using the same
    conventions as the evaluator (cot u = tan(pi/2 - u), log is base 10, ...).
    """
    if isinstance(expr, Constant):
        return sympy.Float(expr.value)
    if isinstance(expr, Indeterminate):
        return symbol
    if isinstance(expr, Error):
        raise EvaluationError(expr.position)
    if isinstance(expr, Unary):
        return UNARY_FUNCTIONS[expr.kind](to_sympy(expr.child, symbol))
    if isinstance(expr, Binary):
        return BINARY_FUNCTIONS[expr.kind](to_sympy(expr.left, symbol), to_sympy(expr.right, symbol))
    if isinstance(expr, Polynomial):
        return sum(
            (sympy.Float(c) * symbol ** i for i, c in enumerate(expr.coefficients)),
            sympy.Integer(0),
        )
    raise InvariantViolation(f"unknown node {expr!r} encountered while converting to SymPy")


def _as_float(value: sympy.Expr) -> float:
    value = value.evalf()
    if not value.is_real:
        return math.nan
    return float(value)


def check_derivative(tree: Node, derived: Node, name: str, points) -> list:
    """
    Compare `derived` against SymPy's derivative of `tree` at each point.
    Returns (x, ours, sympy's, agrees) for every point.
    """
    symbol = Symbol(name, real=True)
    expected = sym_diff(to_sympy(tree, symbol), symbol)
    logger.debug("sympy derivative of %s is %s", tree, expected)
    rows = []
    for x in points:
        ours = evaluate(derived, x)
        theirs = _as_float(expected.subs(symbol, x))
        if math.isnan(ours) or math.isnan(theirs):
            agrees = math.isnan(ours) and math.isnan(theirs)
        else:
            agrees = math.isclose(ours, theirs, rel_tol=1e-7, abs_tol=1e-9)
        rows.append((x, ours, theirs, agrees))
    return rows
