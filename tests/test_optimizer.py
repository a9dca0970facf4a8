# File: tests/test_optimizer.py

import math
import re
import pytest
from calculus import derivative
from evaluator import evaluate
from nodes import Binary, Constant, Indeterminate, Kind, Polynomial, Unary, find_errors
from optimizer import MathOptimizer, is_polynomial, normalize, simplify
from parser import parse

# ─── 1) Polynomial detection ────────────────────────────────────────────────────

@pytest.mark.parametrize("src, expected", [
    ("x",            True),
    ("3",            True),
    ("-(x+1)",       True),
    ("(x-4)^3",      True),
    ("x*x-2*x+1",    True),
    ("x^0",          True),
    ("x/2",          False),
    ("x^-1",         False),
    ("x^0.5",        False),
    ("x^x",          False),
    ("sin(x)+1",     False),
    ("sin(",         False),
])
def test_is_polynomial(src, expected):
    assert is_polynomial(parse("x", src)) is expected

def test_polynomial_node_is_polynomial():
    assert is_polynomial(Polynomial("x", 1, (1.0, 2.0)))


# ─── 2) Canonical form ──────────────────────────────────────────────────────────

@pytest.mark.parametrize("src, degree, coefficients", [
    ("(x-4)^3",       3, (-64.0, 48.0, -12.0, 1.0)),
    ("x^3",           3, (0.0, 0.0, 0.0, 1.0)),
    ("2*x+1",         1, (1.0, 2.0)),
    ("-(x^2-1)",      2, (1.0, 0.0, -1.0)),
    ("(x+1)*(x-1)",   2, (-1.0, 0.0, 1.0)),
    ("x^2-x^2+3",     0, (3.0,)),
    ("x-x",           0, (0.0,)),
    ("2^3",           0, (8.0,)),
    ("(x+1)^0",       0, (1.0,)),
    ("(x+1)^1",       1, (1.0, 1.0)),
    ("7",             0, (7.0,)),
    ("10^400",        0, (math.inf,)),
])
def test_normalize(src, degree, coefficients):
    result = normalize(parse("x", src))
    assert isinstance(result, Polynomial)
    assert result.degree == degree
    assert result.coefficients == coefficients
    assert len(result.coefficients) == result.degree + 1

def test_indeterminate_name_is_carried():
    result = normalize(parse("t", "(t-4)^3"))
    assert result.indeterminate == "t"
    assert normalize(parse("t", "3+t")).indeterminate == "t"

def test_normalize_is_idempotent():
    once = normalize(parse("x", "(x-4)^3"))
    assert normalize(once) == once

def test_normalize_leaves_non_polynomials_alone():
    tree = parse("x", "sin(x)*x")
    assert normalize(tree) is tree

def test_normalized_value_matches_tree():
    tree = parse("x", "(2*x-1)^4-3*(x+2)*x")
    result = normalize(tree)
    for x in (-1.5, 0.0, 0.7, 2.0):
        assert evaluate(result, x) == pytest.approx(evaluate(tree, x))


# ─── 3) Simplifier ──────────────────────────────────────────────────────────────

X = Indeterminate("x")
SIN_X = Unary(Kind.SIN, X)

@pytest.mark.parametrize("tree, expected", [
    (Binary(Kind.PLUS, Constant(0.0), SIN_X),                SIN_X),
    (Binary(Kind.PLUS, SIN_X, Constant(0.0)),                SIN_X),
    (Binary(Kind.TIMES, Constant(1.0), SIN_X),               SIN_X),
    (Binary(Kind.TIMES, SIN_X, Constant(1.0)),               SIN_X),
    (Binary(Kind.TIMES, SIN_X, Constant(0.0)),               Constant(0.0)),
    (Binary(Kind.TIMES, Constant(2.0), Constant(3.0)),       Constant(6.0)),
    (Unary(Kind.GROUP, Unary(Kind.GROUP, SIN_X)),            Unary(Kind.GROUP, SIN_X)),
    (Unary(Kind.GROUP, X),                                   X),
    (Binary(Kind.TIMES, Constant(2.0),
            Unary(Kind.GROUP, Binary(Kind.TIMES, Constant(3.0), SIN_X))),
     Binary(Kind.TIMES, Constant(6.0), SIN_X)),
    (Binary(Kind.DIV, SIN_X, Constant(1.0)),                 SIN_X),
])
def test_simplify_rules(tree, expected):
    assert simplify(tree) == expected

def test_simplify_turns_polynomial_sums_into_polynomials():
    assert simplify(parse("x", "x^2+2*x+1")) == Polynomial("x", 2, (1.0, 2.0, 1.0))

def test_simplify_does_not_modify_input():
    tree = parse("x", "(0+sin(x))*1")
    before = repr(tree)
    simplify(tree)
    assert repr(tree) == before

@pytest.mark.parametrize("src", [
    "sin(x^2)*x",
    "(x+1)/(x^2+1)",
    "e^(x/2)-3",
    "x^3-2*x",
])
def test_simplified_derivative_evaluates_the_same(src):
    derived = derivative(parse("x", src))
    simplified = simplify(derived)
    for x in (-1.2, 0.4, 1.9):
        assert evaluate(simplified, x) == pytest.approx(evaluate(derived, x))


# ─── 4) Optimizer pipeline ──────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "src, expected_no_expand, expected_expand",
    [
        ("(x+2)*(x+2)",
         "(x + 2.0) × (x + 2.0)",
         "x^2 + 4.0 x + 4.0"),
        ("4*(2+3)",
         "20.0",
         "20.0"),
        ("sin((x-1)*(x+1))",
         "sin((x - 1.0) × (x + 1.0))",
         "sin(x^2 - 1.0)"),
    ],
)
def test_optimize_and_expand(src, expected_no_expand, expected_expand):
    out1 = MathOptimizer(expand_polynomials=False).optimize_tree(parse("x", src))
    assert str(out1) == expected_no_expand

    out2 = MathOptimizer(expand_polynomials=True).optimize_tree(parse("x", src))
    assert str(out2) == expected_expand

def test_expand_keeps_parentheses():
    out = MathOptimizer(expand_polynomials=True).optimize_tree(parse("x", "(x*x+1)^x"))
    assert str(out) == "(x^2 + 1.0) ^ x"

def test_simplify_collapses_bare_indeterminate():
    assert simplify(parse("x", "2*x^1")) == Binary(Kind.TIMES, Constant(2.0), X)

def test_overflowing_constant_power_simplifies_to_inf():
    assert simplify(parse("x", "10^400+1")) == Constant(math.inf)


# ─── 5) Displayed results mean what the tree means ──────────────────────────────

def reparsed(tree):
    # polynomial terms are written "2.0 x"; the parser wants "2.0*x"
    text = str(tree).replace("×", "*").replace("÷", "/")
    return parse("x", re.sub(r"(\d) (?=x)", r"\1*", text))

def assert_same_values(shown, tree):
    assert not find_errors(shown), str(tree)
    for x in (-1.3, 0.4, 2.2):
        assert evaluate(shown, x) == pytest.approx(evaluate(tree, x))

@pytest.mark.parametrize("src", [
    "(x+1)^3",
    "x*(x+1)^2",
    "sin(x)*(x^2+1)",
    "(x+1)^2/(x-1)",
    "-(x^2+1)*cos(x)",
])
def test_simplified_derivative_display(src):
    simplified = simplify(derivative(parse("x", src)))
    assert_same_values(reparsed(simplified), simplified)

def test_simplified_polynomial_operand_is_parenthesized():
    simplified = simplify(derivative(parse("x", "(x+1)^3")))
    assert str(simplified) == "(3.0 × (x^2 + 2.0 x + 1.0))"

@pytest.mark.parametrize("src", [
    "(x+1)*x*sin(x)",
    "-((x+1)*(x-1))*cos(x)",
    "(x+1)^2/(x-1)",
    "e^((x+1)*(x+2))",
    "x^2-(x+1)*(x-1)*sin(x)",
])
def test_expanded_display(src):
    expanded = MathOptimizer(expand_polynomials=True).optimize_tree(parse("x", src))
    assert_same_values(reparsed(expanded), expanded)

def test_expanded_polynomial_operand_is_parenthesized():
    expanded = MathOptimizer(expand_polynomials=True).optimize_tree(parse("x", "(x+1)*x*sin(x)"))
    assert str(expanded) == "(x^2 + x) × sin(x)"
