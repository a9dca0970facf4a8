# File: tests/test_cli.py

import pytest
from typer.testing import CliRunner
from main import app

runner = CliRunner()


def run(*args, **kwargs):
    return runner.invoke(app, list(args), **kwargs)


# ─── 1) eval ────────────────────────────────────────────────────────────────────

def test_eval_at_several_points():
    result = run("eval", "x^2", "--at", "3", "--at", "0.5")
    assert result.exit_code == 0
    assert "x = 3.0: 9.0" in result.output
    assert "x = 0.5: 0.25" in result.output

def test_eval_with_other_indeterminate():
    result = run("--var", "t", "eval", "2*t+1", "--at", "2")
    assert result.exit_code == 0
    assert "t = 2.0: 5.0" in result.output

def test_indeterminate_from_environment():
    result = run("eval", "theta*3", "--at", "2", env={"AGNESI_VAR": "theta"})
    assert result.exit_code == 0
    assert "theta = 2.0: 6.0" in result.output

def test_parse_error_points_at_offset():
    result = run("eval", "x + sin(")
    assert result.exit_code == 1
    assert "could not parse at offset 6" in result.output
    assert "x+sin(" in result.output


# ─── 2) derive ──────────────────────────────────────────────────────────────────

def test_derive_plain():
    result = run("derive", "sin(x)")
    assert result.exit_code == 0
    assert "cos(x)" in result.output

def test_derive_simplified():
    result = run("derive", "x^2+2*x", "--simplify")
    assert result.exit_code == 0
    assert "2.0 x + 2.0" in result.output

def test_derive_expand():
    simplified = run("derive", "x^2", "--simplify")
    assert "2.0 × x" in simplified.output
    expanded = run("derive", "x^2", "--expand")
    assert expanded.exit_code == 0
    assert "2.0 x" in expanded.output
    assert "×" not in expanded.output

def test_derive_latex():
    result = run("derive", "x/2", "--latex")
    assert result.exit_code == 0
    assert "\\frac" in result.output

def test_derive_check_against_sympy():
    result = run("derive", "x^3-2*x", "--check")
    assert result.exit_code == 0
    assert "yes" in result.output
    assert "no" not in result.output


# ─── 3) expand ──────────────────────────────────────────────────────────────────

def test_expand_polynomial():
    result = run("expand", "(x-4)^3")
    assert result.exit_code == 0
    assert "x^3 - 12.0 x^2 + 48.0 x - 64.0" in result.output
    assert "degree 3" in result.output

def test_expand_rejects_non_polynomial():
    result = run("expand", "sin(x)")
    assert result.exit_code == 1
    assert "not a polynomial" in result.output


# ─── 4) table ───────────────────────────────────────────────────────────────────

def test_table_samples_interval():
    result = run("table", "2*x", "--start", "0", "--stop", "1", "-n", "4")
    assert result.exit_code == 0
    for value in ("0.25", "0.75", "1.5"):
        assert value in result.output

@pytest.mark.parametrize("args", [
    ("--start", "1", "--stop", "0"),
    ("-n", "2"),
])
def test_table_rejects_bad_interval(args):
    result = run("table", "x", *args)
    assert result.exit_code == 2

def test_table_lists_asymptotes_and_holes():
    result = run(
        "table", "(x^2-1)/(x-1)/(x+3)", "--start", "-1", "--stop", "2", "-n", "6",
        "--asymptotes=-3", "--holes=(1,0.5)",
    )
    assert result.exit_code == 0
    assert "asymptote" in result.output
    assert "hole" in result.output
    lines = result.output.splitlines()
    asymptote = next(i for i, line in enumerate(lines) if "asymptote" in line)
    hole = next(i for i, line in enumerate(lines) if "hole" in line)
    assert asymptote < hole

@pytest.mark.parametrize("option", ["--asymptotes=1;2", "--holes=(1,2"])
def test_table_rejects_malformed_lists(option):
    result = run("table", "x", option)
    assert result.exit_code == 2
