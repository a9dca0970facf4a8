import logging
from dataclasses import dataclass

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from calculus import derivative
from evaluator import evaluate, sample
from nodes import Node, Polynomial, find_errors, to_display_string, to_latex_string
from optimizer import MathOptimizer, normalize
from parser import ExpressionParser, read_x_values, read_xy_values
from symbolic import check_derivative

app = typer.Typer(help="Parse, evaluate, differentiate and expand single-variable expressions.")
console = Console()
logger = logging.getLogger("agnesi")

CHECK_POINTS = (-1.7, -0.4, 0.3, 1.1, 2.6)


@dataclass(frozen=True)
class Settings:
    """Per-invocation options shared by every command."""
    var: str = "x"


def render(tree: Node, latex: bool) -> str:
    return to_latex_string(tree) if latex else to_display_string(tree)


def report_error(text: str, position: int, message: str):
    """Show the whitespace-free expression with a caret under `position`, then exit."""
    caret = " " * position + "^"
    body = f"{escape(text)}\n{caret}\n{escape(message)}"
    console.print(Panel(body, title="error", border_style="red"))
    raise typer.Exit(code=1)


def parse_or_exit(settings: Settings, expression: str) -> Node:
    parser = ExpressionParser(settings.var, expression)
    tree = parser.parse()
    errors = find_errors(tree)
    if errors:
        position = errors[0].position
        report_error(parser.text, position, f"could not parse at offset {position}")
    logger.debug("parsed %r as %r", expression, tree)
    return tree


def read_list(reader, text: str, option: str) -> list:
    """Read a comma-delimited option value; an empty value is an empty list."""
    values = reader(text)
    if text.strip() and not values:
        raise typer.BadParameter(f"malformed list {text!r}", param_hint=option)
    return values


@app.callback()
def configure(
    ctx: typer.Context,
    var: str = typer.Option(
        "x", "--var", "-v", envvar="AGNESI_VAR",
        help="Name of the indeterminate"
    ),
    verbose: bool = typer.Option(
        False, "--verbose",
        help="Log every step at DEBUG level"
    ),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    ctx.obj = Settings(var=var)


@app.command("eval")
def evaluate_command(
    ctx: typer.Context,
    expression: str = typer.Argument(..., help="Expression to evaluate"),
    at: list[float] = typer.Option(
        [0.0], "--at", "-a",
        help="Value(s) of the indeterminate"
    ),
):
    """
    Evaluate EXPRESSION at each --at value.
    """
    settings = ctx.obj
    tree = parse_or_exit(settings, expression)
    for value in at:
        console.print(f"{escape(settings.var)} = {value}: {evaluate(tree, value)}")


@app.command("derive")
def derive_command(
    ctx: typer.Context,
    expression: str = typer.Argument(..., help="Expression to differentiate"),
    latex: bool = typer.Option(False, "--latex", help="Print LaTeX instead of plain text"),
    simplify: bool = typer.Option(
        False, "--simplify/--no-simplify",
        help="Run the simplifier over the derivative"
    ),
    expand: bool = typer.Option(
        False, "--expand/--no-expand",
        help="Enable polynomial expand pass (implies --simplify)"
    ),
    check: bool = typer.Option(
        False, "--check",
        help="Compare against SymPy at a few sample points"
    ),
):
    """
    Print the derivative of EXPRESSION.
    """
    settings = ctx.obj
    tree = parse_or_exit(settings, expression)
    derived = derivative(tree)
    if simplify or expand:
        derived = MathOptimizer(expand_polynomials=expand).optimize_tree(derived)
    console.print(Panel(escape(render(derived, latex)), title=f"d/d{escape(settings.var)}", border_style="green"))

    if check:
        rows = check_derivative(tree, derived, settings.var, CHECK_POINTS)
        table = Table(settings.var, "ours", "sympy", "ok")
        for x, ours, theirs, agrees in rows:
            table.add_row(str(x), str(ours), str(theirs), "yes" if agrees else "[red]no[/red]")
        console.print(table)
        if not all(row[3] for row in rows):
            raise typer.Exit(code=1)


@app.command("expand")
def expand_command(
    ctx: typer.Context,
    expression: str = typer.Argument(..., help="Polynomial expression to expand"),
    latex: bool = typer.Option(False, "--latex", help="Print LaTeX instead of plain text"),
):
    """
    Print EXPRESSION as a canonical polynomial.
    """
    settings = ctx.obj
    tree = parse_or_exit(settings, expression)
    result = normalize(tree)
    if not isinstance(result, Polynomial):
        console.print(f"[yellow]not a polynomial:[/yellow] {escape(render(tree, latex))}")
        raise typer.Exit(code=1)
    console.print(Panel(escape(render(result, latex)), title=f"degree {result.degree}", border_style="blue"))


@app.command("table")
def table_command(
    ctx: typer.Context,
    expression: str = typer.Argument(..., help="Expression to sample"),
    start: float = typer.Option(-1.0, "--start", help="First x-value"),
    stop: float = typer.Option(1.0, "--stop", help="End of the interval (excluded)"),
    points: int = typer.Option(10, "--points", "-n", help="Number of sample points"),
    asymptotes: str = typer.Option(
        "", "--asymptotes",
        help="Comma-delimited x-values of vertical asymptotes, e.g. '1,-2.5'"
    ),
    holes: str = typer.Option(
        "", "--holes",
        help="Comma-delimited removable discontinuities, e.g. '(1,2),(3,-4)'"
    ),
):
    """
    Tabulate EXPRESSION at evenly spaced points, as a plotter would sample it.
    Known asymptotes and holes are listed alongside the samples.
    """
    settings = ctx.obj
    tree = parse_or_exit(settings, expression)
    try:
        samples = sample(tree, start, stop, points)
    except ValueError as e:
        raise typer.BadParameter(str(e))

    rows = [(x, f"{y:g}", "") for x, y in samples]
    rows += [(x, "", "asymptote") for x in read_list(read_x_values, asymptotes, "--asymptotes")]
    rows += [(x, f"{y:g}", "hole") for x, y in read_list(read_xy_values, holes, "--holes")]
    table = Table(settings.var, escape(to_display_string(tree)), "note")
    for x, y, note in sorted(rows, key=lambda row: row[0]):
        table.add_row(f"{x:g}", y, note)
    console.print(table)


if __name__ == "__main__":
    app()
