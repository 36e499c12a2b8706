# display.py
# All terminal output for the dry-run convergence harness.
#
# This module owns presentation entirely. The harness and the engine never
# format strings — they call named functions here.
#
# Two consoles:
#   console — trace output on stderr, silent; each harness gets its own
#             via trace_console() and passes it as `out`
#   report  — CLI results on stdout, always printed
#
# Colour language:
#   cyan    — run-list / expansion events
#   magenta — intercepted actions
#   green   — success / confirmed
#   red     — failures, halts

from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from converge_harness.models import ResourceDeclaration

console = Console(stderr=True, quiet=True)
report = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    if len(value) > max_len:
        return value[:max_len] + "…"
    return value


def trace_console(verbose: bool) -> Console:
    """A stderr console owned by one harness; silent unless `verbose`."""
    return Console(stderr=True, quiet=not verbose)


def _out(out: Console | None) -> Console:
    return out if out is not None else console


# ---------------------------------------------------------------------------
# Convergence trace
# ---------------------------------------------------------------------------


def converge_start(run_list: list[str], out: Console | None = None) -> None:
    out = _out(out)
    out.print()
    out.print(Rule(f"[cyan]DRY-RUN CONVERGE — {escape(', '.join(run_list)) or '(empty run-list)'}[/cyan]", style="cyan"))


def recipe_loaded(recipe: str, path: Any, out: Console | None = None) -> None:
    _out(out).print(_label("EXPAND", "cyan"), f"[cyan] Loading recipe[/cyan] [bold white]{escape(recipe)}[/bold white] [dim]{escape(str(path))}[/dim]")


def resource_intercepted(resource: Any, action: str, out: Console | None = None) -> None:
    """Trace line for one intercepted action; provenance only when the resource carries it."""
    line = f"Processing {resource} action {action}"
    defined_at = getattr(resource, "defined_at", None)
    if defined_at:
        line += f" ({defined_at})"
    _out(out).print(f"  [magenta]↳[/magenta] [white]{escape(line)}[/white]")


def converge_complete(count: int, out: Console | None = None) -> None:
    _out(out).print(f"  [bold green]✓ Recorded {count} resource action(s)[/bold green] [dim](nothing was changed)[/dim]")


def converge_failed(reason: str, out: Console | None = None) -> None:
    _out(out).print(
        Panel(
            f"[bold red]{escape(reason)}[/bold red]\n[dim]No resources were recorded for this pass.[/dim]",
            title=_label("CONVERGE FAILED ✗", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )


# ---------------------------------------------------------------------------
# CLI report
# ---------------------------------------------------------------------------


def recorded_summary(declarations: list[ResourceDeclaration], run_list: list[str]) -> None:
    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="cyan",
        show_header=True,
        header_style="bold cyan",
        padding=(0, 1),
    )
    table.add_column("#", justify="right", width=4)
    table.add_column("Resource", style="bold white", no_wrap=True)
    table.add_column("Action", style="magenta", no_wrap=True)
    table.add_column("Declared at", style="dim white", overflow="fold")

    for index, decl in enumerate(declarations, start=1):
        table.add_row(str(index), escape(_mono(str(decl), 60)), decl.action, escape(decl.defined_at or "-"))

    report.print(
        Panel(
            table,
            title=_label("WOULD CONVERGE", "cyan"),
            subtitle=f"[dim]Run-list: {escape(', '.join(run_list))}[/dim]",
            border_style="cyan",
            padding=(0, 1),
        )
    )


def halt(reason: str) -> None:
    report.print(
        Panel(
            f"[bold white]{escape(reason)}[/bold white]",
            title=_label("HALT", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )
