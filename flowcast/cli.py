"""
Command-Line Interface for flowcast.

Purpose
-------
Runs projections, goal checks and debt payoff estimates on profile files
without writing Python code, and manages profile files built up from
partial updates.

Commands
--------
- project: Project a profile and print the period table
- goals: Goal feasibility for a profile
- payoff: Payoff estimates and amortization schedules for debts
- health: Financial-health grade and expense breakdown
- profile: Validate, display, merge and create profile files
- info: Package and dependency versions

Example Usage
-------------
    # Project 8 quarters with one year of history
    $ flowcast project profile.json --granularity quarterly --periods 8 --back 4

    # Fold a partial update into a profile
    $ flowcast profile merge profile.json update.json -o profile.json

    # Show version
    $ flowcast --version
"""

from __future__ import annotations

import json
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import AppSettings, ProjectionConfig
from .debt import amortization_schedule, estimate_payoff_months
from .engine import ProjectionEngine, ProjectionResult
from .exceptions import FlowcastError
from .log import setup_logging
from .profile import FinancialProfile, Granularity, RiskTolerance
from .serialization import (
    apply_update,
    load_profile,
    profile_from_dict,
    profile_to_dict,
    result_to_dict,
    save_profile,
    save_result,
)
from .utils import format_currency

_GRANULARITIES = [g.value for g in Granularity]
_RISK_LEVELS = [r.value for r in RiskTolerance]


def _fail(ctx: click.Context, message: str, exc: Optional[BaseException] = None) -> None:
    click.echo(f"Error: {message}", err=True)
    if exc is not None and ctx.obj.get("settings") and ctx.obj["settings"].debug:
        raise exc
    ctx.exit(1)


def _load(ctx: click.Context, path: Path) -> FinancialProfile:
    try:
        return load_profile(path)
    except FlowcastError as e:
        _fail(ctx, str(e), e)


def _as_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


def _projection_config(
    ctx: click.Context,
    periods: Optional[int],
    back: int,
    granularity: Optional[str],
    risk: Optional[str],
    as_of: Optional[datetime],
    capitalize_interest: bool = False,
    variability: bool = True,
) -> ProjectionConfig:
    settings: AppSettings = ctx.obj["settings"]
    values = {
        "periods_forward": periods or settings.default_periods_forward,
        "periods_back": back,
        "granularity": granularity or settings.default_granularity,
        "risk_tolerance": risk,
        "capitalize_unpaid_interest": capitalize_interest,
        "include_variability": variability,
    }
    if as_of is not None:
        values["as_of"] = _as_date(as_of)
    return ProjectionConfig(**values)


_PERIOD_OPTIONS = [
    click.option("--periods", "-n", type=click.IntRange(min=1), default=None,
                 help="Forward periods (default: FLOWCAST_DEFAULT_PERIODS_FORWARD or 12)"),
    click.option("--back", "-b", type=click.IntRange(min=0), default=0,
                 help="Trailing historical periods (default: 0)"),
    click.option("--granularity", "-g", type=click.Choice(_GRANULARITIES), default=None,
                 help="Override the profile's granularity"),
    click.option("--risk", "-r", type=click.Choice(_RISK_LEVELS), default=None,
                 help="Override the profile's risk tolerance"),
    click.option("--as-of", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
                 help="Projection start date (default: first of this month)"),
]


def period_options(func):
    for option in reversed(_PERIOD_OPTIONS):
        func = option(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="flowcast")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
              default=None, help="Logging level (default: FLOWCAST_LOG_LEVEL or WARNING)")
@click.pass_context
def main(ctx: click.Context, quiet: bool, log_level: Optional[str]) -> None:
    """
    flowcast - personal cash-flow projection.

    Projects recurring income and spending, debts, investments and
    one-off events over months, quarters or years.

    Use 'flowcast COMMAND --help' for command-specific help.
    """
    settings = AppSettings()
    setup_logging(log_level or settings.log_level)
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["settings"] = settings
    ctx.obj["console"] = Console()


# ---------------------------------------------------------------------------
# project
# ---------------------------------------------------------------------------

def _render_projection(console: Console, result: ProjectionResult) -> None:
    table = Table(title="Projection", show_header=True)
    table.add_column("Period", style="cyan")
    table.add_column("Income", justify="right")
    table.add_column("Expenses", justify="right")
    table.add_column("Debt", justify="right")
    table.add_column("Investments", justify="right")
    table.add_column("Cash", justify="right")
    table.add_column("Net worth", justify="right", style="bold")
    for s in result.snapshots:
        label = f"{s.period_label}*" if s.is_historical else s.period_label
        flag = " !" if s.is_insolvent else ""
        table.add_row(
            label,
            format_currency(s.income),
            format_currency(s.expenses),
            format_currency(s.total_debt_balance),
            format_currency(s.investments.expected),
            format_currency(s.cash_balance) + flag,
            format_currency(s.net_worth),
        )
    console.print(table)
    if any(s.is_historical for s in result.snapshots):
        console.print("[dim]* historical context[/dim]")

    seen = set()
    for w in result.warnings:
        if w.message not in seen:
            seen.add(w.message)
            console.print(f"[yellow]warning:[/yellow] {w.message}")


@main.command()
@click.argument("profile_file", type=click.Path(exists=True, path_type=Path))
@period_options
@click.option("--capitalize-interest", is_flag=True,
              help="Grow non-amortizing debt by its unpaid interest")
@click.option("--no-variability", is_flag=True, help="Skip income/expense variability bands")
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None,
              help="Write the full result as JSON")
@click.option("--csv", "csv_path", type=click.Path(path_type=Path), default=None,
              help="Write the period table as CSV")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def project(
    ctx: click.Context,
    profile_file: Path,
    periods: Optional[int],
    back: int,
    granularity: Optional[str],
    risk: Optional[str],
    as_of: Optional[datetime],
    capitalize_interest: bool,
    no_variability: bool,
    output: Optional[Path],
    csv_path: Optional[Path],
    as_json: bool,
) -> None:
    """
    Project a profile over the requested periods.

    Example:
        flowcast project profile.json -g quarterly -n 8 --back 4
    """
    console: Console = ctx.obj["console"]
    quiet = ctx.obj.get("quiet", False)

    profile = _load(ctx, profile_file)
    cfg = _projection_config(
        ctx, periods, back, granularity, risk, as_of, capitalize_interest, not no_variability
    )
    try:
        result = ProjectionEngine(cfg).run(profile)
    except FlowcastError as e:
        _fail(ctx, str(e), e)

    if output is not None:
        save_result(result, output)
        if not quiet:
            console.print(f"[green]Saved result to {output}[/green]")
    if csv_path is not None:
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        result.to_frame().to_csv(csv_path)
        if not quiet:
            console.print(f"[green]Saved table to {csv_path}[/green]")

    if as_json:
        click.echo(json.dumps(result_to_dict(result), indent=2))
    elif not quiet:
        _render_projection(console, result)


# ---------------------------------------------------------------------------
# goals
# ---------------------------------------------------------------------------

@main.command()
@click.argument("profile_file", type=click.Path(exists=True, path_type=Path))
@period_options
@click.pass_context
def goals(
    ctx: click.Context,
    profile_file: Path,
    periods: Optional[int],
    back: int,
    granularity: Optional[str],
    risk: Optional[str],
    as_of: Optional[datetime],
) -> None:
    """
    Check whether each goal is affordable by its target date.

    Example:
        flowcast goals profile.json --as-of 2026-01-01
    """
    console: Console = ctx.obj["console"]
    profile = _load(ctx, profile_file)
    if not profile.goals:
        click.echo("No goals in profile")
        return

    cfg = _projection_config(ctx, periods, back, granularity, risk, as_of)
    try:
        result = ProjectionEngine(cfg).run(profile)
    except FlowcastError as e:
        _fail(ctx, str(e), e)

    table = Table(title="Goal feasibility", show_header=True)
    table.add_column("Goal", style="cyan")
    table.add_column("Target date")
    table.add_column("Target", justify="right")
    table.add_column("Projected", justify="right")
    table.add_column("Shortfall", justify="right")
    table.add_column("Status", style="bold")
    colors = {"achievable": "green", "shortfall": "yellow", "overdue": "red"}
    for f in result.goal_feasibility:
        status = f.status.value
        table.add_row(
            f.goal.label,
            f.goal.target_date.isoformat(),
            format_currency(f.goal.target_amount),
            format_currency(f.projected_cash_at_target),
            format_currency(f.shortfall),
            f"[{colors[status]}]{status}[/{colors[status]}]",
        )
    console.print(table)


# ---------------------------------------------------------------------------
# payoff
# ---------------------------------------------------------------------------

@main.command()
@click.argument("profile_file", type=click.Path(exists=True, path_type=Path))
@click.option("--schedule", "-s", "account_name", default=None,
              help="Print the monthly amortization schedule of this account")
@click.option("--months", "-m", type=click.IntRange(min=1), default=12,
              help="Months in the schedule (default: 12)")
@click.pass_context
def payoff(ctx: click.Context, profile_file: Path, account_name: Optional[str], months: int) -> None:
    """
    Estimate months to payoff for every debt account.

    Example:
        flowcast payoff profile.json --schedule credit_card --months 24
    """
    console: Console = ctx.obj["console"]
    profile = _load(ctx, profile_file)
    if not profile.debt_accounts:
        click.echo("No debt accounts in profile")
        return

    if account_name is not None:
        account = next((a for a in profile.debt_accounts if a.name == account_name), None)
        if account is None:
            _fail(ctx, f"No debt account named {account_name!r}")
        frame = amortization_schedule(account, months)
        table = Table(title=f"Amortization: {account.name}", show_header=True)
        table.add_column("Month", style="cyan")
        for column in ("payment", "interest", "principal", "balance"):
            table.add_column(column.capitalize(), justify="right")
        for month, row in frame.iterrows():
            table.add_row(
                month.strftime("%b %Y"),
                format_currency(row["payment"], 2),
                format_currency(row["interest"], 2),
                format_currency(row["principal"], 2),
                format_currency(row["balance"], 2),
            )
        console.print(table)
        return

    table = Table(title="Debt payoff", show_header=True)
    table.add_column("Account", style="cyan")
    table.add_column("Balance", justify="right")
    table.add_column("APR", justify="right")
    table.add_column("Payment", justify="right")
    table.add_column("Months to payoff", justify="right", style="bold")
    for account in profile.debt_accounts:
        estimate = estimate_payoff_months(account)
        table.add_row(
            account.name,
            format_currency(account.principal_balance),
            f"{account.annual_percentage_rate:.2f}%",
            format_currency(account.monthly_payment),
            "never" if estimate is None else str(estimate),
        )
    console.print(table)


# ---------------------------------------------------------------------------
# health
# ---------------------------------------------------------------------------

def _percent(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{value:.0%}"


@main.command()
@click.argument("profile_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def health(ctx: click.Context, profile_file: Path) -> None:
    """
    Grade a profile's monthly cash flow and break down its expenses.

    Example:
        flowcast health profile.json
    """
    console: Console = ctx.obj["console"]
    totals = _load(ctx, profile_file).totals()

    colors = {"A+": "green", "B": "yellow", "C": "dark_orange", "D": "red"}
    grade = totals.health_grade
    lines = [
        f"Grade:         [bold {colors[grade]}]{grade}[/bold {colors[grade]}]",
        f"Net flow:      {format_currency(totals.net_cash_flow)}/mo",
        f"Savings rate:  {_percent(totals.savings_rate)}",
        f"Expense ratio: {_percent(totals.expense_ratio)}",
    ]
    if totals.recommendations:
        lines.append("")
        lines.extend(f"- {r.message}" for r in totals.recommendations)
    console.print(Panel("\n".join(lines), title="Financial Health"))

    if totals.expense_breakdown:
        table = Table(title="Expense categories", show_header=True)
        table.add_column("Category", style="cyan")
        table.add_column("Amount", justify="right")
        table.add_column("Share", justify="right")
        for share in totals.expense_breakdown:
            table.add_row(share.category, format_currency(share.amount), f"{share.share:.0%}")
        console.print(table)


# ---------------------------------------------------------------------------
# profile
# ---------------------------------------------------------------------------

@main.group()
def profile() -> None:
    """
    Profile file management commands.

    Validate, display, merge and create profile files.
    """


@profile.command("validate")
@click.argument("profile_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def profile_validate(ctx: click.Context, profile_file: Path) -> None:
    """
    Validate a profile file.

    Example:
        flowcast profile validate profile.json
    """
    console: Console = ctx.obj["console"]
    quiet = ctx.obj.get("quiet", False)
    try:
        loaded = load_profile(profile_file)
    except FlowcastError as e:
        click.echo(f"Profile validation failed: {e}", err=True)
        ctx.exit(1)

    totals = loaded.totals()
    if quiet:
        click.echo("Profile is valid")
        return
    summary = (
        "[bold]Profile Valid[/bold]\n\n"
        f"Income:      {format_currency(totals.total_income)}/mo\n"
        f"Expenses:    {format_currency(totals.total_expenses)}/mo\n"
        f"Savings:     {format_currency(totals.total_savings)}/mo\n"
        f"Investments: {format_currency(totals.total_investments)}/mo\n"
        f"Debt:        {format_currency(totals.total_debt_balance)} "
        f"({len(loaded.debt_accounts)} accounts)\n"
        f"Net flow:    {format_currency(totals.net_cash_flow)}/mo (grade {totals.health_grade})\n"
        f"Lump sums: {len(loaded.lump_sums)}  Goals: {len(loaded.goals)}"
    )
    console.print(Panel(summary, title="Profile Summary", border_style="green"))


@profile.command("show")
@click.argument("profile_file", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "-f", "fmt", type=click.Choice(["json", "table"]), default="table")
@click.pass_context
def profile_show(ctx: click.Context, profile_file: Path, fmt: str) -> None:
    """
    Display a profile in table or JSON format.
    """
    console: Console = ctx.obj["console"]
    loaded = _load(ctx, profile_file)

    if fmt == "json":
        click.echo(json.dumps(profile_to_dict(loaded), indent=2))
        return

    flows = Table(title="Recurring monthly flows", show_header=True)
    flows.add_column("Kind", style="cyan")
    flows.add_column("Category")
    flows.add_column("Amount", justify="right")
    for kind, mapping in (
        ("income", loaded.recurring_income),
        ("expense", loaded.recurring_expenses),
        ("savings", loaded.recurring_savings_contributions),
        ("investment", loaded.recurring_investment_contributions),
    ):
        for category, amount in mapping.items():
            flows.add_row(kind, category, format_currency(amount, 2))
    console.print(flows)

    if loaded.debt_accounts:
        debts = Table(title="Debt accounts", show_header=True)
        debts.add_column("Name", style="cyan")
        debts.add_column("Balance", justify="right")
        debts.add_column("APR", justify="right")
        debts.add_column("Payment", justify="right")
        for a in loaded.debt_accounts:
            debts.add_row(
                a.name,
                format_currency(a.principal_balance, 2),
                f"{a.annual_percentage_rate:.2f}%",
                format_currency(a.monthly_payment, 2),
            )
        console.print(debts)

    if loaded.lump_sums or loaded.goals:
        events = Table(title="Dated events", show_header=True)
        events.add_column("Date")
        events.add_column("Kind", style="cyan")
        events.add_column("Description")
        events.add_column("Amount", justify="right")
        for e in loaded.lump_sums:
            events.add_row(
                e.effective_date.isoformat(), e.direction.value, e.description,
                format_currency(e.signed_amount, 2),
            )
        for g in loaded.goals:
            events.add_row(
                g.target_date.isoformat(), f"goal ({g.priority.value})", g.label,
                format_currency(g.target_amount, 2),
            )
        console.print(events)


@profile.command("merge")
@click.argument("profile_file", type=click.Path(exists=True, path_type=Path))
@click.argument("update_file", type=click.Path(exists=True, path_type=Path))
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None,
              help="Where to write the merged profile (default: print JSON)")
@click.pass_context
def profile_merge(ctx: click.Context, profile_file: Path, update_file: Path, output: Optional[Path]) -> None:
    """
    Fold a partial update file into a profile.

    Example:
        flowcast profile merge profile.json update.json -o profile.json
    """
    console: Console = ctx.obj["console"]
    quiet = ctx.obj.get("quiet", False)
    base = _load(ctx, profile_file)
    try:
        with open(update_file, "r", encoding="utf-8") as f:
            update = json.load(f)
        merged = apply_update(base, update)
    except json.JSONDecodeError as e:
        _fail(ctx, f"{update_file}: invalid JSON ({e.msg})", e)
    except UnicodeDecodeError as e:
        _fail(ctx, f"{update_file}: not valid UTF-8", e)
    except FlowcastError as e:
        _fail(ctx, str(e), e)

    if output is None:
        click.echo(json.dumps(profile_to_dict(merged), indent=2))
        return
    save_profile(merged, output)
    if not quiet:
        console.print(f"[green]Merged profile written to {output}[/green]")


_TEMPLATES = {
    "empty": {},
    "sample": {
        "recurringIncome": {"salary": 5000},
        "recurringExpenses": {"housing": 1500, "food": 600, "transport": 250},
        "recurringSavingsContributions": {"emergency_fund": 300},
        "recurringInvestmentContributions": {"index_fund": 400},
        "debtAccounts": [
            {"name": "credit_card", "principalBalance": 2500,
             "annualPercentageRate": 22.0, "monthlyPayment": 120},
        ],
        "lumpSums": [],
        "goals": [],
        "riskTolerance": "medium",
        "granularity": "monthly",
        "startingCash": 1000,
        "startingInvestments": 0,
    },
}


@profile.command("create")
@click.argument("output_file", type=click.Path(path_type=Path))
@click.option("--template", "-t", type=click.Choice(sorted(_TEMPLATES)), default="sample")
@click.pass_context
def profile_create(ctx: click.Context, output_file: Path, template: str) -> None:
    """
    Create a profile file from a template.

    Example:
        flowcast profile create profile.json --template sample
    """
    console: Console = ctx.obj["console"]
    created = profile_from_dict(_TEMPLATES[template])
    save_profile(created, output_file)
    if not ctx.obj.get("quiet", False):
        console.print(f"[green]Created profile file: {output_file}[/green]")


# ---------------------------------------------------------------------------
# info
# ---------------------------------------------------------------------------

@main.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """
    Display package and dependency versions.
    """
    console: Console = ctx.obj["console"]

    from importlib.metadata import PackageNotFoundError, version

    info_lines = [
        f"flowcast Version: {__version__}",
        f"Python: {sys.version.split()[0]}",
    ]
    for name in ("numpy", "pandas", "pydantic", "pydantic-settings", "click", "rich"):
        try:
            info_lines.append(f"{name}: {version(name)}")
        except PackageNotFoundError:
            info_lines.append(f"{name}: not installed")

    console.print(Panel("\n".join(info_lines), title="System Information"))


if __name__ == "__main__":
    main()
