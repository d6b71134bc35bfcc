"""Typer CLI interface for taxcompare."""

import json
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

import typer

app = typer.Typer(
    name="taxcompare",
    help="W-2 vs 1099 tax comparison and quarterly estimated-tax planning.",
)

FILING_STATUS_HELP = "Filing status: single, mfj, mfs, hoh"


@app.callback()
def main(
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR). Defaults to TAXCOMPARE_LOG_LEVEL.",
    ),
) -> None:
    """W-2 vs 1099 tax comparison and quarterly estimated-tax planning."""
    from taxcompare.config import get_settings

    level = (log_level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _money(value: float | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


def _filing_status(value: str) -> Any:
    from taxcompare.models.enums import FilingStatus

    try:
        return FilingStatus(value.strip().lower())
    except ValueError:
        valid = ", ".join(fs.value for fs in FilingStatus)
        _fail(f"Invalid filing status '{value}'. Valid: {valid}")


def _tax_year(year: int | None) -> int:
    from taxcompare.config import get_settings

    return year if year is not None else get_settings().default_tax_year


def _repository() -> Any:
    """Rule repository built from settings: a JSON overlay directory or the built-ins."""
    from taxcompare.config import get_settings
    from taxcompare.repository import TaxRuleRepository

    settings = get_settings()
    if settings.rules_dir is not None:
        return TaxRuleRepository.from_directory(settings.rules_dir, strict=settings.strict_rules)
    return TaxRuleRepository.builtin(strict=settings.strict_rules)


def _load_facts(facts_file: Path | None) -> dict:
    from taxcompare.exceptions import DataValidationError

    if facts_file is None:
        return {}
    if not facts_file.exists():
        raise DataValidationError("facts_file", f"{facts_file} not found")
    try:
        data = json.loads(facts_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DataValidationError("facts_file", f"not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise DataValidationError("facts_file", "must contain a JSON object")
    return data


def _amount_table(title: str, rows: list[tuple[str, Decimal]]) -> Any:
    from rich.table import Table

    table = Table(title=title, show_header=False, padding=(0, 1))
    table.add_column("", style="cyan", min_width=28)
    table.add_column("", justify="right", style="green")
    for label, value in rows:
        table.add_row(label, f"${value:,.2f}")
    return table


def _print_warnings(warnings: list[str], missing: list[str] | None = None) -> None:
    for warning in warnings:
        typer.echo(f"  [!] {warning}")
    for name in missing or []:
        typer.echo(f"  [?] Missing input: {name}")


# ---------------------------------------------------------------------------
# compare
# ---------------------------------------------------------------------------


@app.command()
def compare(
    salary: float = typer.Option(..., "--salary", help="Annual W-2 salary"),
    income_1099: float = typer.Option(..., "--income-1099", help="Annual 1099 gross income"),
    state: str = typer.Option(..., "--state", help="Two-letter state code"),
    expenses: float = typer.Option(0.0, "--expenses", help="Annual 1099 business expenses"),
    filing_status: str = typer.Option("single", "--filing-status", "-s", help=FILING_STATUS_HELP),
    year: int | None = typer.Option(None, "--year", "-y", help="Tax year"),
    use_itemized: bool = typer.Option(
        False, "--use-itemized", help="Apply state itemized deduction rules"
    ),
    facts_file: Path | None = typer.Option(
        None, "--facts-file", help="JSON file with scenario facts (HSA, treasury interest, ...)"
    ),
    premium: bool = typer.Option(False, "--premium", help="Show the detailed breakdown"),
) -> None:
    """Compare take-home pay for W-2 employment vs 1099 contracting."""
    from pydantic import ValidationError
    from rich.console import Console
    from rich.panel import Panel

    from taxcompare.engines.estimator import TaxEstimator
    from taxcompare.engines.summary import build_free_result, build_premium_result
    from taxcompare.exceptions import TaxComputationError
    from taxcompare.models.scenario import ScenarioInput

    fs = _filing_status(filing_status)
    try:
        scenario = ScenarioInput(
            w2_salary=_money(salary),
            income_1099=_money(income_1099),
            expenses=_money(expenses),
            state=state,
            filing_status=fs,
            tax_year=_tax_year(year),
            use_itemized=use_itemized,
            facts=_load_facts(facts_file),
        )
        result = TaxEstimator(_repository()).compare_scenarios(scenario)
    except ValidationError as e:
        _fail(str(e))
    except TaxComputationError as e:
        _fail(str(e))

    console = Console()
    w2 = result.w2
    contractor = result.contractor

    if premium:
        detail = build_premium_result(result)
        console.print(
            _amount_table(
                "W-2",
                [
                    ("Gross", w2.gross),
                    ("Federal Tax", detail.federal_tax_w2),
                    ("State Tax", detail.state_tax_w2),
                    ("FICA", detail.fica_tax_w2),
                    ("Net Income", w2.net_income),
                ],
            )
        )
        console.print(
            _amount_table(
                "1099",
                [
                    ("Gross", contractor.gross),
                    ("Expenses", contractor.expenses),
                    ("Half SE Tax Deduction", contractor.deductible_half),
                    ("Federal Tax", detail.federal_tax_1099),
                    ("State Tax", detail.state_tax_1099),
                    ("Self-Employment Tax", detail.self_employment_tax_1099),
                    ("Net Income", contractor.net_income),
                ],
            )
        )
        typer.echo(f"  Effective rate W-2:   {detail.effective_tax_rate_w2 * 100:>8.2f}%")
        typer.echo(f"  Effective rate 1099:  {detail.effective_tax_rate_1099 * 100:>8.2f}%")
        typer.echo("")
        typer.echo("Assumptions:")
        for line in detail.assumptions:
            typer.echo(f"  - {line}")
        for line in detail.recommendations:
            typer.echo(f"  * {line}")
    else:
        free = build_free_result(result)
        console.print(
            _amount_table(
                "Net Income",
                list(zip(free.chart_labels, free.chart_values)),
            )
        )

    typer.echo("")
    typer.echo(f"  Winner:              {result.winner.value:>12}")
    typer.echo(f"  Annual difference:  ${abs(result.annual_difference):>12,.2f}")
    typer.echo(f"  Monthly difference: ${abs(result.monthly_difference):>12,.2f}")
    typer.echo(f"  Break-even 1099:    ${result.break_even_1099_income:>12,.2f}")
    typer.echo("")
    console.print(Panel("\n".join(result.summary), title="[bold]Summary[/bold]", border_style="cyan"))
    _print_warnings(result.warnings)


# ---------------------------------------------------------------------------
# se-tax
# ---------------------------------------------------------------------------


@app.command(name="se-tax")
def se_tax(
    net_profit: float = typer.Argument(..., help="Schedule C net profit"),
    w2_wages: float = typer.Option(0.0, "--w2-wages", help="W-2 wages for the same year"),
    filing_status: str = typer.Option("single", "--filing-status", "-s", help=FILING_STATUS_HELP),
    year: int | None = typer.Option(None, "--year", "-y", help="Tax year"),
) -> None:
    """Compute self-employment tax."""
    from taxcompare.engines.estimator import TaxEstimator
    from taxcompare.exceptions import TaxComputationError

    fs = _filing_status(filing_status)
    try:
        result = TaxEstimator(_repository()).compute_self_employment_tax(
            _money(net_profit), _money(w2_wages), fs, _tax_year(year)
        )
    except TaxComputationError as e:
        _fail(str(e))

    typer.echo(f"  Net earnings:          ${result.net_earnings:>12,.2f}")
    typer.echo(f"  SS taxable:            ${result.ss_taxable:>12,.2f}")
    typer.echo(f"  Social Security tax:   ${result.ss_tax:>12,.2f}")
    typer.echo(f"  Medicare tax:          ${result.medicare_tax:>12,.2f}")
    typer.echo(f"  Additional Medicare:   ${result.additional_medicare_tax:>12,.2f}")
    typer.echo(f"  Total SE tax:          ${result.total:>12,.2f}")
    typer.echo(f"  Deductible half:       ${result.deductible_half:>12,.2f}")


# ---------------------------------------------------------------------------
# state-tax
# ---------------------------------------------------------------------------


@app.command(name="state-tax")
def state_tax(
    federal_agi: float = typer.Argument(..., help="Federal AGI"),
    state: str = typer.Option(..., "--state", help="Two-letter state code"),
    filing_status: str = typer.Option("single", "--filing-status", "-s", help=FILING_STATUS_HELP),
    year: int | None = typer.Option(None, "--year", "-y", help="Tax year"),
    federal_taxable_income: float | None = typer.Option(
        None, "--federal-taxable-income", help="Federal taxable income, for states that start there"
    ),
    use_itemized: bool = typer.Option(
        False, "--use-itemized", help="Apply state itemized deduction rules"
    ),
    facts_file: Path | None = typer.Option(
        None, "--facts-file", help="JSON file with scenario facts"
    ),
) -> None:
    """Run the state tax-base pipeline for one state."""
    from pydantic import ValidationError
    from rich.console import Console
    from rich.table import Table

    from taxcompare.engines.estimator import TaxEstimator
    from taxcompare.exceptions import TaxComputationError
    from taxcompare.models.scenario import ScenarioFacts

    fs = _filing_status(filing_status)
    try:
        facts = ScenarioFacts.model_validate(_load_facts(facts_file))
        result = TaxEstimator(_repository()).compute_state_tax(
            _money(federal_agi),
            state,
            fs,
            _tax_year(year),
            facts=facts,
            federal_taxable_income=_money(federal_taxable_income),
            use_itemized=use_itemized,
        )
    except ValidationError as e:
        _fail(str(e))
    except TaxComputationError as e:
        _fail(str(e))

    console = Console()
    console.print(
        _amount_table(
            f"{result.state} {result.tax_year}",
            [
                ("State AGI", result.state_agi),
                ("Taxable Base", result.taxable_base),
                ("Tax Before Credits", result.tax_before_credits),
                ("Credits", result.credits),
                ("State Tax", result.tax),
            ],
        )
    )

    if result.applied:
        applied = Table(title="Applied Rules")
        applied.add_column("Rule", style="cyan")
        applied.add_column("Kind")
        applied.add_column("Amount", justify="right", style="green")
        for item in result.applied:
            applied.add_row(item.id, item.kind.value, f"${item.amount:,.2f}")
        console.print(applied)

    for note in result.notes:
        typer.echo(f"  - {note}")
    _print_warnings(result.warnings, result.missing_inputs)


# ---------------------------------------------------------------------------
# quarterly
# ---------------------------------------------------------------------------


@app.command()
def quarterly(
    net_profit: float = typer.Option(..., "--net-profit", help="Expected annual net profit"),
    state: str = typer.Option(..., "--state", help="Two-letter state code"),
    filing_status: str = typer.Option("single", "--filing-status", "-s", help=FILING_STATUS_HELP),
    year: int | None = typer.Option(None, "--year", "-y", help="Tax year"),
    other_income: float = typer.Option(0.0, "--other-income", help="Other taxable income"),
    withholding: float = typer.Option(0.0, "--withholding", help="Expected total withholding"),
    facts_file: Path | None = typer.Option(
        None,
        "--facts-file",
        help="JSON file with facts (wages, investment income, dependents, prior-year tax, ...)",
    ),
    premium: bool = typer.Option(False, "--premium", help="Enable premium calculators"),
    strategy: str | None = typer.Option(
        None, "--strategy", help="Payment strategy (premium): safeHarbor or currentYear"
    ),
    business_type: str | None = typer.Option(
        None, "--business-type", help="QBI business type (premium): nonSstb or sstb"
    ),
    use_itemized: bool = typer.Option(
        False, "--use-itemized", help="Itemize deductions (premium)"
    ),
    payment: list[float] | None = typer.Option(
        None, "--payment", help="Estimated payment for a quarter, in order (premium, repeatable)"
    ),
    payments_ytd: float | None = typer.Option(
        None, "--payments-ytd", help="Estimated payments made so far this year (premium)"
    ),
    as_of: str | None = typer.Option(
        None, "--as-of", help="Evaluate penalty risk as of this date, YYYY-MM-DD (premium)"
    ),
) -> None:
    """Plan quarterly estimated-tax payments for self-employed income."""
    from pydantic import ValidationError
    from rich.console import Console
    from rich.table import Table

    from taxcompare.engines.quarterly import QuarterlyEstimator
    from taxcompare.exceptions import TaxComputationError
    from taxcompare.models.scenario import QuarterlyInput

    fs = _filing_status(filing_status)

    # Only pass premium-only fields the user actually set
    data: dict[str, Any] = {
        "filing_status": fs,
        "state": state,
        "tax_year": _tax_year(year),
        "net_profit": _money(net_profit),
        "other_income": _money(other_income),
        "withholding": _money(withholding),
    }
    if strategy is not None:
        data["strategy"] = strategy
    if business_type is not None:
        data["business_type"] = business_type
    if use_itemized:
        data["use_itemized"] = True
    if payment:
        data["estimated_payments_by_quarter"] = [_money(p) for p in payment]
    if payments_ytd is not None:
        data["estimated_payments_ytd"] = _money(payments_ytd)
    if as_of is not None:
        try:
            data["as_of"] = date.fromisoformat(as_of)
        except ValueError:
            _fail(f"Invalid --as-of date '{as_of}'. Use YYYY-MM-DD.")

    try:
        data["facts"] = _load_facts(facts_file)
        inputs = QuarterlyInput.model_validate(data)
        result = QuarterlyEstimator(_repository()).estimate(inputs, is_premium=premium)
    except ValidationError as e:
        _fail(str(e))
    except TaxComputationError as e:
        _fail(str(e))

    annual = result.annual
    rows = [
        ("Gross Income", annual.gross_income),
        ("AGI", annual.agi),
        ("Deduction", annual.deduction),
        ("Federal Taxable Income", annual.taxable_income_federal),
        ("Self-Employment Tax", annual.se_tax),
    ]
    if premium:
        rows += [
            ("QBI Deduction", annual.qbi_deduction),
            ("Federal Tax Before Credits", annual.federal_income_tax_before_credits),
            ("Federal Tax After Credits", annual.federal_income_tax_after_credits),
            ("NIIT", annual.niit_tax),
            ("State Credits", annual.state_credits),
        ]
    rows += [
        ("Federal Total", annual.federal_total),
        ("State Income Tax", annual.state_income_tax),
        ("Total Tax", annual.total_tax),
        ("Remaining After Withholding", annual.remaining_after_withholding),
        ("Net Take-Home", annual.net_take_home),
    ]

    console = Console()
    console.print(_amount_table(f"{result.tax_year} Annual Estimate ({result.tier})", rows))

    payments = Table(title=f"Quarterly Payments ({result.strategy.value})")
    payments.add_column("Quarter", style="cyan")
    payments.add_column("Due")
    payments.add_column("Amount", justify="right", style="green")
    for p in result.quarterly:
        payments.add_row(p.label, p.due_date_label, f"${p.amount:,.2f}")
    console.print(payments)

    if result.safe_harbor is not None:
        typer.echo(
            f"  Safe harbor:  ${result.safe_harbor.annual:>12,.2f} "
            f"({result.safe_harbor.multiplier * 100:.0f}% of prior-year tax)"
        )

    if result.penalty_risk is not None:
        _print_penalty_risk(console, result.penalty_risk)

    for note in result.notes:
        typer.echo(f"  - {note}")
    _print_warnings(result.warnings)


# ---------------------------------------------------------------------------
# safe-harbor / penalty-risk
# ---------------------------------------------------------------------------


@app.command(name="safe-harbor")
def safe_harbor(
    prior_year_tax: float = typer.Argument(..., help="Prior-year total tax"),
    prior_year_agi: float | None = typer.Option(None, "--prior-year-agi", help="Prior-year AGI"),
    filing_status: str = typer.Option("single", "--filing-status", "-s", help=FILING_STATUS_HELP),
) -> None:
    """Compute the prior-year safe-harbor payment requirement."""
    from taxcompare.engines.safe_harbor import compute_safe_harbor_requirement

    fs = _filing_status(filing_status)
    result = compute_safe_harbor_requirement(
        fs, _money(prior_year_tax), _money(prior_year_agi)
    )

    typer.echo(f"  Multiplier:        {result.multiplier * 100:>12.0f}%")
    typer.echo(f"  Annual required:  ${result.annual:>12,.2f}")
    typer.echo(f"  Per quarter:      ${result.quarterly:>12,.2f}")


@app.command(name="penalty-risk")
def penalty_risk(
    annual_required: float = typer.Argument(..., help="Annual payment requirement"),
    withholding: float = typer.Option(0.0, "--withholding", help="Expected total withholding"),
    year: int | None = typer.Option(None, "--year", "-y", help="Tax year"),
    payment: list[float] | None = typer.Option(
        None, "--payment", help="Estimated payment for a quarter, in order (repeatable)"
    ),
    payments_ytd: float | None = typer.Option(
        None, "--payments-ytd", help="Estimated payments made so far this year"
    ),
    as_of: str | None = typer.Option(None, "--as-of", help="Evaluate as of YYYY-MM-DD"),
) -> None:
    """Check cumulative payments against each quarterly due date."""
    from rich.console import Console

    from taxcompare.engines.safe_harbor import compute_quarterly_penalty_risk

    as_of_date = None
    if as_of is not None:
        try:
            as_of_date = date.fromisoformat(as_of)
        except ValueError:
            _fail(f"Invalid --as-of date '{as_of}'. Use YYYY-MM-DD.")
    if payment and len(payment) > 4:
        _fail("At most four --payment values (one per quarter)")

    result = compute_quarterly_penalty_risk(
        _money(annual_required),
        _money(withholding),
        _tax_year(year),
        payments_by_quarter=[_money(p) for p in payment] if payment else None,
        payments_ytd=_money(payments_ytd),
        as_of=as_of_date,
    )
    _print_penalty_risk(Console(), result)
    for note in result.notes:
        typer.echo(f"  - {note}")


def _print_penalty_risk(console: Any, result: Any) -> None:
    from rich.table import Table

    table = Table(title="Penalty Risk")
    table.add_column("Quarter", style="cyan")
    table.add_column("Due")
    table.add_column("Required", justify="right")
    table.add_column("Paid", justify="right")
    table.add_column("Shortfall", justify="right")
    table.add_column("Status")
    for q in result.quarters:
        if not q.is_due:
            status = "[dim]not due[/dim]"
        elif q.underpaid:
            status = "[bold red]UNDERPAID[/bold red]"
        else:
            status = "[green]ok[/green]"
        table.add_row(
            q.label,
            q.due_date.isoformat(),
            f"${q.cumulative_required:,.2f}",
            f"${q.cumulative_paid:,.2f}",
            f"${q.shortfall:,.2f}",
            status,
        )
    console.print(table)
    typer.echo("  Protected: yes" if result.protected else "  Protected: NO")
