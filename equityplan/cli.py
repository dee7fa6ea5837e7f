"""Typer CLI interface for equityplan."""

import json
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

import typer
from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel
from rich.console import Console
from rich.table import Table

from equityplan.engines.advisor import ExerciseAdvisor
from equityplan.engines.aggregator import PortfolioAggregator
from equityplan.engines.dates import parse_date
from equityplan.engines.exits import ExitStrategyAnalyzer
from equityplan.engines.scenarios import ScenarioComparator, scenarios_from_multipliers
from equityplan.engines.tax import EquityTaxEngine
from equityplan.engines.vesting import VestingEngine
from equityplan.exceptions import EquityPlanError, InvalidOptionError
from equityplan.ingestion.grants import load_grants
from equityplan.models.decisions import CompanyProfile, FinancialProfile
from equityplan.models.enums import CompanyStage, MarketConditions, RiskTolerance, TaxModel
from equityplan.models.exits import ExitParameters
from equityplan.models.grant import Grant
from equityplan.models.tax import Scenario, TaxResult, TaxSettings

app = typer.Typer(
    name="equityplan",
    help="Vesting, tax and exercise planning for ISO, NSO and RSU grants.",
)

# Shared tax options
INCOME_OPTION = typer.Option(150000.0, "--income", help="Other taxable income for the year")
FILING_STATUS_OPTION = typer.Option(
    "SINGLE", "--filing-status", "-s", help="Filing status: SINGLE, MFJ, MFS, HOH"
)
FEDERAL_RATE_OPTION = typer.Option(0.35, "--federal-rate", help="Flat federal rate (flat model)")
STATE_RATE_OPTION = typer.Option(0.10, "--state-rate", help="Flat state income tax rate")
STATE_OPTION = typer.Option("CA", "--state", help="State of residence")
TAX_YEAR_OPTION = typer.Option(2025, "--tax-year", help="Tax year for bracket tables")
FLAT_OPTION = typer.Option(False, "--flat", help="Use the flat-rate tax model instead of brackets")
JSON_OPTION = typer.Option(False, "--json", help="Output as JSON")
INDEX_OPTION = typer.Option(0, "--index", "-i", help="Which grant in the file to use (0-based)")
AS_OF_OPTION = typer.Option(None, "--as-of", help="Evaluation date (YYYY-MM-DD), default today")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Vesting, tax and exercise planning for ISO, NSO and RSU grants."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fail(error: EquityPlanError) -> typer.Exit:
    typer.echo(f"Error: {error}", err=True)
    return typer.Exit(1)


def _parse_date_option(value: str | None, option: str) -> date:
    if value is None:
        return date.today()
    parsed = parse_date(value)
    if parsed is None:
        raise InvalidOptionError(option, f"'{value}' is not a YYYY-MM-DD date")
    return parsed


def _select_grant(grants: list[Grant], index: int) -> Grant:
    if not grants:
        raise InvalidOptionError("--index", "the grants file contains no grants")
    if index < 0 or index >= len(grants):
        raise InvalidOptionError("--index", f"{index} is out of range (0-{len(grants) - 1})")
    return grants[index]


def _tax_settings(
    income: float,
    filing_status: str,
    federal_rate: float,
    state_rate: float,
    state: str,
    tax_year: int,
    flat: bool,
) -> TaxSettings:
    try:
        return TaxSettings(
            income=Decimal(str(income)),
            filing_status=filing_status,
            federal_rate=Decimal(str(federal_rate)),
            state_rate=Decimal(str(state_rate)),
            state_of_residence=state.upper(),
            tax_year=tax_year,
            tax_model=TaxModel.FLAT if flat else TaxModel.BRACKETED,
        )
    except ValidationError as e:
        first = e.errors()[0]
        field = str(first["loc"][0]) if first["loc"] else "tax settings"
        raise InvalidOptionError(field, first["msg"]) from e


def _scenario_for_price(price: float, long_term: bool) -> Scenario:
    try:
        return Scenario(name=f"${price:,.2f}", exit_price=Decimal(str(price)), is_long_term=long_term)
    except ValidationError as e:
        raise InvalidOptionError("--exit-price", f"'{price}' must be zero or greater") from e


EXIT_OPTIONS = {
    "ipo_multiplier": "--ipo-multiple",
    "acquisition_multiplier": "--acquisition-multiple",
    "secondary_multiplier": "--secondary-multiple",
    "secondary_discount": "--secondary-discount",
    "earnout_fraction": "--earnout",
    "net_worth": "--net-worth",
}


def _exit_parameters(**values: Any) -> ExitParameters:
    for field in EXIT_OPTIONS:
        values[field] = Decimal(str(values[field]))
    try:
        return ExitParameters(**values)
    except ValidationError as e:
        first = e.errors()[0]
        field = str(first["loc"][0]) if first["loc"] else ""
        options = {to_camel(name): option for name, option in EXIT_OPTIONS.items()} | EXIT_OPTIONS
        raise InvalidOptionError(options.get(field, field), first["msg"]) from e


def _echo_json(payload: Any) -> None:
    if isinstance(payload, BaseModel):
        data = payload.model_dump(mode="json", by_alias=True)
    elif isinstance(payload, list):
        data = [item.model_dump(mode="json", by_alias=True) for item in payload]
    else:
        data = payload
    typer.echo(json.dumps(data, indent=2))


def _money(value: Decimal) -> str:
    return f"${value:,.2f}"


def _grant_label(grant: Grant) -> str:
    return f"{grant.company_name or 'Unknown'} {grant.grant_type.value}"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def vesting(
    grants_file: Path = typer.Argument(..., help="JSON file with one grant or a list of grants"),
    as_of: str | None = AS_OF_OPTION,
    schedule: bool = typer.Option(False, "--schedule", help="Also print every vesting event"),
    json_output: bool = JSON_OPTION,
) -> None:
    """Show vesting progress for every grant in a file."""
    try:
        grants = load_grants(grants_file)
        as_of_date = _parse_date_option(as_of, "--as-of")
    except EquityPlanError as e:
        raise _fail(e)

    engine = VestingEngine()
    results = [engine.evaluate_at(grant, as_of_date) for grant in grants]

    if json_output:
        _echo_json(results)
        return

    console = Console()
    table = Table(title=f"Vesting as of {as_of_date}", show_header=True)
    table.add_column("Grant", style="cyan")
    table.add_column("Total", justify="right")
    table.add_column("Vested", justify="right", style="green")
    table.add_column("%", justify="right")
    table.add_column("Next Date")
    table.add_column("Next Shares", justify="right")
    for grant, result in zip(grants, results):
        next_date = str(result.next_vesting_date) if result.next_vesting_date else "-"
        if result.is_double_trigger:
            next_date = "liquidity event"
        table.add_row(
            _grant_label(grant),
            f"{result.total_shares:,}",
            f"{result.vested_shares:,}",
            f"{result.vested_percentage:.1f}",
            next_date,
            f"{result.next_vesting_shares:,}",
        )
    console.print(table)

    if schedule:
        for grant, result in zip(grants, results):
            events = Table(title=f"Schedule: {_grant_label(grant)}", show_header=True)
            events.add_column("Date")
            events.add_column("Event")
            events.add_column("Cumulative", justify="right")
            for event in result.schedule:
                events.add_row(str(event.date), event.label.value, f"{event.cumulative_shares_vested:,}")
            console.print(events)


@app.command()
def timeline(
    grants_file: Path = typer.Argument(..., help="JSON file with one grant or a list of grants"),
    start: str | None = typer.Option(None, "--start", help="First day of the timeline (YYYY-MM-DD)"),
    months: int = typer.Option(36, "--months", "-m", help="Months to look ahead"),
    json_output: bool = JSON_OPTION,
) -> None:
    """Month-by-month vesting across all grants."""
    try:
        grants = load_grants(grants_file)
        start_date = _parse_date_option(start, "--start")
    except EquityPlanError as e:
        raise _fail(e)

    buckets = PortfolioAggregator().combined_schedule(grants, start_date, max(months, 0))

    if json_output:
        _echo_json(buckets)
        return

    if not buckets:
        typer.echo("No upcoming vesting in this window.")
        return

    table = Table(title=f"Vesting timeline from {start_date}", show_header=True)
    table.add_column("Month", style="cyan")
    table.add_column("Shares", justify="right")
    table.add_column("Value", justify="right", style="green")
    table.add_column("Cumulative Shares", justify="right")
    table.add_column("Cumulative Value", justify="right")
    for bucket in buckets:
        table.add_row(
            bucket.month,
            f"{bucket.shares:,}",
            _money(bucket.value),
            f"{bucket.cumulative_shares:,}",
            _money(bucket.cumulative_value),
        )
    Console().print(table)


@app.command()
def portfolio(
    grants_file: Path = typer.Argument(..., help="JSON file with one grant or a list of grants"),
    as_of: str | None = AS_OF_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Vested value and exercise cost across the whole portfolio."""
    try:
        grants = load_grants(grants_file)
        as_of_date = _parse_date_option(as_of, "--as-of")
    except EquityPlanError as e:
        raise _fail(e)

    summary = PortfolioAggregator().portfolio_summary(grants, as_of_date)

    if json_output:
        _echo_json(summary)
        return

    table = Table(title=f"Portfolio as of {as_of_date}", show_header=False, padding=(0, 1))
    table.add_column("", style="cyan", min_width=24)
    table.add_column("", justify="right", style="green")
    table.add_row("Total Shares", f"{summary.total_shares:,}")
    table.add_row("Vested Shares", f"{summary.vested_shares:,}")
    table.add_row("Unvested Shares", f"{summary.unvested_shares:,}")
    table.add_row("Vested Value", _money(summary.current_value))
    table.add_row("Exercise Cost", _money(summary.exercise_cost))
    table.add_row("Potential Gain", _money(summary.potential_gain))
    for item in summary.value_by_company:
        table.add_row(f"  {item.name}", f"{item.percentage:.1f}%")
    Console().print(table)


@app.command()
def liquidity(
    grants_file: Path = typer.Argument(..., help="JSON file with one grant or a list of grants"),
    event_date: str = typer.Option(..., "--date", help="Liquidity event date (YYYY-MM-DD)"),
    price: float = typer.Option(..., "--price", help="Share price at the liquidity event"),
    index: int = INDEX_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """What a liquidity event releases for a double-trigger RSU grant."""
    try:
        grant = _select_grant(load_grants(grants_file), index)
        when = _parse_date_option(event_date, "--date")
    except EquityPlanError as e:
        raise _fail(e)

    result = VestingEngine().evaluate_liquidity_event(grant, when, Decimal(str(price)))

    if json_output:
        _echo_json(result)
        return

    if not result.applicable:
        typer.echo(result.message)
        return
    typer.echo(f"Time-vested shares released:  {result.vested_after_event:>12,}")
    typer.echo(f"Taxable income at vest:       {_money(result.taxable_income):>12}")
    typer.echo(f"Shares still unvested:        {result.remaining_unvested_shares:>12,}")


@app.command()
def tax(
    grants_file: Path = typer.Argument(..., help="JSON file with one grant or a list of grants"),
    exit_price: float = typer.Option(..., "--exit-price", "-p", help="Per-share sale price"),
    shares: int | None = typer.Option(None, "--shares", help="Shares to exercise and sell (default: all)"),
    exercise_price: float | None = typer.Option(
        None, "--exercise-price", help="Per-share exercise price (default: strike)"
    ),
    long_term: bool = typer.Option(False, "--long-term", help="Treat the sale as long-term / qualifying"),
    index: int = INDEX_OPTION,
    income: float = INCOME_OPTION,
    filing_status: str = FILING_STATUS_OPTION,
    federal_rate: float = FEDERAL_RATE_OPTION,
    state_rate: float = STATE_RATE_OPTION,
    state: str = STATE_OPTION,
    tax_year: int = TAX_YEAR_OPTION,
    flat: bool = FLAT_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Tax and net proceeds for exercising and selling one grant."""
    try:
        grant = _select_grant(load_grants(grants_file), index)
        settings = _tax_settings(income, filing_status, federal_rate, state_rate, state, tax_year, flat)
    except EquityPlanError as e:
        raise _fail(e)

    result = EquityTaxEngine().compute_tax(
        grant,
        Decimal(str(exercise_price)) if exercise_price is not None else None,
        Decimal(str(exit_price)),
        shares if shares is not None else grant.shares_total,
        long_term,
        settings,
    )

    if json_output:
        _echo_json(result)
        return

    _print_tax_result(result, _grant_label(grant))


def _print_tax_result(result: TaxResult, title: str) -> None:
    console = Console()
    table = Table(title=f"Tax: {title}", show_header=False, padding=(0, 1))
    table.add_column("", style="cyan", min_width=24)
    table.add_column("", justify="right", style="green")
    table.add_row("Exercise Cost", _money(result.totals.exercise_cost))
    table.add_row("Gross Proceeds", _money(result.totals.gross_proceeds))
    table.add_row("Total Income", _money(result.totals.total_income))
    table.add_row("Ordinary Income", _money(result.federal.ordinary_income))
    table.add_row("Short-Term Gains", _money(result.federal.short_term_gains))
    table.add_row("Long-Term Gains", _money(result.federal.long_term_gains))
    table.add_row("Federal Tax", _money(result.federal.federal_tax))
    if result.amt is not None:
        table.add_row("AMT Due", _money(result.amt.net_amt_due))
    for entry in result.state.state_breakdown:
        table.add_row(f"State Tax ({entry.state_code})", _money(entry.state_tax))
    table.add_row("Total Tax", _money(result.totals.total_tax))
    table.add_row("Effective Rate", f"{result.totals.effective_rate:.1%}")
    table.add_row("Net Proceeds", _money(result.totals.net_proceeds))
    console.print(table)


@app.command()
def compare(
    grants_file: Path = typer.Argument(..., help="JSON file with one grant or a list of grants"),
    exit_prices: list[float] | None = typer.Option(
        None, "--exit-price", "-p", help="Exit price to compare (repeatable). Default: common IPO/acquisition multiples"
    ),
    long_term: bool = typer.Option(False, "--long-term", help="Treat the sales as long-term"),
    shares: int | None = typer.Option(None, "--shares", help="Shares per scenario (default: vested at --as-of, else all)"),
    as_of: str | None = typer.Option(None, "--as-of", help="Use shares vested on this date (YYYY-MM-DD)"),
    index: int = INDEX_OPTION,
    income: float = INCOME_OPTION,
    filing_status: str = FILING_STATUS_OPTION,
    federal_rate: float = FEDERAL_RATE_OPTION,
    state_rate: float = STATE_RATE_OPTION,
    state: str = STATE_OPTION,
    tax_year: int = TAX_YEAR_OPTION,
    flat: bool = FLAT_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Compare net proceeds and ROI across exit scenarios."""
    try:
        grant = _select_grant(load_grants(grants_file), index)
        settings = _tax_settings(income, filing_status, federal_rate, state_rate, state, tax_year, flat)
        as_of_date = _parse_date_option(as_of, "--as-of") if as_of is not None else None
        if exit_prices:
            scenarios = [_scenario_for_price(price, long_term) for price in exit_prices]
        else:
            scenarios = scenarios_from_multipliers(grant, is_long_term=long_term)
    except EquityPlanError as e:
        raise _fail(e)

    rows = ScenarioComparator().compare_scenarios(grant, scenarios, settings, shares=shares, as_of=as_of_date)

    if json_output:
        _echo_json(rows)
        return

    table = Table(title=f"Scenarios: {_grant_label(grant)}", show_header=True)
    table.add_column("Scenario", style="cyan")
    table.add_column("Exit", justify="right")
    table.add_column("Cost", justify="right")
    table.add_column("Tax", justify="right")
    table.add_column("Net", justify="right", style="green")
    table.add_column("Rate", justify="right")
    table.add_column("ROI", justify="right")
    for row in rows:
        table.add_row(
            row.name,
            _money(row.exit_price),
            _money(row.exercise_cost),
            _money(row.tax_amount),
            _money(row.net_proceeds),
            f"{row.effective_tax_rate:.1%}",
            f"{row.roi:,.0f}%",
        )
    Console().print(table)


@app.command()
def advise(
    grants_file: Path = typer.Argument(..., help="JSON file with one grant or a list of grants"),
    cash: float = typer.Option(..., "--cash", help="Cash available for exercising"),
    stage: str = typer.Option("unknown", "--stage", help="Company stage: early, growth, late, pre-ipo"),
    growth_rate: float = typer.Option(0.0, "--growth-rate", help="Annual company growth rate in percent"),
    risk: str = typer.Option("medium", "--risk", help="Risk tolerance: low, medium, high"),
    other_investments: float = typer.Option(0.0, "--other-investments", help="Investments outside this company"),
    debt: float = typer.Option(0.0, "--debt", help="Outstanding debt"),
    monthly_expenses: float = typer.Option(0.0, "--monthly-expenses", help="Monthly expenses (default: $5,000)"),
    retirement_savings: float = typer.Option(0.0, "--retirement-savings", help="Current retirement savings"),
    age: int = typer.Option(35, "--age", help="Your age"),
    as_of: str | None = AS_OF_OPTION,
    index: int = INDEX_OPTION,
    income: float = INCOME_OPTION,
    filing_status: str = FILING_STATUS_OPTION,
    federal_rate: float = FEDERAL_RATE_OPTION,
    state_rate: float = STATE_RATE_OPTION,
    state: str = STATE_OPTION,
    tax_year: int = TAX_YEAR_OPTION,
    flat: bool = FLAT_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Recommend whether to exercise a grant now."""
    try:
        grant = _select_grant(load_grants(grants_file), index)
        settings = _tax_settings(income, filing_status, federal_rate, state_rate, state, tax_year, flat)
        as_of_date = _parse_date_option(as_of, "--as-of")
        try:
            company = CompanyProfile(stage=CompanyStage(stage.lower()), growth_rate=growth_rate)
        except ValueError as e:
            raise InvalidOptionError("--stage", f"'{stage}' is not a known company stage") from e
        try:
            profile = FinancialProfile(
                available_cash=Decimal(str(max(cash, 0.0))),
                income=settings.income,
                risk_tolerance=RiskTolerance(risk.lower()),
                other_investments=Decimal(str(max(other_investments, 0.0))),
                debt=Decimal(str(max(debt, 0.0))),
                monthly_expenses=Decimal(str(max(monthly_expenses, 0.0))),
                retirement_savings=Decimal(str(max(retirement_savings, 0.0))),
                age=max(age, 0),
            )
        except ValueError as e:
            raise InvalidOptionError("--risk", f"'{risk}' is not low, medium or high") from e
    except EquityPlanError as e:
        raise _fail(e)

    strategy = ExerciseAdvisor().exercise_strategy(grant, profile, company, settings, as_of_date)

    if json_output:
        _echo_json(strategy)
        return

    rec = strategy.recommendation
    typer.echo(f"=== Recommendation: {_grant_label(grant)} ===")
    typer.echo(f"  Action:      {rec.action.value}")
    typer.echo(f"  Confidence:  {rec.confidence.value}")
    typer.echo(f"  Score:       {rec.overall_score:.2f}")
    typer.echo("")
    typer.echo("REASONS:")
    for reason in rec.reasons:
        typer.echo(f"  - {reason}")
    if rec.details:
        typer.echo("")
        typer.echo("FACTORS:")
        for detail in rec.details:
            marker = "+" if detail.impact.value == "positive" else "-"
            typer.echo(f"  [{marker}] {detail.message}")

    optimal = strategy.optimal_exercise
    typer.echo("")
    typer.echo("SIZING:")
    typer.echo(f"  Vested Shares:        {optimal.vested_shares:>12,}")
    typer.echo(f"  Recommended Shares:   {optimal.recommended_shares:>12,}")
    typer.echo(f"  Exercise Cost:        {_money(optimal.exercise_cost_only):>12}")
    typer.echo(f"  Estimated Tax:        {_money(optimal.estimated_tax_impact):>12}")

    if strategy.special_situations:
        typer.echo("")
        typer.echo("SPECIAL SITUATIONS:")
        for situation in strategy.special_situations:
            typer.echo(f"  - {situation.description} {situation.impact}")

    if strategy.early_exercise is not None:
        early = strategy.early_exercise
        typer.echo("")
        typer.echo("EARLY EXERCISE:")
        typer.echo(f"  Unvested Shares:      {early.unvested_shares:>12,}")
        typer.echo(f"  Exercise Cost:        {_money(early.exercise_cost):>12}")
        typer.echo(f"  Tax Now:              {_money(early.tax_now):>12}")
        typer.echo(f"  Tax At Vest:          {_money(early.tax_at_vest):>12}")
        typer.echo(f"  Advice:               {early.recommendation.value:>12}")

    if strategy.insights:
        typer.echo("")
        typer.echo("INSIGHTS:")
        for insight in strategy.insights:
            typer.echo(f"  [{insight.priority.value}] {insight.title}")
            typer.echo(f"      {insight.content}")


@app.command()
def exits(
    grants_file: Path = typer.Argument(..., help="JSON file with one grant or a list of grants"),
    as_of: str | None = AS_OF_OPTION,
    exit_date: str | None = typer.Option(None, "--exit-date", help="Exit date (YYYY-MM-DD), default --as-of"),
    ipo_multiple: float = typer.Option(10.0, "--ipo-multiple", help="IPO price as a multiple of current FMV"),
    acquisition_multiple: float = typer.Option(
        8.0, "--acquisition-multiple", help="Acquisition price as a multiple of current FMV"
    ),
    secondary_multiple: float = typer.Option(
        5.0, "--secondary-multiple", help="Secondary price as a multiple of current FMV, before the discount"
    ),
    secondary_discount: float = typer.Option(0.2, "--secondary-discount", help="Secondary sale discount (0-1)"),
    earnout: float = typer.Option(0.0, "--earnout", help="Share of the acquisition paid as an earnout (0-1)"),
    net_worth: float = typer.Option(500000.0, "--net-worth", help="Net worth for concentration risk"),
    market: str = typer.Option("neutral", "--market", help="Market conditions: favorable, neutral, unfavorable"),
    income: float = INCOME_OPTION,
    filing_status: str = FILING_STATUS_OPTION,
    federal_rate: float = FEDERAL_RATE_OPTION,
    state_rate: float = STATE_RATE_OPTION,
    state: str = STATE_OPTION,
    tax_year: int = TAX_YEAR_OPTION,
    flat: bool = FLAT_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Compare IPO, acquisition and secondary-sale exits for the whole portfolio."""
    try:
        grants = load_grants(grants_file)
        settings = _tax_settings(income, filing_status, federal_rate, state_rate, state, tax_year, flat)
        as_of_date = _parse_date_option(as_of, "--as-of")
        exit_on = _parse_date_option(exit_date, "--exit-date") if exit_date is not None else None
        try:
            conditions = MarketConditions(market.lower())
        except ValueError as e:
            raise InvalidOptionError("--market", f"'{market}' is not favorable, neutral or unfavorable") from e
        params = _exit_parameters(
            exit_date=exit_on,
            ipo_multiplier=ipo_multiple,
            acquisition_multiplier=acquisition_multiple,
            secondary_multiplier=secondary_multiple,
            secondary_discount=secondary_discount,
            earnout_fraction=earnout,
            net_worth=net_worth,
            market_conditions=conditions,
        )
    except EquityPlanError as e:
        raise _fail(e)

    analysis = ExitStrategyAnalyzer().analyze(grants, settings, params, as_of_date)

    if json_output:
        _echo_json(analysis)
        return

    table = Table(title="Exit strategies", show_header=True)
    table.add_column("Exit", style="cyan")
    table.add_column("Strategy")
    table.add_column("Shares", justify="right")
    table.add_column("Tax", justify="right")
    table.add_column("Net", justify="right", style="green")
    for exit_analysis in (analysis.ipo, analysis.acquisition, analysis.secondary):
        for outcome in exit_analysis.strategies:
            marker = " *" if outcome.name == exit_analysis.optimal_strategy else ""
            table.add_row(
                exit_analysis.exit_type.value,
                f"{outcome.name}{marker}",
                f"{outcome.shares:,}",
                _money(outcome.total_tax),
                _money(outcome.net_proceeds),
            )
    Console().print(table)

    risk = analysis.risk_factors
    typer.echo(
        f"Risk: timing {risk.timing.score}, concentration {risk.concentration.score}, "
        f"market {risk.market_conditions.score} (overall {risk.overall_score:.1f})"
    )
    if analysis.recommended is None:
        typer.echo("No vested shares to sell at this exit date.")
        return
    recommended = analysis.recommended
    typer.echo(
        f"Recommended: {recommended.exit_type.value} / {recommended.strategy} "
        f"({_money(recommended.net_proceeds)} net)"
    )
