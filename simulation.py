import math
import pandas as pd
from typing import List, Optional, Tuple, Union
from loguru import logger
from pydantic import BaseModel

from config import SWPConfig
from constants import MONTHS_PER_YEAR, PERCENT


SCHEDULE_COLUMNS: List[str] = ["Year", "Opening", "Withdrawal", "Interest", "Closing"]

# Whole units after rounding; overflowed or NaN figures are reported as-is.
Amount = Union[int, float]


class YearRecord(BaseModel):
    """One row of the amortization schedule, monetary fields rounded to whole units."""

    year: int
    opening: Amount
    withdrawal: Amount
    interest: Amount
    closing: Amount


class SWPSummary(BaseModel):
    total_withdrawn: Amount
    final_balance: Amount
    wealth_gain: float
    depletion_year: Optional[int] = None


def _round_half_up(value: float) -> Amount:
    if not math.isfinite(value):
        return value
    return int(math.floor(value + 0.5))


def _years_to_simulate(tenure_years: float) -> int:
    if not math.isfinite(tenure_years) or tenure_years <= 0:
        return 0
    return int(math.floor(tenure_years))


def project(
    investment: float,
    monthly_withdrawal: float,
    annual_rate_pct: float,
    tenure_years: int,
    defer_years: int,
    step_up_pct: float,
) -> List[YearRecord]:
    """
    Projects a Systematic Withdrawal Plan year by year.

    Each month interest is credited on the running balance first, then (once the
    deferment window has passed) the month's withdrawal is taken, capped at what
    is left in the corpus. The monthly withdrawal steps up at the end of every
    year after deferment. Only the reported figures are rounded; the running
    balance keeps full precision from month to month.

    Args:
        investment: Initial corpus.
        monthly_withdrawal: Withdrawal per month in the first withdrawal year.
        annual_rate_pct: Annual return in percent, compounded monthly.
        tenure_years: Number of years to project. Non-positive gives an empty schedule.
        defer_years: Years with no withdrawal at the start of the plan.
        step_up_pct: Yearly growth of the monthly withdrawal, in percent.

    Returns:
        One YearRecord per projected year, in chronological order.
    """
    monthly_rate = annual_rate_pct / PERCENT / MONTHS_PER_YEAR
    balance = investment
    current_monthly_withdrawal = monthly_withdrawal
    schedule: List[YearRecord] = []

    for year in range(1, _years_to_simulate(tenure_years) + 1):
        opening = balance
        year_interest = 0.0
        year_withdrawal = 0.0
        withdrawing = year > defer_years

        for _ in range(MONTHS_PER_YEAR):
            monthly_interest = balance * monthly_rate
            balance += monthly_interest
            year_interest += monthly_interest

            if withdrawing:
                withdrawal = min(balance, current_monthly_withdrawal)
                balance -= withdrawal
                year_withdrawal += withdrawal

        schedule.append(
            YearRecord(
                year=year,
                opening=_round_half_up(opening),
                withdrawal=_round_half_up(year_withdrawal),
                interest=_round_half_up(year_interest),
                closing=_round_half_up(max(balance, 0)),
            )
        )

        # Also runs after the final year; the grown amount is simply never used.
        if withdrawing:
            current_monthly_withdrawal *= 1 + step_up_pct / PERCENT
        if balance <= 0:
            balance = 0.0

    return schedule


def depletion_year(schedule: List[YearRecord], investment: float) -> Optional[int]:
    """Returns the first year that closes with an empty corpus, if any."""
    if not schedule or not investment > 0:
        return None
    for record in schedule:
        if record.closing <= 0:
            return record.year
    return None


def summarize(schedule: List[YearRecord], investment: float) -> SWPSummary:
    """Reduces a schedule to its headline figures, measured against the original investment."""
    total_withdrawn = sum(record.withdrawal for record in schedule)
    final_balance = schedule[-1].closing if schedule else 0
    return SWPSummary(
        total_withdrawn=total_withdrawn,
        final_balance=final_balance,
        wealth_gain=final_balance + total_withdrawn - investment,
        depletion_year=depletion_year(schedule, investment),
    )


def schedule_to_dataframe(schedule: List[YearRecord]) -> pd.DataFrame:
    if not schedule:
        return pd.DataFrame(columns=SCHEDULE_COLUMNS)
    return pd.DataFrame(
        [
            [r.year, r.opening, r.withdrawal, r.interest, r.closing]
            for r in schedule
        ],
        columns=SCHEDULE_COLUMNS,
    )


def run_projection(config: SWPConfig) -> Tuple[List[YearRecord], SWPSummary]:
    """Runs the projection and summary for a validated configuration."""
    schedule = project(
        config.investment,
        config.monthly_withdrawal,
        config.annual_rate_pct,
        config.tenure_years,
        config.defer_years,
        config.step_up_pct,
    )
    summary = summarize(schedule, config.investment)
    logger.debug(
        f"Projected {len(schedule)} years for '{config.display_name or 'N/A'}': "
        f"withdrawn={summary.total_withdrawn}, final={summary.final_balance}, gain={summary.wealth_gain:.0f}"
    )
    return schedule, summary
