import math
from typing import List

import pandas as pd
from loguru import logger

from config import SWPConfig
from constants import CRORE, LAKH, RUPEE_SYMBOL
from simulation import SWPSummary


def _group_indian(digits: str) -> str:
    """Inserts separators the en-IN way: last three digits, then pairs (12,34,567)."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs: List[str] = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_inr(value: float) -> str:
    """
    Formats an amount in rupees using compact Indian units.

    Amounts of a crore or more are shown in crore, amounts of a lakh or more in
    lakh, both with two decimals. Smaller amounts are rounded to whole rupees
    and grouped the Indian way. Overflowed or NaN amounts are shown as such.
    """
    if math.isnan(value):
        return f"{RUPEE_SYMBOL}NaN"
    if math.isinf(value):
        return f"{RUPEE_SYMBOL}{'-' if value < 0 else ''}Infinity"
    if value >= CRORE:
        return f"{RUPEE_SYMBOL}{value / CRORE:.2f} Cr"
    if value >= LAKH:
        return f"{RUPEE_SYMBOL}{value / LAKH:.2f} L"
    rounded = int(math.floor(value + 0.5))
    sign = "-" if rounded < 0 else ""
    return f"{RUPEE_SYMBOL}{sign}{_group_indian(str(abs(rounded)))}"


def _format_pct(value: float) -> str:
    return f"{value:g}%"


def describe_plan(config: SWPConfig) -> str:
    """Builds the executive-summary sentence for a plan."""
    parts = [
        f"This personalized financial projection outlines a lump sum investment of {format_inr(config.investment)}, "
        f"strategically positioned at an expected rate of return of {_format_pct(config.annual_rate_pct)} per annum."
    ]
    if config.defer_years > 0:
        parts.append(
            f" After a planned deferment period of {config.defer_years} years, the"
        )
    else:
        parts.append(" The")
    parts.append(
        f" portfolio is scheduled to provide a monthly Systematic Withdrawal (SWP) starting at {format_inr(config.monthly_withdrawal)}."
    )
    if config.step_up_pct > 0:
        parts.append(
            f" To counter inflation, the withdrawal amount is modeled to increase by {_format_pct(config.step_up_pct)} annually"
        )
        parts.append(f" over a total duration of {config.tenure_years} years.")
    else:
        parts.append(f" The plan runs over a total duration of {config.tenure_years} years.")
    return "".join(parts)


def log_input_parameters(config: SWPConfig) -> None:
    """Logs the input parameters for the projection."""
    logger.info(f"--- Input Parameters For Client: {config.display_name or 'N/A'} ---")
    config_as_dict_for_logging = config.model_dump(by_alias=False)
    for key, value in config_as_dict_for_logging.items():
        if key == "client_name":
            continue
        label = key.replace("_", " ").title().replace("Pct", "(%)")
        if key.endswith("_pct"):
            logger.info(f"{label}: {value:.2f}%")
        elif key in ("investment", "monthly_withdrawal"):
            logger.info(f"{label}: {format_inr(value)} ({value:,.2f})")
        else:
            logger.info(f"{label}: {value}")
    logger.info("--- End of Input Parameters ---")


def log_projection_results(
    config: SWPConfig,
    summary: SWPSummary,
    schedule_df: pd.DataFrame,
) -> None:
    """Logs the headline figures and the yearly schedule."""
    logger.info(f"--- Projection Results for Client: '{config.display_name or 'N/A'}' ---")
    logger.info(f"Total Amount Withdrawn: {format_inr(summary.total_withdrawn)}")
    logger.info(f"Projected End Corpus: {format_inr(summary.final_balance)}")
    logger.info(f"Total Wealth Growth: {format_inr(summary.wealth_gain)}")
    if summary.depletion_year is not None:
        logger.warning(
            f"Corpus is exhausted in year {summary.depletion_year} of {config.tenure_years}."
        )

    if schedule_df.empty:
        logger.info("Schedule is empty.")
        return
    logger.info("Yearly Performance Audit:")
    for line in schedule_df.to_string(index=False).splitlines():
        logger.info(f"  {line}")
