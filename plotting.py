import os
import textwrap
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from io import BytesIO
from loguru import logger
from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.figure import Figure
from matplotlib.lines import Line2D
from matplotlib.ticker import FuncFormatter
from typing import Optional, Union

from config import SWPConfig
from constants import (
    CASHFLOW_COLOR,
    CRORE,
    DEFAULT_CLIENT_LABEL,
    DEFAULT_INVESTOR_LABEL,
    GRID_COLOR,
    LAKH,
    MARKET_DISCLOSURE,
    REPORT_FILENAME_SUFFIX,
    RUPEE_SYMBOL,
    TRAJECTORY_COLOR,
)
from simulation import SWPSummary
from utils import describe_plan, format_inr


def _style_axes(ax) -> None:
    ax.grid(True, axis="y", linestyle="--", alpha=0.4, color=GRID_COLOR)
    for side in ("top", "right", "left"):
        ax.spines[side].set_visible(False)
    ax.tick_params(axis="both", which="major", labelsize=8, colors=GRID_COLOR)


def _finite_or_nan(column: pd.Series) -> np.ndarray:
    # Overflowed amounts are left out of the chart rather than breaking the axis limits.
    values = column.to_numpy(dtype=float)
    return np.where(np.isfinite(values), values, np.nan)


def _draw_capital_trajectory(ax, schedule_df: pd.DataFrame) -> None:
    ax.set_title("Capital Growth Trajectory", fontsize=11, loc="left")
    if schedule_df.empty:
        ax.text(0.5, 0.5, "No projection to display.", transform=ax.transAxes, ha="center", va="center")
        return

    years = schedule_df["Year"].to_numpy()
    closing = _finite_or_nan(schedule_df["Closing"])
    ax.plot(years, closing, color=TRAJECTORY_COLOR, linewidth=2.5)
    ax.fill_between(years, closing, 0, color=TRAJECTORY_COLOR, alpha=0.15)
    ax.set_xlabel("Year", fontsize=9)
    ax.yaxis.set_major_formatter(
        FuncFormatter(lambda v, pos: f"{RUPEE_SYMBOL}{v / CRORE:.1f}Cr")
    )
    ax.set_xlim(left=years.min(), right=years.max() if len(years) > 1 else years.min() + 1)
    ax.set_ylim(bottom=0)
    _style_axes(ax)


def _draw_cashflow_distribution(ax, schedule_df: pd.DataFrame) -> None:
    ax.set_title("Cashflow Distribution", fontsize=11, loc="left")
    if schedule_df.empty:
        ax.text(0.5, 0.5, "No projection to display.", transform=ax.transAxes, ha="center", va="center")
        return

    positions = np.arange(len(schedule_df))
    ax.bar(positions, _finite_or_nan(schedule_df["Withdrawal"]), color=CASHFLOW_COLOR, width=0.6)
    ax.set_xticks(positions)
    ax.set_xticklabels([str(y) for y in schedule_df["Year"]], fontsize=7)
    ax.set_xlabel("Year", fontsize=9)
    ax.yaxis.set_major_formatter(
        FuncFormatter(lambda v, pos: f"{RUPEE_SYMBOL}{v / LAKH:.0f}L")
    )
    _style_axes(ax)


def _save_figure(fig: Figure, filename: str, dpi_setting: int) -> None:
    try:
        file_directory = os.path.dirname(filename)
        if file_directory:
            os.makedirs(file_directory, exist_ok=True)
        fig.savefig(filename, dpi=dpi_setting)
        logger.info(f"Chart saved to {filename} (DPI: {dpi_setting})")
    except Exception as e:
        logger.error(f"Error saving chart '{filename}': {e}", exc_info=True)
    finally:
        plt.close(fig)


def plot_capital_trajectory(
    schedule_df: pd.DataFrame,
    input_config: SWPConfig,
    filename: str,
    dpi_setting: int = 150,
) -> None:
    """Area chart of the closing corpus per year."""
    fig, ax = plt.subplots(figsize=(12, 6))
    _draw_capital_trajectory(ax, schedule_df)
    fig.suptitle(f"SWP Projection: {input_config.display_name or DEFAULT_INVESTOR_LABEL}", fontsize=12)
    fig.tight_layout()
    _save_figure(fig, filename, dpi_setting)


def plot_cashflow_distribution(
    schedule_df: pd.DataFrame,
    input_config: SWPConfig,
    filename: str,
    dpi_setting: int = 150,
) -> None:
    """Bar chart of the amount withdrawn per year."""
    fig, ax = plt.subplots(figsize=(12, 6))
    _draw_cashflow_distribution(ax, schedule_df)
    fig.suptitle(f"SWP Projection: {input_config.display_name or DEFAULT_INVESTOR_LABEL}", fontsize=12)
    fig.tight_layout()
    _save_figure(fig, filename, dpi_setting)


def _summary_page(input_config: SWPConfig, summary: SWPSummary, schedule_df: pd.DataFrame) -> Figure:
    fig = Figure(figsize=(8.27, 11.69))  # A4 portrait
    client = input_config.display_name or DEFAULT_INVESTOR_LABEL

    fig.text(0.06, 0.95, "SWP PROJECTION", fontsize=24, fontweight="bold")
    fig.text(0.06, 0.925, f"Curated for: {client}", fontsize=11, color=GRID_COLOR)
    fig.add_artist(
        Line2D([0.06, 0.94], [0.912, 0.912], color=TRAJECTORY_COLOR, linewidth=4)
    )

    fig.text(0.06, 0.885, "EXECUTIVE SUMMARY", fontsize=9, fontweight="bold", color=TRAJECTORY_COLOR)
    narrative = "\n".join(textwrap.wrap(describe_plan(input_config), width=95))
    fig.text(0.06, 0.875, narrative, fontsize=9, va="top", linespacing=1.5)

    metrics = [
        ("Total Amount Withdrawn", format_inr(summary.total_withdrawn)),
        ("Projected End Corpus", format_inr(summary.final_balance)),
        ("Total Wealth Growth", format_inr(summary.wealth_gain)),
    ]
    for i, (label, value) in enumerate(metrics):
        x_pos = 0.06 + i * 0.31
        fig.text(x_pos, 0.76, label.upper(), fontsize=7, color=GRID_COLOR, fontweight="bold")
        fig.text(x_pos, 0.735, value, fontsize=15, fontweight="bold")

    trajectory_ax = fig.add_axes([0.1, 0.42, 0.84, 0.26])
    _draw_capital_trajectory(trajectory_ax, schedule_df)
    cashflow_ax = fig.add_axes([0.1, 0.07, 0.84, 0.26])
    _draw_cashflow_distribution(cashflow_ax, schedule_df)
    return fig


def _table_pages(schedule_df: pd.DataFrame, rows_per_page: int = 35):
    headers = ["Year", "Opening Corpus", "Withdrawal", "Projected Yield", "Closing Value"]
    rows = [
        [
            f"Yr {int(row.Year)}",
            format_inr(row.Opening),
            f"-{format_inr(row.Withdrawal)}" if row.Withdrawal > 0 else "—",
            f"+{format_inr(row.Interest)}",
            format_inr(row.Closing),
        ]
        for row in schedule_df.itertuples(index=False)
    ]
    chunks = [rows[i:i + rows_per_page] for i in range(0, len(rows), rows_per_page)] or [[]]

    for page_idx, chunk in enumerate(chunks):
        fig = Figure(figsize=(8.27, 11.69))
        fig.text(0.06, 0.95, "YEARLY PERFORMANCE AUDIT", fontsize=12, fontweight="bold")
        ax = fig.add_axes([0.06, 0.2, 0.88, 0.72])
        ax.axis("off")
        if chunk:
            table = ax.table(cellText=chunk, colLabels=headers, loc="upper center", cellLoc="right")
            table.auto_set_font_size(False)
            table.set_fontsize(8)
            table.scale(1, 1.4)
        else:
            ax.text(0.5, 0.9, "No projection to display.", ha="center", va="top")

        if page_idx == len(chunks) - 1:
            fig.text(0.06, 0.12, "MARKET DISCLOSURE", fontsize=8, fontweight="bold", color="#b45309")
            fig.text(
                0.06,
                0.11,
                "\n".join(textwrap.wrap(MARKET_DISCLOSURE, width=110)),
                fontsize=7,
                va="top",
                color="#92400e",
            )
        yield fig


def report_filename(input_config: SWPConfig) -> str:
    safe_name = "".join(
        c if (c.isascii() and c.isalnum()) or c in ["_", "-", " "] else "_"
        for c in input_config.display_name
    )
    return f"{safe_name or DEFAULT_CLIENT_LABEL}{REPORT_FILENAME_SUFFIX}"


def write_pdf_report(
    schedule_df: pd.DataFrame,
    summary: SWPSummary,
    input_config: SWPConfig,
    target: Union[str, BytesIO],
) -> Optional[Union[str, BytesIO]]:
    """
    Writes the multi-page A4 report: summary and charts first, then the yearly table
    with the market disclosure on its last page. Pages are standalone ``Figure``
    objects, never registered with pyplot, so reports can be rendered off the
    main thread.

    Args:
        schedule_df: Schedule as returned by ``schedule_to_dataframe``.
        summary: Headline figures for the same schedule.
        input_config: The plan the schedule was projected from.
        target: File path or an in-memory buffer.

    Returns:
        The target on success, None if the report could not be written.
    """
    try:
        if isinstance(target, str) and os.path.dirname(target):
            os.makedirs(os.path.dirname(target), exist_ok=True)
        with PdfPages(target) as pdf:
            fig = _summary_page(input_config, summary, schedule_df)
            pdf.savefig(fig)
            for fig in _table_pages(schedule_df):
                pdf.savefig(fig)
    except Exception as e:
        logger.error(f"Error writing PDF report '{target}': {e}", exc_info=True)
        return None

    if isinstance(target, str):
        logger.info(f"PDF report saved to {target}")
    return target
