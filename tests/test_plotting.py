"""Tests for chart output and the PDF report."""

from io import BytesIO

import pytest

from config import SWPConfig
from plotting import (
    plot_capital_trajectory,
    plot_cashflow_distribution,
    report_filename,
    write_pdf_report,
)
from simulation import run_projection, schedule_to_dataframe, summarize


@pytest.fixture
def projected(sample_config_dict):
    config = SWPConfig(**sample_config_dict)
    schedule, summary = run_projection(config)
    return config, schedule_to_dataframe(schedule), summary


def test_charts_are_written(tmp_path, projected):
    config, schedule_df, _ = projected
    trajectory = tmp_path / "charts" / "traj.png"
    cashflow = tmp_path / "charts" / "cash.png"

    plot_capital_trajectory(schedule_df, config, str(trajectory))
    plot_cashflow_distribution(schedule_df, config, str(cashflow))

    assert trajectory.read_bytes().startswith(b"\x89PNG")
    assert cashflow.read_bytes().startswith(b"\x89PNG")


def test_pdf_report_to_file(tmp_path, projected):
    config, schedule_df, summary = projected
    target = tmp_path / "report.pdf"

    assert write_pdf_report(schedule_df, summary, config, str(target)) == str(target)
    assert target.read_bytes().startswith(b"%PDF")


def test_pdf_report_to_buffer(projected):
    config, schedule_df, summary = projected

    buffer = write_pdf_report(schedule_df, summary, config, BytesIO())

    assert buffer is not None
    assert buffer.getvalue().startswith(b"%PDF")


def _render(config_dict) -> bytes:
    config = SWPConfig(**config_dict)
    schedule, summary = run_projection(config)
    buffer = write_pdf_report(schedule_to_dataframe(schedule), summary, config, BytesIO())
    assert buffer is not None
    return buffer.getvalue()


def test_pdf_report_spans_pages_for_long_tenure(sample_config_dict):
    short = _render(sample_config_dict)
    sample_config_dict["tenure_years"] = 80
    long = _render(sample_config_dict)

    assert long.count(b"/Page") > short.count(b"/Page")


def test_pdf_report_with_empty_schedule(sample_config_dict):
    config = SWPConfig(**sample_config_dict)

    buffer = write_pdf_report(schedule_to_dataframe([]), summarize([], config.investment), config, BytesIO())

    assert buffer is not None
    assert buffer.getvalue().startswith(b"%PDF")


@pytest.mark.parametrize(
    "client, expected",
    [
        ("Asha Verma", "Asha Verma_SWP_Report.pdf"),
        ("", "Client_SWP_Report.pdf"),
        ("   ", "Client_SWP_Report.pdf"),
        ("R&D/Trust", "R_D_Trust_SWP_Report.pdf"),
    ],
)
def test_report_filename(sample_config_dict, client, expected):
    sample_config_dict["client"] = client
    assert report_filename(SWPConfig(**sample_config_dict)) == expected


def test_pdf_report_pages_stay_out_of_pyplot(projected):
    """Report pages are plain Figures, so rendering from a worker thread leaves pyplot alone."""
    import matplotlib.pyplot as plt

    config, schedule_df, summary = projected
    before = plt.get_fignums()

    assert write_pdf_report(schedule_df, summary, config, BytesIO()) is not None
    assert plt.get_fignums() == before


def test_pdf_report_and_charts_with_overflowing_plan(tmp_path, sample_config_dict):
    sample_config_dict.update(annual_rate_pct=10_000, tenure_years=100)

    assert _render(sample_config_dict).startswith(b"%PDF")

    config = SWPConfig(**sample_config_dict)
    schedule, _ = run_projection(config)
    target = tmp_path / "traj.png"
    plot_capital_trajectory(schedule_to_dataframe(schedule), config, str(target))
    assert target.read_bytes().startswith(b"\x89PNG")
