import json

import pytest
from loguru import logger

from main import main


@pytest.fixture(autouse=True)
def _release_log_sinks():
    yield
    # main() installs its own sinks, including a file in the test's directory.
    logger.remove()


def test_cli_writes_charts_and_report(tmp_path, monkeypatch, sample_config_dict):
    monkeypatch.chdir(tmp_path)
    plan_path = tmp_path / "plan.json"
    plan_path.write_text(json.dumps(sample_config_dict), encoding="utf-8")

    assert main([str(plan_path)]) == 0

    assert (tmp_path / "Asha Verma_SWP_Report.pdf").exists()
    assert len(list(tmp_path.glob("swp_proj_Asha_Verma_*_TRAJ.png"))) == 1
    assert len(list(tmp_path.glob("swp_proj_Asha_Verma_*_CASH.png"))) == 1
    assert len(list(tmp_path.glob("swp_proj_log_*.log"))) == 1


def test_cli_defaults_to_config_json(tmp_path, monkeypatch, sample_config_dict):
    monkeypatch.chdir(tmp_path)
    sample_config_dict["client"] = ""
    (tmp_path / "config.json").write_text(json.dumps(sample_config_dict), encoding="utf-8")

    assert main([]) == 0
    assert (tmp_path / "Client_SWP_Report.pdf").exists()


def test_cli_missing_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert main([str(tmp_path / "missing.json")]) == 1


def test_cli_invalid_config(tmp_path, monkeypatch, sample_config_dict):
    monkeypatch.chdir(tmp_path)
    sample_config_dict["tenure_years"] = 0
    plan_path = tmp_path / "plan.json"
    plan_path.write_text(json.dumps(sample_config_dict), encoding="utf-8")

    assert main([str(plan_path)]) == 1
