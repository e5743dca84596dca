"""Tests for plan configuration loading and validation."""

import json

import pytest
from pydantic import ValidationError

from config import ConfigurationError, SWPConfig, load_config_from_json


def test_alias_and_field_name_both_populate_client(sample_config_dict):
    by_alias = SWPConfig(**sample_config_dict)
    data = dict(sample_config_dict)
    data["client_name"] = data.pop("client")
    by_name = SWPConfig(**data)

    assert by_alias.client_name == "Asha Verma"
    assert by_name.client_name == "Asha Verma"


def test_optional_fields_default():
    config = SWPConfig(investment=1_000_000, monthly_withdrawal=10_000, annual_rate_pct=12, tenure_years=10)

    assert config.client_name == ""
    assert config.display_name == ""
    assert config.defer_years == 0
    assert config.step_up_pct == 0.0


@pytest.mark.parametrize(
    "field, value",
    [
        ("investment", -1),
        ("monthly_withdrawal", -500),
        ("tenure_years", 0),
        ("defer_years", -1),
        ("step_up_pct", -2.5),
    ],
)
def test_out_of_range_inputs_are_rejected(sample_config_dict, field, value):
    sample_config_dict[field] = value
    with pytest.raises(ValidationError):
        SWPConfig(**sample_config_dict)


def test_missing_required_field_is_rejected(sample_config_dict):
    del sample_config_dict["investment"]
    with pytest.raises(ValidationError):
        SWPConfig(**sample_config_dict)


def test_assignment_is_validated(sample_config_dict):
    config = SWPConfig(**sample_config_dict)
    with pytest.raises(ValidationError):
        config.tenure_years = -5


def test_negative_rate_is_accepted_with_warning(sample_config_dict, log_messages):
    sample_config_dict["annual_rate_pct"] = -4
    config = SWPConfig(**sample_config_dict)

    assert config.annual_rate_pct == -4
    assert any("negative" in m and m.startswith("WARNING") for m in log_messages)


def test_deferment_covering_tenure_warns(sample_config_dict, log_messages):
    sample_config_dict["defer_years"] = 25
    config = SWPConfig(**sample_config_dict)

    assert config.defer_years == 25
    assert any("no withdrawal will occur" in m for m in log_messages)


def test_load_config_from_json(tmp_path, sample_config_dict):
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(sample_config_dict), encoding="utf-8")

    assert load_config_from_json(str(path)) == sample_config_dict


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config_from_json(str(tmp_path / "missing.json"))


def test_load_config_bad_json(tmp_path):
    path = tmp_path / "plan.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Error parsing JSON"):
        load_config_from_json(str(path))


def test_load_config_requires_object(tmp_path):
    path = tmp_path / "plan.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="JSON object"):
        load_config_from_json(str(path))
