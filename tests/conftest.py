from typing import List

import pytest
from loguru import logger


@pytest.fixture
def sample_config_dict() -> dict:
    return {
        "client": "Asha Verma",
        "investment": 10_000_000,
        "monthly_withdrawal": 60_000,
        "annual_rate_pct": 12,
        "tenure_years": 25,
        "defer_years": 0,
        "step_up_pct": 5,
    }


@pytest.fixture
def log_messages() -> List[str]:
    messages: List[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="DEBUG", format="{level} | {message}")
    yield messages
    logger.remove(handler_id)
