import asyncio
import json
import math
import os
import sys
from contextlib import asynccontextmanager
from io import BytesIO
from typing import Any, Dict, List, Optional, Union

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from config import SWPConfig
from constants import DEFAULT_CONFIG_FILENAME
from plotting import report_filename, write_pdf_report
from simulation import run_projection, schedule_to_dataframe
from utils import describe_plan, format_inr


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------

# Amounts that overflowed or came out as NaN are sent as null.
JsonAmount = Optional[Union[int, float]]


class ScheduleRow(BaseModel):
    year: int
    opening: JsonAmount
    withdrawal: JsonAmount
    interest: JsonAmount
    closing: JsonAmount


class SummaryFigures(BaseModel):
    total_withdrawn: JsonAmount
    final_balance: JsonAmount
    wealth_gain: Optional[float]
    depletion_year: Optional[int] = None


class FormattedSummary(BaseModel):
    total_withdrawn: str
    final_balance: str
    wealth_gain: str


class ProjectionResponse(BaseModel):
    client: str
    summary: SummaryFigures
    formatted: FormattedSummary
    narrative: str
    schedule: List[ScheduleRow]


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class ProjectionRequest(BaseModel):
    config: Dict[str, Any] = Field(
        ...,
        description="Plan configuration (same schema as config.json).",
    )


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def _configure_logging() -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        level="INFO",
        colorize=True,
    )
    logger.add(
        "server.log",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
        level="INFO",
        rotation="10 MB",
    )


# ---------------------------------------------------------------------------
# App lifecycle
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(_app: FastAPI):
    _configure_logging()
    logger.info("SWP Planner API starting up")
    yield
    logger.info("SWP Planner API shutting down")


app = FastAPI(
    title="SWP Planner API",
    description="Backend API projecting Systematic Withdrawal Plan schedules and reports.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_config(raw: Dict[str, Any]) -> SWPConfig:
    try:
        return SWPConfig(**raw)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid configuration: {e}")


def _safe_amount(value: Any) -> Any:
    """Convert NaN / Inf to None so JSON serialisation stays valid."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _safe_dict(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: _safe_amount(value) for key, value in values.items()}


def _build_projection(config: SWPConfig) -> Dict[str, Any]:
    schedule, summary = run_projection(config)
    return {
        "client": config.display_name,
        "summary": _safe_dict(summary.model_dump()),
        "formatted": {
            "total_withdrawn": format_inr(summary.total_withdrawn),
            "final_balance": format_inr(summary.final_balance),
            "wealth_gain": format_inr(summary.wealth_gain),
        },
        "narrative": describe_plan(config),
        "schedule": [_safe_dict(record.model_dump()) for record in schedule],
    }


def _render_report(config: SWPConfig) -> Optional[bytes]:
    """Heavy, synchronous work -- called via ``asyncio.to_thread``."""
    schedule, summary = run_projection(config)
    buffer: Optional[BytesIO] = write_pdf_report(
        schedule_to_dataframe(schedule), summary, config, BytesIO()
    )
    return buffer.getvalue() if buffer is not None else None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/api/health")
async def health_check():
    return {"status": "ok"}


@app.get("/api/config/default")
async def get_default_config():
    """Return the bundled ``config.json`` as a ready-to-use template."""
    config_path = os.path.join(os.path.dirname(__file__), DEFAULT_CONFIG_FILENAME)
    if not os.path.exists(config_path):
        raise HTTPException(status_code=404, detail="Default config.json not found.")
    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


@app.post("/api/validate")
async def validate_config(body: ProjectionRequest):
    """Validate a configuration without projecting anything."""
    config = _parse_config(body.config)
    return {"valid": True, "client": config.display_name}


@app.post("/api/project", response_model=ProjectionResponse)
async def project_plan(body: ProjectionRequest):
    """Project the yearly schedule and the headline figures for a plan."""
    config = _parse_config(body.config)
    logger.info(f"Received projection request for client '{config.display_name or 'N/A'}'")

    try:
        result = _build_projection(config)
    except Exception as e:
        logger.error(f"Projection failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Projection error: {e}")

    logger.info(
        f"Projection complete for '{config.display_name or 'N/A'}' ({len(result['schedule'])} years)"
    )
    return result


@app.post("/api/report")
async def download_report(body: ProjectionRequest):
    """Render the PDF report for a plan."""
    config = _parse_config(body.config)
    logger.info(f"Received report request for client '{config.display_name or 'N/A'}'")

    content = await asyncio.to_thread(_render_report, config)
    if content is None:
        raise HTTPException(status_code=500, detail="Report could not be generated.")

    filename = report_filename(config)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    _configure_logging()
    uvicorn.run("server:app", host="0.0.0.0", port=8080, reload=True)
