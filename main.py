import sys
import datetime as _dt
from typing import List, Optional
from loguru import logger
from pydantic import ValidationError

from config import SWPConfig, ConfigurationError, load_config_from_json
from constants import DEFAULT_CONFIG_FILENAME
from utils import log_input_parameters, log_projection_results
from simulation import run_projection, schedule_to_dataframe
from plotting import (
    plot_capital_trajectory,
    plot_cashflow_distribution,
    report_filename,
    write_pdf_report,
)


def _configure_logging(log_filename: str) -> None:
    logger.remove()  # Remove default handler
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level="INFO",
        colorize=True,
    )
    logger.add(
        log_filename,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
        level="INFO",
        rotation="10 MB",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main execution entry point.

    Loads the plan configuration, projects the withdrawal schedule, logs the
    results, and writes the charts and the PDF report to the current directory.
    """
    args = sys.argv[1:] if argv is None else argv
    current_timestamp_str = _dt.datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = f"swp_proj_log_{current_timestamp_str}.log"

    _configure_logging(log_filename)
    logger.info(f"Logging initialized. Log file: {log_filename}")

    # --- LOAD CONFIGURATION FROM JSON ---
    if args:
        json_filename = args[0]
    else:
        json_filename = DEFAULT_CONFIG_FILENAME
        logger.info(
            f"No config file specified via argument. Defaulting to '{json_filename}'"
        )

    logger.info(f"Loading configuration from: {json_filename}")
    try:
        config = SWPConfig(**load_config_from_json(json_filename))
        logger.info(
            f"Configuration for client '{config.display_name or 'N/A'}' loaded and validated successfully."
        )
    except ConfigurationError as e:
        logger.error(f"Configuration file error: {e}")
        return 1
    except ValidationError as e:
        logger.error(f"Configuration validation error: {e}")
        return 1

    log_input_parameters(config)

    schedule, summary = run_projection(config)
    schedule_df = schedule_to_dataframe(schedule)
    log_projection_results(config, summary, schedule_df)

    safe_name = "".join(
        c if c.isalnum() or c in ["_", "-"] else "_" for c in config.display_name
    ) or "client"
    plot_file_base = f"swp_proj_{safe_name}_{current_timestamp_str}"

    plot_capital_trajectory(schedule_df, config, f"{plot_file_base}_TRAJ.png")
    plot_cashflow_distribution(schedule_df, config, f"{plot_file_base}_CASH.png")
    write_pdf_report(schedule_df, summary, config, report_filename(config))

    logger.info(
        f"--- Main execution finished for client '{config.display_name or 'N/A'}'. Outputs in current directory. Log: {log_filename} ---"
    )
    return 0


def cli() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    cli()
