# src/f1_jolpica/validate.py
"""
Validation run against the live (or a local) Jolpica API.

Walks the reference resources and a range of seasons' race schedules through
the client, so every record passes the decoders. Use this after upgrading
the client or when the upstream data changes.
"""

import logging
import sys
from collections.abc import Callable
from datetime import datetime
from typing import Any

from .client import ClientConfig, F1Client
from .config import validate_configuration
from .exceptions import F1JolpicaError
from .ingestion.resource import Filters

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _run_section(name: str, fetch: Callable[[], list[Any]]) -> bool:
    """Run one validation section, logging its outcome. Returns True on success."""
    try:
        records = fetch()
    except F1JolpicaError as e:
        logger.error(f"❌ {name:20s} | {type(e).__name__}: {e}")
        return False
    logger.info(f"✅ {name:20s} | {len(records)} records")
    return True


def run_validation(
    start_year: int = 1950,
    end_year: int | None = None,
    client: F1Client | None = None,
) -> dict[str, Any]:
    """
    Validate decoding of reference data and race schedules.

    Args:
        start_year: First season whose race schedule is validated (inclusive)
        end_year: Last season validated (inclusive). Defaults to the current year.
        client: Optional pre-configured client

    Returns:
        Dictionary containing the validation summary
    """
    if end_year is None:
        end_year = datetime.now().year
    if start_year > end_year:
        raise ValueError(f"Invalid year range: {start_year} > {end_year}")

    client = client or F1Client(ClientConfig())

    logger.info(
        f"\n{'=' * 70}\n"
        f"🚀 VALIDATION STARTED\n"
        f"   Base URL: {client.config.base_url}\n"
        f"   Seasons: {start_year} → {end_year}\n"
        f"{'=' * 70}\n"
    )

    sections: dict[str, Callable[[], list[Any]]] = {
        "seasons": client.get_seasons,
        "drivers": client.get_drivers,
        "constructors": client.get_constructors,
        "circuits": client.get_circuits,
        "statuses": client.get_statuses,
    }
    for year in range(start_year, end_year + 1):
        sections[f"schedule {year}"] = (
            lambda year=year: client.get_race_schedules(Filters(season=year))
        )

    failed = [name for name, fetch in sections.items() if not _run_section(name, fetch)]

    summary = {
        "sections": len(sections),
        "failed_sections": failed,
        "stats": client.stats,
    }

    logger.info(
        f"\n{'=' * 70}\n"
        f"📊 VALIDATION SUMMARY\n"
        f"   Sections: {summary['sections']}\n"
        f"   Failed: {len(failed)} {failed if failed else ''}\n"
        f"   Requests: {summary['stats']['requests_made']}\n"
        f"{'=' * 70}\n"
    )
    return summary


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(
        description="Validate decoding of Jolpica F1 API responses",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate reference data and every season's schedule
  python -m f1_jolpica.validate

  # Validate a range of seasons
  python -m f1_jolpica.validate --start 2020 --end 2024

  # Validate against a local jolpica-f1 server (no rate limiting)
  LOCAL_JOLPICA=1 python -m f1_jolpica.validate
        """,
    )
    parser.add_argument(
        "--start",
        type=int,
        default=1950,
        help="First season to validate (default: 1950)",
    )
    parser.add_argument(
        "--end",
        type=int,
        default=None,
        help="Last season to validate (default: current year)",
    )

    args = parser.parse_args()

    try:
        validate_configuration()
        result = run_validation(start_year=args.start, end_year=args.end)
    except (F1JolpicaError, ValueError) as e:
        logger.error(f"❌ Validation could not run: {e}")
        sys.exit(1)

    sys.exit(1 if result["failed_sections"] else 0)
