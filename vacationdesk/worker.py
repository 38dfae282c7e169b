"""Worker process for the scheduled accrual job.

Runs an asyncio loop that executes the monthly accrual once daily. The job is
idempotent per user and month, and in January it applies the year rollover
before accruing.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import TYPE_CHECKING

from vacationdesk.config import configure_logging
from vacationdesk.db import session_scope
from vacationdesk.services.accrual import process_monthly_accrual

if TYPE_CHECKING:
    from vacationdesk.services.accrual import MonthlyAccrualResult

logger = logging.getLogger(__name__)

ACCRUAL_INTERVAL_SECONDS = 86400  # 24 hours


async def run_once(today: date | None = None) -> MonthlyAccrualResult | None:
    """Run a single accrual pass in its own session. Returns None if the pass failed."""
    today = today or date.today()
    try:
        async with session_scope() as session:
            result = await process_monthly_accrual(session, today)
        logger.info(
            "Accrual run complete for %s: rollover=%s processed=%d accrued=%d skipped=%d errors=%d",
            today,
            result.rollover_ran,
            result.processed,
            result.accrued,
            result.skipped,
            result.errors,
        )
    except Exception:
        logger.exception("Accrual run failed for %s", today)
        return None
    return result


async def run_accrual_loop() -> None:
    """Main worker loop."""
    logger.info("Accrual worker started")
    while True:
        await run_once()
        await asyncio.sleep(ACCRUAL_INTERVAL_SECONDS)


def main() -> None:
    """Entry point for the worker process."""
    configure_logging()
    asyncio.run(run_accrual_loop())


if __name__ == "__main__":
    main()
