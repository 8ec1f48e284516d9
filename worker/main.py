# worker/main.py
"""
Retention worker: periodically purges log rows older than the configured
retention windows. The sweeps are global (every company).
"""
from __future__ import annotations

import argparse
import asyncio
import logging

from api.app.config import Settings, get_settings
from db.engine import dispose_engine
from db.session import get_session_factory
from services.activity_logger import ActivityLogger
from services.audit_service import AuditService
from services.log_store import LogStore

logger = logging.getLogger("worker")


async def sweep_once(
    activity_logger: ActivityLogger,
    audit_service: AuditService,
    settings: Settings,
) -> dict[str, int]:
    """One retention pass over both logs. A failing log does not block the other."""
    results: dict[str, int] = {}

    for name, service, days in (
        ("activity", activity_logger, settings.activity_retention_days),
        ("audit", audit_service, settings.audit_retention_days),
    ):
        try:
            results[name] = await service.cleanup_old_logs(days)
        except Exception as exc:
            logger.exception("Retention sweep failed for %s log: %s", name, exc)

    return results


async def run_loop(once: bool = False) -> None:
    settings = get_settings()
    store = LogStore(get_session_factory())
    activity_logger = ActivityLogger.from_settings(store, settings)
    audit_service = AuditService.from_settings(store, settings)

    logger.info(
        "Retention worker starting (activity=%dd audit=%dd interval=%.0fs)",
        settings.activity_retention_days,
        settings.audit_retention_days,
        settings.retention_sweep_interval,
    )

    try:
        while True:
            try:
                results = await sweep_once(activity_logger, audit_service, settings)
                logger.info("Retention sweep complete: %s", results)
            except Exception as exc:
                logger.exception("Worker loop error: %s", exc)

            if once:
                break
            await asyncio.sleep(settings.retention_sweep_interval)
    finally:
        await dispose_engine()


def main() -> None:
    parser = argparse.ArgumentParser(description="Purge expired activity and audit log rows")
    parser.add_argument("--once", action="store_true", help="run a single sweep and exit")
    args = parser.parse_args()

    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    asyncio.run(run_loop(once=args.once))


if __name__ == "__main__":
    main()
