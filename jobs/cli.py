"""
스냅샷 배치 CLI

실행 방법:
    python -m jobs portfolio
    python -m jobs net-worth --date 2026-02-21
    python -m jobs all
"""

import argparse
import json
import logging
from datetime import date
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import get_settings
from core.logging import setup_logging
from jobs.runner import run_net_worth_snapshot, run_portfolio_snapshot

logger = logging.getLogger("jobs")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="일별 스냅샷 배치")
    parser.add_argument(
        "job",
        choices=["portfolio", "net-worth", "all"],
        help="실행할 작업 (all: portfolio → net-worth 순서)",
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="스냅샷 날짜 YYYY-MM-DD (기본: 오늘 UTC)",
    )
    return parser


async def main(job: str, snapshot_date: date | None = None) -> int:
    """배치 실행

    Returns:
        종료 코드 (하나라도 success=false면 1)
    """
    setup_logging("jobs")
    settings = get_settings()
    logger.info(f"스냅샷 배치 시작: {job} (mode={settings.mode.value})")

    summaries: list[dict[str, Any]] = []
    async with SQLiteAdapter(settings.db_path) as db:
        await init_schema(db)

        if job in ("portfolio", "all"):
            summaries.append(await run_portfolio_snapshot(db, settings, snapshot_date))
        if job in ("net-worth", "all"):
            summaries.append(await run_net_worth_snapshot(db, settings, snapshot_date))

    for summary in summaries:
        print(json.dumps(summary, ensure_ascii=False, indent=2))

    return 0 if all(s.get("success") for s in summaries) else 1
