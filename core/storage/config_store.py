"""
ConfigStore - 런타임 설정/캐시 저장소

config_store 테이블을 통해 키-값(JSON) 저장.
스냅샷 배치와 Web이 공유하는 마지막 시세/환율을 보관.

설정 키 구조:
- "price_cache": 마지막으로 조회에 성공한 시세 {coingecko_id: quote_dict}
- "exchange_rate": 마지막으로 조회에 성공한 환율 {rate, updated_at}
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from adapters.coingecko.models import quote_from_dict, quote_to_dict
from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import ConfigKeys
from core.ledger.valuation import PriceQuote
from core.utils.timezone import now_iso

logger = logging.getLogger(__name__)


class ConfigStore:
    """설정 저장소

    config_store 테이블을 읽고 쓰는 클래스.

    Args:
        db: SQLiteAdapter 인스턴스

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        config_store = ConfigStore(db)

        # 마지막 환율 조회
        cached = await config_store.get_exchange_rate()

        # 환율 저장
        await config_store.set_exchange_rate(Decimal("25410"))
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self._cache: dict[str, dict[str, Any]] = {}

    async def get(self, key: str, use_cache: bool = True) -> dict[str, Any]:
        """설정 조회

        Args:
            key: 설정 키
            use_cache: 캐시 사용 여부 (기본 True)

        Returns:
            설정 값 (dict). 없으면 빈 dict.
        """
        if use_cache and key in self._cache:
            return self._cache[key]

        row = await self.db.fetchone(
            """
            SELECT value_json
            FROM config_store
            WHERE config_key = ?
            """,
            (key,),
        )
        if row is None:
            return {}

        value = json.loads(row[0]) if isinstance(row[0], str) else row[0]
        self._cache[key] = value
        return value

    async def set(
        self,
        key: str,
        value: dict[str, Any],
        updated_by: str = "jobs:system",
    ) -> None:
        """설정 저장 (UPSERT, version 증가)

        Args:
            key: 설정 키
            value: 설정 값
            updated_by: 업데이트 주체
        """
        now = now_iso()
        value_json = json.dumps(value, ensure_ascii=False)

        await self.db.execute(
            """
            INSERT INTO config_store (config_key, value_json, version, updated_by, created_at, updated_at)
            VALUES (?, ?, 1, ?, ?, ?)
            ON CONFLICT(config_key) DO UPDATE SET
                value_json = excluded.value_json,
                version = config_store.version + 1,
                updated_by = excluded.updated_by,
                updated_at = excluded.updated_at
            """,
            (key, value_json, updated_by, now, now),
        )
        await self.db.commit()

        # 캐시 무효화
        self._cache.pop(key, None)
        logger.debug(f"Config '{key}' updated by {updated_by}")

    # =========================================================================
    # 시세 캐시 (가격 소스 장애/Rate Limit 시 재사용)
    # =========================================================================

    async def get_price_cache(self) -> dict[str, PriceQuote]:
        """마지막으로 저장된 시세

        Returns:
            coingecko_id → PriceQuote (형식 오류 항목 제외)
        """
        data = await self.get(ConfigKeys.PRICE_CACHE, use_cache=False)
        quotes: dict[str, PriceQuote] = {}
        for item in data.values():
            if not isinstance(item, dict):
                continue
            quote = quote_from_dict(item)
            if quote is not None:
                quotes[quote.coingecko_id] = quote
        return quotes

    async def update_price_cache(
        self,
        quotes: dict[str, PriceQuote],
        updated_by: str = "jobs:portfolio",
    ) -> None:
        """새 시세를 기존 캐시에 병합 저장

        이번에 조회되지 않은 코인의 이전 시세는 유지.
        """
        if not quotes:
            return

        data = await self.get(ConfigKeys.PRICE_CACHE, use_cache=False)
        merged = dict(data)
        for cid, quote in quotes.items():
            merged[cid] = quote_to_dict(quote)
        await self.set(ConfigKeys.PRICE_CACHE, merged, updated_by=updated_by)

    # =========================================================================
    # 환율 캐시
    # =========================================================================

    async def get_exchange_rate(self) -> tuple[Decimal, datetime | None] | None:
        """마지막으로 저장된 환율

        Returns:
            (환율, 저장 시각) 또는 None (없거나 형식 오류)
        """
        data = await self.get(ConfigKeys.EXCHANGE_RATE, use_cache=False)
        raw = data.get("rate")
        if raw is None:
            return None

        try:
            rate = Decimal(str(raw))
        except InvalidOperation:
            logger.warning(f"저장된 환율 형식 오류: {raw!r}")
            return None
        if not rate.is_finite() or rate <= 0:
            return None

        updated_at = None
        raw_updated = data.get("updated_at")
        if isinstance(raw_updated, str):
            try:
                updated_at = datetime.fromisoformat(raw_updated)
            except ValueError:
                updated_at = None
        # 외부 기록(SQLite datetime('now') 등)은 타임존 없이 UTC로 저장됨
        if updated_at is not None and updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        return rate, updated_at

    async def set_exchange_rate(
        self,
        rate: Decimal,
        updated_by: str = "jobs:net_worth",
    ) -> None:
        """환율 저장"""
        await self.set(
            ConfigKeys.EXCHANGE_RATE,
            {"rate": str(rate), "updated_at": now_iso()},
            updated_by=updated_by,
        )
