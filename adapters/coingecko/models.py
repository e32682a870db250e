"""
CoinGecko API 응답 -> PriceQuote 변환

숫자는 float로 내려오므로 str 경유로 Decimal 변환.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from core.ledger.valuation import PriceQuote


def _to_decimal(value: Any) -> Decimal | None:
    """숫자 → Decimal (None/비정상 값은 None)"""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def _to_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_market(data: dict[str, Any]) -> PriceQuote | None:
    """/coins/markets 항목 -> PriceQuote

    응답 예시:
    {
        "id": "bitcoin",
        "symbol": "btc",
        "current_price": 97000.12,
        "market_cap": 1920000000000,
        "price_change_percentage_24h_in_currency": 1.23,
        "price_change_percentage_7d_in_currency": -2.5,
        "price_change_percentage_30d_in_currency": 8.1,
        "price_change_percentage_60d_in_currency": null,
        "price_change_percentage_1y_in_currency": 120.4,
        "last_updated": "2026-02-21T08:00:00.000Z"
    }

    Returns:
        PriceQuote (id 또는 current_price가 없으면 None)
    """
    coingecko_id = data.get("id")
    price = _to_decimal(data.get("current_price"))
    if not coingecko_id or price is None:
        return None

    return PriceQuote(
        coingecko_id=str(coingecko_id),
        usd=price,
        change_24h=_to_decimal(
            data.get("price_change_percentage_24h_in_currency",
                     data.get("price_change_percentage_24h"))
        ),
        change_7d=_to_decimal(data.get("price_change_percentage_7d_in_currency")),
        change_30d=_to_decimal(data.get("price_change_percentage_30d_in_currency")),
        change_60d=_to_decimal(data.get("price_change_percentage_60d_in_currency")),
        change_1y=_to_decimal(data.get("price_change_percentage_1y_in_currency")),
        market_cap_usd=_to_decimal(data.get("market_cap")),
        last_updated_at=_to_datetime(data.get("last_updated")),
    )


def quote_to_dict(quote: PriceQuote) -> dict[str, Any]:
    """PriceQuote -> JSON 직렬화 가능한 dict (가격 캐시 저장용)"""

    def _s(value: Decimal | None) -> str | None:
        return str(value) if value is not None else None

    return {
        "coingecko_id": quote.coingecko_id,
        "usd": str(quote.usd),
        "change_24h": _s(quote.change_24h),
        "change_7d": _s(quote.change_7d),
        "change_30d": _s(quote.change_30d),
        "change_60d": _s(quote.change_60d),
        "change_1y": _s(quote.change_1y),
        "market_cap_usd": _s(quote.market_cap_usd),
        "last_updated_at": quote.last_updated_at.isoformat() if quote.last_updated_at else None,
    }


def quote_from_dict(data: dict[str, Any]) -> PriceQuote | None:
    """가격 캐시 dict -> PriceQuote (형식 오류 시 None)"""
    coingecko_id = data.get("coingecko_id")
    usd = _to_decimal(data.get("usd"))
    if not coingecko_id or usd is None:
        return None

    return PriceQuote(
        coingecko_id=str(coingecko_id),
        usd=usd,
        change_24h=_to_decimal(data.get("change_24h")),
        change_7d=_to_decimal(data.get("change_7d")),
        change_30d=_to_decimal(data.get("change_30d")),
        change_60d=_to_decimal(data.get("change_60d")),
        change_1y=_to_decimal(data.get("change_1y")),
        market_cap_usd=_to_decimal(data.get("market_cap_usd")),
        last_updated_at=_to_datetime(data.get("last_updated_at")),
    )
