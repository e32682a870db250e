"""
타임존 유틸리티

스냅샷 날짜는 UTC 기준 달력 날짜로 통일.
"""

from datetime import date, datetime, timedelta, timezone

from core.types import NetWorthRange, PortfolioRange


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def today_utc() -> date:
    """오늘 날짜 (UTC 기준)

    스냅샷 작업의 기본 snapshot_date.
    """
    return now_utc().date()


def now_iso() -> str:
    """현재 UTC 시간의 ISO 문자열 (응답 timestamp용)"""
    return now_utc().isoformat()


def _subtract_years(day: date, years: int) -> date:
    """N년 전 날짜 (2월 29일은 2월 28일로 보정)"""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def _subtract_month(day: date) -> date:
    """1개월 전 날짜 (말일 보정)"""
    year = day.year if day.month > 1 else day.year - 1
    month = day.month - 1 if day.month > 1 else 12
    for candidate_day in (day.day, 30, 29, 28):
        try:
            return date(year, month, candidate_day)
        except ValueError:
            continue
    return date(year, month, 28)


def portfolio_range_start(
    range_: PortfolioRange | str,
    today: date | None = None,
) -> date | None:
    """포트폴리오 히스토리 조회 시작일

    Args:
        range_: 조회 기간 (7d, 30d, 60d, 1y, all)
        today: 기준일 (기본: 오늘 UTC)

    Returns:
        시작일 (all이면 None = 전체)
    """
    range_ = PortfolioRange(range_)
    today = today or today_utc()

    if range_ == PortfolioRange.D7:
        return today - timedelta(days=7)
    if range_ == PortfolioRange.D30:
        return today - timedelta(days=30)
    if range_ == PortfolioRange.D60:
        return today - timedelta(days=60)
    if range_ == PortfolioRange.Y1:
        return _subtract_years(today, 1)
    return None


def net_worth_range_start(
    range_: NetWorthRange | str,
    today: date | None = None,
) -> date | None:
    """순자산 히스토리 조회 시작일

    Args:
        range_: 조회 기간 (1m, 1y, all)
        today: 기준일 (기본: 오늘 UTC)

    Returns:
        시작일 (all이면 None = 전체)
    """
    range_ = NetWorthRange(range_)
    today = today or today_utc()

    if range_ == NetWorthRange.M1:
        return _subtract_month(today)
    if range_ == NetWorthRange.Y1:
        return _subtract_years(today, 1)
    return None
