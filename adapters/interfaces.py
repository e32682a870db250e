"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
금액/수량은 반드시 Decimal 타입 사용.
"""

from datetime import date
from decimal import Decimal
from typing import Protocol, runtime_checkable

from core.domain.models import CryptoAsset, CryptoStorage
from core.domain.snapshots import NetWorthSnapshot, PortfolioSnapshot
from core.domain.transactions import CryptoTransaction
from core.ledger.valuation import PriceQuote


@runtime_checkable
class ICryptoRepository(Protocol):
    """자산/보관처/거래 저장소 인터페이스

    거래는 형식 오류 행이 제외된 상태로 반환되어야 함.
    """

    async def list_assets(self, user_id: str) -> list[CryptoAsset]:
        """사용자 자산 목록"""
        ...

    async def list_storages(self, user_id: str) -> list[CryptoStorage]:
        """사용자 보관처 목록"""
        ...

    async def list_transactions(self, user_id: str) -> list[CryptoTransaction]:
        """사용자 전체 거래"""
        ...

    async def list_all_assets(self) -> list[CryptoAsset]:
        """모든 사용자의 자산 (스냅샷 배치용 일괄 조회)"""
        ...

    async def list_transactions_for_users(
        self,
        user_ids: list[str],
    ) -> dict[str, list[CryptoTransaction]]:
        """여러 사용자의 거래를 한 번에 조회

        Returns:
            user_id → 거래 목록 (거래가 없는 사용자도 빈 목록으로 포함)
        """
        ...


@runtime_checkable
class ISnapshotRepository(Protocol):
    """스냅샷 저장소 인터페이스

    upsert는 (user_id, snapshot_date) 충돌 시 원자적으로 갱신해야 함.
    """

    async def upsert_portfolio_snapshot(self, snapshot: PortfolioSnapshot) -> None:
        ...

    async def upsert_net_worth_snapshot(self, snapshot: NetWorthSnapshot) -> None:
        ...

    async def get_latest_crypto_values(self, as_of: date) -> dict[str, Decimal]:
        """사용자별 as_of 이하 최신 포트폴리오 스냅샷의 USD 가치

        Returns:
            user_id → total_value_usd
        """
        ...

    async def get_portfolio_history(
        self,
        user_id: str,
        start: date | None = None,
    ) -> list[PortfolioSnapshot]:
        """포트폴리오 스냅샷 (날짜 오름차순, start 이후)"""
        ...

    async def get_net_worth_history(
        self,
        user_id: str,
        start: date | None = None,
    ) -> list[NetWorthSnapshot]:
        """순자산 스냅샷 (날짜 오름차순, start 이후)"""
        ...


@runtime_checkable
class IBankLedger(Protocol):
    """캘린더(법정화폐) 거래 기반 은행 잔고 인터페이스"""

    async def get_all_bank_balances(self) -> dict[str, int]:
        """사용자별 잔고 (수입 - 지출, VND)"""
        ...

    async def get_bank_balance(self, user_id: str) -> int:
        """단일 사용자 잔고 (거래가 없으면 0)"""
        ...


@runtime_checkable
class IPriceSource(Protocol):
    """시세 소스 인터페이스

    Raises:
        PriceSourceError: 조회 실패 (RateLimitError 포함)
    """

    async def get_prices(self, coingecko_ids: list[str]) -> dict[str, PriceQuote]:
        """여러 코인의 현재 USD 시세 (없는 ID는 결과에서 제외)"""
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class IExchangeRateSource(Protocol):
    """USD → VND 환율 소스 인터페이스

    Raises:
        ExchangeRateSourceError: 조회 실패
    """

    async def get_rate(self) -> Decimal:
        ...

    async def close(self) -> None:
        ...
