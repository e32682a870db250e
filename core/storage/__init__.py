"""
스토리지 모듈

원장 조회, 스냅샷, 은행 잔고, 설정 캐시 저장소 제공
"""

from core.storage.bank_ledger_store import BankLedgerStore
from core.storage.config_store import ConfigStore
from core.storage.crypto_store import CryptoStore
from core.storage.snapshot_store import SnapshotStore

__all__ = [
    "CryptoStore",
    "SnapshotStore",
    "BankLedgerStore",
    "ConfigStore",
]
