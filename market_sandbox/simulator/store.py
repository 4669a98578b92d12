"""
Market Sandbox - Store

프로세스 안에서 하나의 샌드박스 상태를 소유하는 컨텍스트 객체.
전역 변수 대신 명시적으로 생성해서 툴/서버/CLI에 넘겨줍니다.
"""

import logging
import random
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterator, Optional

from ..config import SandboxConfig, get_config
from .catalog import Catalog
from .clock import Clock, SystemClock
from .esim_manager import EsimOrderManager
from .formatting import IdFactory
from .ledger import DepositQueue, Ledger
from .models import WalletSummary
from .orchestrator import PurchaseOrchestrator
from .orders import UnifiedOrderView
from .proxy_manager import ProxyLeaseManager
from .sms_manager import SmsRentalManager

logger = logging.getLogger(__name__)


class SandboxStore:
    """
    샌드박스 상태

    초기 상태: 잔액 = config.initial_balance (기본 50.00), 저장소는 모두 비어 있음.
    별도 종료 처리는 없고 객체 수명이 곧 상태 수명입니다.

    Usage:
        store = SandboxStore.create()

        store.deposits.create(Decimal("20"), "BTC")
        rental = store.sms.purchase("telegram")
        order = store.esim.purchase("esim_us_5g_7d")
        proxy = store.proxies.purchase("gb", "US", 5)

        store.get_balance()
        store.orders.list(status="active")

        # 스레드에서 공유할 때
        with store.locked():
            store.sms.cancel(rental.id)
    """

    def __init__(
        self,
        config: SandboxConfig,
        clock: Clock,
        catalog: Catalog,
        rng: random.Random,
    ):
        self.config = config
        self.clock = clock
        self.catalog = catalog
        self.rng = rng
        self.ids = IdFactory(rng)
        self._lock = threading.RLock()

        now = clock.now
        self.ledger = Ledger(self.ids, now, config.initial_balance)
        self.deposits = DepositQueue(
            self.ledger, self.ids, now,
            confirm_after=timedelta(seconds=config.deposit_confirm_seconds),
        )
        self.orchestrator = PurchaseOrchestrator(self.ledger, self.ids, now)

        self.sms = SmsRentalManager(
            catalog, self.ledger, self.orchestrator, rng, now,
            rental_duration=timedelta(minutes=config.sms_rental_minutes),
            delivery_delay=timedelta(seconds=config.sms_delivery_seconds),
        )
        self.esim = EsimOrderManager(
            catalog, self.orchestrator, now,
            public_base_url=config.public_base_url,
        )
        self.proxies = ProxyLeaseManager(
            catalog, self.orchestrator, rng, now,
            proxy_domain=config.proxy_domain,
        )
        self.orders = UnifiedOrderView(
            self.sms.registry, self.esim.registry, self.proxies.registry, now,
        )

    @classmethod
    def create(
        cls,
        config: Optional[SandboxConfig] = None,
        clock: Optional[Clock] = None,
        catalog: Optional[Catalog] = None,
    ) -> "SandboxStore":
        """설정(None이면 환경변수)으로 새 스토어 생성"""
        cfg = config or get_config()
        store = cls(
            config=cfg,
            clock=clock or SystemClock(),
            catalog=catalog or Catalog(),
            rng=random.Random(cfg.seed),
        )
        logger.info(f"Sandbox store created (balance={store.ledger.balance})")
        return store

    def now(self) -> datetime:
        return self.clock.now()

    @contextmanager
    def locked(self) -> Iterator["SandboxStore"]:
        """작업 하나를 다른 스레드와 겹치지 않게 실행"""
        with self._lock:
            yield self

    # =========================================================================
    # 지갑
    # =========================================================================

    def get_balance(self) -> Decimal:
        """만기된 입금을 먼저 반영한 잔액"""
        self.deposits.resolve_pending()
        return self.ledger.balance

    def wallet_summary(self, limit: Optional[int] = None) -> WalletSummary:
        balance = self.get_balance()
        return WalletSummary(
            balance=balance,
            pending_deposits=self.deposits.pending(),
            recent_transactions=self.ledger.recent(limit or self.config.recent_transactions),
        )
