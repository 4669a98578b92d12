"""
Market Sandbox - Purchase Orchestrator

세 종류의 구매(SMS 대여, eSIM, 프록시)와 eSIM 충전이 공유하는 흐름:
카탈로그 조회 -> 가격 계산 -> 잔액 차감 -> 레코드 등록
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, TypeVar

from .errors import InsufficientBalanceError
from .formatting import IdFactory, Money, format_usd, round_money
from .ledger import Ledger
from .models import Resource, TransactionKind
from .registry import Registry

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Resource)

# (record_id, created_at, cost) -> record
Minter = Callable[[str, datetime, Decimal], R]


class PurchaseOrchestrator:
    """
    구매 트랜잭션

    레코드는 부수효과 없이 먼저 만들어 두고, 차감에 성공했을 때만 저장소에
    넣습니다. 차감이 실패하면 잔액, 거래 내역, 저장소 모두 그대로입니다.

    Example:
        rental = orchestrator.purchase(
            registry=rentals,
            prefix="sms",
            cost=offer.price,
            kind=TransactionKind.SMS_RENTAL,
            description="SMS rental: WhatsApp (US)",
            mint=lambda rid, now, cost: SmsRental(id=rid, ...),
        )
    """

    def __init__(self, ledger: Ledger, ids: IdFactory, now: Callable[[], datetime]):
        self.ledger = ledger
        self._ids = ids
        self._now = now

    def _insufficient(self, cost: Decimal) -> InsufficientBalanceError:
        return InsufficientBalanceError(
            required=cost,
            available=self.ledger.balance,
            message=(
                f"Insufficient balance. Need {format_usd(cost)} but have "
                f"{format_usd(self.ledger.balance)}. Use deposit to add funds."
            ),
        )

    def charge(self, cost: Money, kind: TransactionKind, description: str) -> Decimal:
        """차감하고 반올림된 금액을 반환. 잔액 부족이면 InsufficientBalanceError"""
        cost = round_money(cost)
        if not self.ledger.debit(cost, kind, description):
            raise self._insufficient(cost)
        return cost

    def purchase(
        self,
        registry: Registry[R],
        prefix: str,
        cost: Money,
        kind: TransactionKind,
        description: str,
        mint: Minter,
    ) -> R:
        cost = round_money(cost)
        # 잔액이 모자라면 레코드를 만들지 않음
        if cost > self.ledger.balance:
            raise self._insufficient(cost)
        record = mint(self._ids.new(prefix), self._now(), cost)
        self.charge(cost, kind, description)
        registry.add(record)
        logger.info(f"{registry.label} {record.id} purchased for {cost}")
        return record
