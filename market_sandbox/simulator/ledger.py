"""
Market Sandbox - Ledger & Deposit Queue

잔액과 거래 내역(append-only)을 관리합니다. 잔액은 모든 변경 시점에
센트 단위로 반올림되며 항상 initial_balance + sum(거래 금액)과 같습니다.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from .errors import InvalidArgumentError, NotFoundError
from .formatting import IdFactory, Money, round_money
from .models import Deposit, DepositStatus, Transaction, TransactionKind

logger = logging.getLogger(__name__)

SUPPORTED_CURRENCIES = ("BTC", "ETH", "SOL")


class Ledger:
    """
    잔액 + 거래 내역

    Usage:
        ledger = Ledger(ids, clock.now)

        ledger.debit(Decimal("10"), TransactionKind.SMS_RENTAL, "SMS rental")  # True
        ledger.debit(Decimal("60"), TransactionKind.SMS_RENTAL, "too much")    # False
        ledger.credit(Decimal("5"), TransactionKind.REFUND, "Refund")
        ledger.recent(10)
    """

    def __init__(
        self,
        ids: IdFactory,
        now: Callable[[], datetime],
        initial_balance: Money = Decimal("50.00")
    ):
        self._ids = ids
        self._now = now
        self.initial_balance = round_money(initial_balance)
        self.balance = self.initial_balance
        self.transactions: List[Transaction] = []

    def _validate_amount(self, amount: Money) -> Decimal:
        value = round_money(amount)
        if value <= 0:
            raise InvalidArgumentError(
                f"Amount must be positive, got {amount}",
                {"amount": str(amount)},
            )
        return value

    def _append(self, kind: TransactionKind, amount: Decimal, description: str) -> Transaction:
        tx = Transaction(
            id=self._ids.new("tx"),
            kind=TransactionKind(kind),
            amount=amount,
            description=description,
            created_at=self._now(),
        )
        self.transactions.append(tx)
        return tx

    def debit(self, amount: Money, kind: TransactionKind, description: str) -> bool:
        """
        잔액 차감

        amount가 잔액보다 크면 아무것도 바꾸지 않고 False를 반환합니다.
        """
        value = self._validate_amount(amount)
        if value > self.balance:
            logger.warning(f"Debit rejected: {value} > balance {self.balance} ({description})")
            return False

        self.balance = round_money(self.balance - value)
        self._append(kind, -value, description)
        logger.info(f"Debit {value} ({kind}): balance={self.balance}")
        return True

    def credit(self, amount: Money, kind: TransactionKind, description: str) -> None:
        """잔액 증가 (항상 성공)"""
        value = self._validate_amount(amount)
        self.balance = round_money(self.balance + value)
        self._append(kind, value, description)
        logger.info(f"Credit {value} ({kind}): balance={self.balance}")

    def recent(self, limit: int = 10) -> List[Transaction]:
        """최근 거래 (created_at 내림차순, 같은 시각이면 나중에 기록된 것이 먼저)"""
        newest_first = sorted(
            reversed(self.transactions),
            key=lambda tx: tx.created_at,
            reverse=True,
        )
        return newest_first[:limit]

    def expected_balance(self) -> Decimal:
        """거래 내역으로부터 다시 계산한 잔액"""
        return round_money(self.initial_balance + sum(
            (tx.amount for tx in self.transactions), Decimal("0")
        ))


class DepositQueue:
    """
    대기 중인 입금 요청

    입금은 생성 후 confirm_after가 지나면 잔액 조회 시점에 자동 확정됩니다.

    Usage:
        deposits = DepositQueue(ledger, ids, clock.now)
        invoice_id = deposits.create(Decimal("25"), "BTC")

        # 5초 후
        deposits.resolve_pending()   # ledger에 25 입금, 한 번만
    """

    def __init__(
        self,
        ledger: Ledger,
        ids: IdFactory,
        now: Callable[[], datetime],
        confirm_after: timedelta = timedelta(seconds=5)
    ):
        self.ledger = ledger
        self._ids = ids
        self._now = now
        self.confirm_after = confirm_after
        self.deposits: Dict[str, Deposit] = {}

    def create(self, amount: Money, currency: str = "BTC") -> str:
        """대기 입금 생성 후 invoice_id 반환"""
        value = round_money(amount)
        if value <= 0:
            raise InvalidArgumentError(
                f"Deposit amount must be positive, got {amount}",
                {"amount": str(amount)},
            )
        currency = (currency or "").upper()
        if currency not in SUPPORTED_CURRENCIES:
            raise InvalidArgumentError(
                f"Unsupported currency: {currency}. Use one of {', '.join(SUPPORTED_CURRENCIES)}.",
                {"currency": currency},
            )

        invoice_id = self._ids.new("inv")
        self.deposits[invoice_id] = Deposit(
            invoice_id=invoice_id,
            amount=value,
            currency=currency,
            created_at=self._now(),
        )
        logger.info(f"Deposit created: {invoice_id} {value} {currency}")
        return invoice_id

    def get(self, invoice_id: str) -> Deposit:
        deposit = self.deposits.get(invoice_id)
        if deposit is None:
            raise NotFoundError(f"Deposit not found: {invoice_id}", {"invoice_id": invoice_id})
        return deposit

    def resolve_pending(self, now: Optional[datetime] = None) -> List[Deposit]:
        """
        만기가 지난 대기 입금을 확정하고 잔액에 반영

        이미 확정된 입금은 건너뛰므로 여러 번 호출해도 입금당 한 번만 반영됩니다.

        Returns:
            이번 호출에서 확정된 입금 목록
        """
        now = now or self._now()
        confirmed = []
        for deposit in self.deposits.values():
            if deposit.status != DepositStatus.PENDING:
                continue
            if now - deposit.created_at > self.confirm_after:
                deposit.status = DepositStatus.COMPLETED
                self.ledger.credit(
                    deposit.amount,
                    TransactionKind.DEPOSIT,
                    f"Crypto deposit ({deposit.currency})",
                )
                confirmed.append(deposit)
                logger.info(f"Deposit confirmed: {deposit.invoice_id}")
        return confirmed

    def pending(self) -> List[Deposit]:
        return [d for d in self.deposits.values() if d.status == DepositStatus.PENDING]
