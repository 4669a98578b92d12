"""
Market Sandbox - Ledger / Deposit Tests

잔액, 거래 내역, 입금 확정을 테스트합니다.

실행:
    pytest tests/test_ledger.py -v
"""

import random

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from market_sandbox.simulator.clock import ManualClock
from market_sandbox.simulator.errors import InvalidArgumentError, NotFoundError
from market_sandbox.simulator.formatting import IdFactory
from market_sandbox.simulator.ledger import DepositQueue, Ledger
from market_sandbox.simulator.models import DepositStatus, TransactionKind



@pytest.fixture
def clock():
    return ManualClock(datetime(2026, 1, 1, 12, 0, 0))


@pytest.fixture
def ledger(clock):
    return Ledger(IdFactory(random.Random(7)), clock.now)


@pytest.fixture
def deposits(ledger, clock):
    return DepositQueue(ledger, IdFactory(random.Random(8)), clock.now)


class TestLedger:
    """Ledger 테스트"""

    def test_initial_balance(self, ledger):
        assert ledger.balance == Decimal("50.00")
        assert ledger.transactions == []

    def test_debit_more_than_balance_fails(self, ledger):
        """잔액보다 큰 차감은 실패하고 아무것도 바뀌지 않음"""
        assert ledger.debit(Decimal("60"), TransactionKind.SMS_RENTAL, "too much") is False
        assert ledger.balance == Decimal("50.00")
        assert ledger.transactions == []

    def test_debit_success(self, ledger):
        assert ledger.debit(Decimal("10"), TransactionKind.SMS_RENTAL, "ok") is True
        assert ledger.balance == Decimal("40.00")
        assert len(ledger.transactions) == 1
        assert ledger.transactions[0].amount == Decimal("-10.00")
        assert ledger.transactions[0].kind == TransactionKind.SMS_RENTAL

    def test_debit_exact_balance(self, ledger):
        """잔액 전액 차감은 허용"""
        assert ledger.debit(Decimal("50.00"), TransactionKind.ESIM_PURCHASE, "all") is True
        assert ledger.balance == Decimal("0.00")

    def test_credit(self, ledger):
        ledger.credit(Decimal("5.5"), TransactionKind.REFUND, "Refund")
        assert ledger.balance == Decimal("55.50")
        assert ledger.transactions[-1].amount == Decimal("5.50")

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1")])
    def test_non_positive_amount_rejected(self, ledger, amount):
        with pytest.raises(InvalidArgumentError):
            ledger.debit(amount, TransactionKind.SMS_RENTAL, "bad")
        with pytest.raises(InvalidArgumentError):
            ledger.credit(amount, TransactionKind.REFUND, "bad")
        assert ledger.balance == Decimal("50.00")

    @pytest.mark.parametrize("amount", [Decimal("Infinity"), Decimal("1e40")])
    def test_out_of_range_amount_rejected(self, ledger, amount):
        with pytest.raises(InvalidArgumentError):
            ledger.credit(amount, TransactionKind.DEPOSIT, "bad")
        assert ledger.balance == Decimal("50.00")
        assert ledger.transactions == []

    def test_rounding_to_cents(self, ledger):
        """모든 변경 시점에 센트 단위 반올림"""
        for _ in range(10):
            ledger.debit(0.1, TransactionKind.SMS_RENTAL, "small")
        assert ledger.balance == Decimal("49.00")
        ledger.credit("0.005", TransactionKind.REFUND, "half cent")
        assert ledger.balance == Decimal("49.01")

    def test_balance_never_negative(self, ledger):
        """어떤 차감 순서로도 잔액은 음수가 되지 않음"""
        amounts = ["12.34", "20", "15.5", "9.99", "3", "1.17", "7", "0.01"]
        for a in amounts * 3:
            ledger.debit(Decimal(a), TransactionKind.PROXY_PURCHASE, "loop")
            assert ledger.balance >= 0
        assert ledger.balance == ledger.expected_balance()

    def test_consistency_with_transactions(self, ledger):
        """balance == 50.00 + sum(거래 금액)"""
        ledger.debit(Decimal("12.00"), TransactionKind.ESIM_PURCHASE, "eSIM")
        ledger.credit(Decimal("20"), TransactionKind.DEPOSIT, "deposit")
        ledger.debit(Decimal("3.00"), TransactionKind.TOPUP, "topup")
        ledger.debit(Decimal("100"), TransactionKind.TOPUP, "rejected")

        total = sum((t.amount for t in ledger.transactions), Decimal("0"))
        assert ledger.balance == Decimal("50.00") + total == Decimal("55.00")
        assert ledger.expected_balance() == ledger.balance

    def test_recent_newest_first(self, ledger, clock):
        ledger.debit(Decimal("1"), TransactionKind.SMS_RENTAL, "first")
        clock.advance(seconds=1)
        ledger.debit(Decimal("2"), TransactionKind.SMS_RENTAL, "second")
        clock.advance(seconds=1)
        ledger.credit(Decimal("3"), TransactionKind.REFUND, "third")

        recent = ledger.recent(2)
        assert [t.description for t in recent] == ["third", "second"]

    def test_recent_same_timestamp(self, ledger):
        """같은 시각이면 나중에 기록된 거래가 먼저"""
        ledger.debit(Decimal("1"), TransactionKind.SMS_RENTAL, "a")
        ledger.debit(Decimal("1"), TransactionKind.SMS_RENTAL, "b")
        assert [t.description for t in ledger.recent(10)] == ["b", "a"]

    def test_transaction_ids_unique(self, ledger):
        for _ in range(20):
            ledger.credit(Decimal("1"), TransactionKind.DEPOSIT, "x")
        ids = [t.id for t in ledger.transactions]
        assert len(set(ids)) == 20
        assert all(i.startswith("tx_") for i in ids)


class TestDepositQueue:
    """DepositQueue 테스트"""

    def test_create_pending(self, deposits, ledger):
        invoice_id = deposits.create(Decimal("25"), "BTC")

        assert invoice_id.startswith("inv_")
        deposit = deposits.get(invoice_id)
        assert deposit.status == DepositStatus.PENDING
        assert deposit.amount == Decimal("25.00")
        assert ledger.balance == Decimal("50.00")

    def test_create_rejects_non_positive(self, deposits):
        with pytest.raises(InvalidArgumentError):
            deposits.create(Decimal("0"))

    def test_create_rejects_unknown_currency(self, deposits):
        with pytest.raises(InvalidArgumentError):
            deposits.create(Decimal("10"), "DOGE")

    def test_not_confirmed_before_delay(self, deposits, ledger, clock):
        deposits.create(Decimal("25"))
        clock.advance(seconds=5)

        assert deposits.resolve_pending() == []
        assert ledger.balance == Decimal("50.00")

    def test_confirmed_after_delay(self, deposits, ledger, clock):
        invoice_id = deposits.create(Decimal("25"), "ETH")
        clock.advance(seconds=6)

        confirmed = deposits.resolve_pending()

        assert [d.invoice_id for d in confirmed] == [invoice_id]
        assert deposits.get(invoice_id).status == DepositStatus.COMPLETED
        assert ledger.balance == Decimal("75.00")
        assert ledger.transactions[-1].kind == TransactionKind.DEPOSIT
        assert ledger.transactions[-1].description == "Crypto deposit (ETH)"

    def test_resolve_idempotent(self, deposits, ledger, clock):
        """여러 번 호출해도 입금당 한 번만 반영"""
        deposits.create(Decimal("25"))
        deposits.create(Decimal("5"))
        clock.advance(seconds=10)

        for _ in range(5):
            deposits.resolve_pending()

        assert ledger.balance == Decimal("80.00")
        assert len([t for t in ledger.transactions if t.kind == TransactionKind.DEPOSIT]) == 2
        assert deposits.pending() == []

    def test_resolve_with_explicit_now(self, deposits, ledger, clock):
        deposits.create(Decimal("10"))
        deposits.resolve_pending(clock.now() + timedelta(seconds=30))
        assert ledger.balance == Decimal("60.00")

    def test_get_unknown(self, deposits):
        with pytest.raises(NotFoundError):
            deposits.get("inv_missing")


class TestStoreBalance:
    """SandboxStore 잔액 조회"""

    def test_get_balance_resolves_deposits(self, sandbox_store, manual_clock):
        sandbox_store.deposits.create(Decimal("20"))
        assert sandbox_store.get_balance() == Decimal("50.00")

        manual_clock.advance(seconds=6)
        assert sandbox_store.get_balance() == Decimal("70.00")

    def test_wallet_summary(self, sandbox_store, manual_clock):
        sandbox_store.deposits.create(Decimal("20"))
        sandbox_store.sms.purchase("telegram")

        summary = sandbox_store.wallet_summary()

        assert summary.balance == Decimal("48.50")
        assert len(summary.pending_deposits) == 1
        assert len(summary.recent_transactions) == 1

        response = summary.to_response()
        assert response.balance == 48.5
        assert response.transactions[0].kind == "sms_rental"
