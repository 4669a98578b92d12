"""
Market Sandbox - Proxy Lease Tests

프록시 구매(상품 선택 규칙 포함), 대역폭 시뮬레이션, IP 로테이션을 테스트합니다.

실행:
    pytest tests/test_proxy.py -v
"""

import pytest
from datetime import timedelta
from decimal import Decimal

from market_sandbox.simulator.catalog import Catalog, ProxyOffering
from market_sandbox.simulator.errors import (
    InsufficientBalanceError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from market_sandbox.simulator.models import OrderStatus, ProxyType, TransactionKind


@pytest.fixture
def sandbox_catalog():
    """US gb 상품의 첫 번째가 T-Mobile 2.49인 카탈로그"""
    return Catalog(proxies=[
        ProxyOffering("US", "T-Mobile", "gb", "5G", price_per_gb=Decimal("2.49")),
        ProxyOffering("US", "AT&T", "gb", "5G", price_per_gb=Decimal("1.99")),
        ProxyOffering("US", "T-Mobile", "dedicated", "5G", price_per_month=Decimal("70"), bandwidth_gb=30),
        ProxyOffering("DE", "Telekom", "dedicated", "5G", price_per_month=Decimal("9"), bandwidth_gb=25),
    ])


class TestPurchaseProxy:
    """프록시 구매"""

    def test_gb_purchase(self, sandbox_store):
        proxy = sandbox_store.proxies.purchase("gb", "US", 10)

        assert proxy.price == Decimal("24.90")
        assert proxy.bandwidth_total == 10
        assert proxy.bandwidth_used == 0
        assert proxy.carrier == "T-Mobile"
        assert proxy.type == ProxyType.GB
        assert proxy.status == OrderStatus.ACTIVE
        assert proxy.expiry - proxy.created_at == timedelta(days=30)
        assert sandbox_store.get_balance() == Decimal("25.10")
        assert sandbox_store.ledger.transactions[-1].kind == TransactionKind.PROXY_PURCHASE

    def test_first_offering_not_cheapest(self, sandbox_store):
        """같은 (type, country)에서 카탈로그 첫 번째 상품 선택"""
        proxy = sandbox_store.proxies.purchase("gb", "US", 1)
        assert proxy.carrier == "T-Mobile"
        assert proxy.price == Decimal("2.49")

    def test_gb_expiry_independent_of_quantity(self, sandbox_store):
        small = sandbox_store.proxies.purchase("gb", "US", 1)
        large = sandbox_store.proxies.purchase("gb", "US", 5)
        assert small.expiry - small.created_at == large.expiry - large.created_at == timedelta(days=30)

    def test_default_quantity(self, sandbox_store):
        proxy = sandbox_store.proxies.purchase("gb", "US")
        assert proxy.bandwidth_total == 1
        assert proxy.price == Decimal("2.49")

    def test_dedicated_months(self, sandbox_store):
        proxy = sandbox_store.proxies.purchase("dedicated", "DE", 3)

        assert proxy.price == Decimal("27.00")
        assert proxy.bandwidth_total == 25
        assert proxy.expiry - proxy.created_at == timedelta(days=90)

    def test_credentials(self, sandbox_store):
        proxy = sandbox_store.proxies.purchase("gb", "us", 1)

        creds = proxy.credentials
        assert proxy.country == "US"
        assert creds.host == "us.proxy.voidmob.com"
        assert 10000 <= creds.port < 15000
        assert creds.username.startswith("vm_")
        assert creds.connection_string == f"{creds.host}:{creds.port}:{creds.username}:{creds.password}"
        assert len(proxy.ip.split(".")) == 4

    def test_invalid_type(self, sandbox_store):
        with pytest.raises(InvalidArgumentError):
            sandbox_store.proxies.purchase("residential", "US", 1)

    def test_invalid_country(self, sandbox_store):
        with pytest.raises(InvalidArgumentError):
            sandbox_store.proxies.purchase("gb", "XX", 1)

    @pytest.mark.parametrize("quantity", [0, -3, float("inf"), float("nan")])
    def test_invalid_quantity(self, sandbox_store, quantity):
        with pytest.raises(InvalidArgumentError):
            sandbox_store.proxies.purchase("gb", "US", quantity)
        assert sandbox_store.get_balance() == Decimal("50.00")

    def test_no_offering(self, sandbox_store):
        with pytest.raises(NotFoundError):
            sandbox_store.proxies.purchase("gb", "DE", 1)

    def test_insufficient_balance(self, sandbox_store):
        with pytest.raises(InsufficientBalanceError):
            sandbox_store.proxies.purchase("dedicated", "US", 1)
        assert len(sandbox_store.proxies.registry) == 0
        assert sandbox_store.ledger.transactions == []

    def test_huge_quantity_insufficient_balance(self, sandbox_store):
        """잔액 검사가 만료일 계산보다 먼저"""
        with pytest.raises(InsufficientBalanceError):
            sandbox_store.proxies.purchase("dedicated", "US", 100000)
        assert len(sandbox_store.proxies.registry) == 0

    def test_lease_period_out_of_range(self, sandbox_store):
        sandbox_store.ledger.credit(Decimal("100000000"), TransactionKind.DEPOSIT, "setup")

        with pytest.raises(InvalidArgumentError):
            sandbox_store.proxies.purchase("dedicated", "US", 100000)

        assert len(sandbox_store.proxies.registry) == 0
        assert sandbox_store.ledger.balance == Decimal("100000050.00")
        assert len(sandbox_store.ledger.transactions) == 1


class TestProxyStatus:
    """대역폭 / 만료"""

    def test_bandwidth_accrual(self, sandbox_store, manual_clock):
        proxy = sandbox_store.proxies.purchase("gb", "US", 10)

        manual_clock.advance(hours=10)
        assert sandbox_store.proxies.get(proxy.id).bandwidth_used == pytest.approx(0.5)

    def test_bandwidth_capped(self, sandbox_store, manual_clock):
        """대역폭 사용량은 총량의 90%를 넘지 않음"""
        proxy = sandbox_store.proxies.purchase("gb", "US", 1)

        previous = 0.0
        for _ in range(12):
            manual_clock.advance(hours=5)
            used = sandbox_store.proxies.get(proxy.id).bandwidth_used
            assert previous <= used <= 0.9
            previous = used
        assert previous == pytest.approx(0.9)

    def test_lazy_expiry(self, sandbox_store, manual_clock):
        proxy = sandbox_store.proxies.purchase("gb", "US", 1)
        manual_clock.advance(days=30)
        assert sandbox_store.proxies.get(proxy.id).status == OrderStatus.EXPIRED


class TestRotateIp:
    """IP 로테이션"""

    def test_rotate(self, sandbox_store):
        proxy = sandbox_store.proxies.purchase("gb", "US", 1)
        old_ip = proxy.ip

        result = sandbox_store.proxies.rotate_ip(proxy.id)

        assert result.old_ip == old_ip
        assert result.new_ip != old_ip
        assert sandbox_store.proxies.get(proxy.id).ip == result.new_ip

    def test_rotate_many_times_always_changes(self, sandbox_store):
        proxy = sandbox_store.proxies.purchase("gb", "US", 1)
        for _ in range(20):
            result = sandbox_store.proxies.rotate_ip(proxy.id)
            assert result.new_ip != result.old_ip

    def test_rotate_expired(self, sandbox_store, manual_clock):
        proxy = sandbox_store.proxies.purchase("gb", "US", 1)
        manual_clock.advance(days=31)

        with pytest.raises(InvalidStateError) as exc:
            sandbox_store.proxies.rotate_ip(proxy.id)
        assert exc.value.status == "expired"

    def test_rotate_unknown(self, sandbox_store):
        with pytest.raises(NotFoundError):
            sandbox_store.proxies.rotate_ip("prx_missing")
