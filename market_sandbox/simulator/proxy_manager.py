"""
Market Sandbox - Proxy Lease Manager

모바일 프록시 구매, 상태 조회, IP 로테이션을 담당합니다.
"""

import logging
import math
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from .catalog import Catalog, PROXY_TYPES, ProxyOffering
from .errors import InvalidArgumentError, InvalidStateError, NotFoundError
from .formatting import generate_ip, generate_proxy_credentials, validate_country
from .models import OrderStatus, ProxyCredentials, ProxyLease, ProxyType, TransactionKind
from .orchestrator import PurchaseOrchestrator
from .registry import Registry

logger = logging.getLogger(__name__)

LEASE_PERIOD = timedelta(days=30)


@dataclass
class RotationResult:
    """IP 로테이션 결과"""
    proxy: ProxyLease
    old_ip: str
    new_ip: str


def validate_proxy_type(proxy_type: str) -> ProxyType:
    if proxy_type not in PROXY_TYPES:
        raise InvalidArgumentError(
            f"Invalid proxy type: {proxy_type}. Use 'gb' (pay-per-GB) or 'dedicated' (fixed monthly).",
            {"type": proxy_type},
        )
    return ProxyType(proxy_type)


class ProxyLeaseManager:
    """
    프록시 임대 관리자

    같은 (type, country)에 여러 통신사 상품이 있으면 카탈로그 순서상
    첫 번째 상품을 선택합니다 (최저가 선택 아님).

    Usage:
        proxy = proxies.purchase("gb", "US", quantity=10)   # 10GB, 30일
        proxy = proxies.purchase("dedicated", "DE", 2)      # 2개월 = 60일
        proxies.rotate_ip(proxy.id)
    """

    def __init__(
        self,
        catalog: Catalog,
        orchestrator: PurchaseOrchestrator,
        rng: random.Random,
        now: Callable[[], datetime],
        proxy_domain: str = "proxy.voidmob.com",
    ):
        self.catalog = catalog
        self.orchestrator = orchestrator
        self.rng = rng
        self._now = now
        self.proxy_domain = proxy_domain
        self.registry: Registry[ProxyLease] = Registry("Proxy", now)

    def select_offering(self, proxy_type: str, country: str) -> ProxyOffering:
        proxy_type = validate_proxy_type(proxy_type).value
        country = validate_country(country)
        options = self.catalog.find_proxy_offerings(proxy_type, country)
        if not options:
            raise NotFoundError(
                f"No {proxy_type} proxies available in {country}. Use search_proxies to find available options.",
                {"type": proxy_type, "country": country},
            )
        return options[0]

    def purchase(self, proxy_type: str, country: str, quantity: Optional[float] = None) -> ProxyLease:
        """
        프록시 구매

        - gb: quantity = GB, 비용 = quantity x price_per_gb, 만료 30일 고정
        - dedicated: quantity = 개월, 비용 = quantity x price_per_month,
          만료 quantity x 30일, 대역폭은 상품의 월 포함량
        """
        qty = 1 if quantity is None else quantity
        if not math.isfinite(qty) or qty <= 0:
            raise InvalidArgumentError(
                f"Quantity must be positive, got {quantity}",
                {"quantity": quantity},
            )

        offering = self.select_offering(proxy_type, country)
        qty_dec = Decimal(str(qty))

        if offering.type == ProxyType.GB.value:
            cost = qty_dec * offering.price_per_gb
            bandwidth_total = float(qty)
            months = 1
        else:
            cost = qty_dec * offering.price_per_month
            bandwidth_total = float(offering.bandwidth_gb)
            months = qty

        def mint(proxy_id: str, now: datetime, price: Decimal) -> ProxyLease:
            try:
                expiry = now + LEASE_PERIOD * months
            except OverflowError:
                raise InvalidArgumentError(
                    f"Quantity too large: {quantity} months exceeds the supported lease period",
                    {"quantity": quantity},
                )
            credentials = generate_proxy_credentials(offering.country, self.rng, self.proxy_domain)
            return ProxyLease(
                id=proxy_id,
                price=price,
                created_at=now,
                expiry=expiry,
                status=OrderStatus.ACTIVE,
                type=ProxyType(offering.type),
                country=offering.country,
                carrier=offering.carrier,
                network=offering.network,
                credentials=ProxyCredentials(**credentials),
                bandwidth_used=0.0,
                bandwidth_total=bandwidth_total,
                ip=generate_ip(self.rng),
            )

        return self.orchestrator.purchase(
            registry=self.registry,
            prefix="prx",
            cost=cost,
            kind=TransactionKind.PROXY_PURCHASE,
            description=f"Proxy: {offering.type} {offering.carrier} ({offering.country})",
            mint=mint,
        )

    def get(self, proxy_id: str) -> ProxyLease:
        return self.registry.get(proxy_id)

    def rotate_ip(self, proxy_id: str) -> RotationResult:
        """새 IP 할당 (active 프록시만)"""
        proxy = self.registry.get(proxy_id)
        if not proxy.is_active:
            raise InvalidStateError(
                f"Proxy {proxy_id} is {proxy.status.value}. Only active proxies can be rotated.",
                proxy.status.value,
            )

        old_ip = proxy.ip
        new_ip = generate_ip(self.rng)
        while new_ip == old_ip:
            new_ip = generate_ip(self.rng)
        proxy.ip = new_ip

        logger.info(f"Proxy {proxy_id} rotated {old_ip} -> {new_ip}")
        return RotationResult(proxy=proxy, old_ip=old_ip, new_ip=new_ip)
