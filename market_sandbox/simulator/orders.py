"""
Market Sandbox - Unified Order View

세 저장소를 가로지르는 읽기 전용 주문 목록.
"""

from datetime import datetime
from typing import Callable, List, Optional

from .errors import InvalidArgumentError
from .formatting import format_gb, format_time_remaining
from .models import EsimOrder, OrderSummary, ProxyLease, SmsRental
from .registry import Registry

ORDER_TYPES = ("sms", "esim", "proxy")
STATUS_FILTERS = ("active", "completed", "cancelled", "expired", "all")


class UnifiedOrderView:
    """
    통합 주문 조회

    모든 레코드는 읽기 전에 refresh되므로 목록의 상태/사용량은 조회 시점 기준입니다.

    Usage:
        orders = view.list()                              # 전체
        orders = view.list(order_type="esim", status="active")
    """

    def __init__(
        self,
        sms: Registry[SmsRental],
        esim: Registry[EsimOrder],
        proxies: Registry[ProxyLease],
        now: Callable[[], datetime],
    ):
        self.sms = sms
        self.esim = esim
        self.proxies = proxies
        self._now = now

    def list(
        self,
        order_type: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[OrderSummary]:
        """
        주문 목록 (created_at 내림차순)

        Args:
            order_type: "sms", "esim", "proxy" 또는 None(전체)
            status: "active", "completed", "cancelled", "expired", "all" 또는 None(전체)
        """
        if order_type is not None and order_type not in ORDER_TYPES:
            raise InvalidArgumentError(
                f"Invalid order type: {order_type}. Use one of {', '.join(ORDER_TYPES)}.",
                {"type": order_type},
            )
        status = status or "all"
        if status not in STATUS_FILTERS:
            raise InvalidArgumentError(
                f"Invalid status filter: {status}. Use one of {', '.join(STATUS_FILTERS)}.",
                {"status": status},
            )

        now = self._now()
        summaries: List[OrderSummary] = []

        if order_type in (None, "sms"):
            summaries.extend(self._from_rental(r) for r in self.sms.values(now))
        if order_type in (None, "esim"):
            summaries.extend(self._from_esim(o, now) for o in self.esim.values(now))
        if order_type in (None, "proxy"):
            summaries.extend(self._from_proxy(p) for p in self.proxies.values(now))

        if status != "all":
            summaries = [s for s in summaries if s.status == status]

        summaries.sort(key=lambda s: s.created_at, reverse=True)
        return summaries

    @staticmethod
    def _from_rental(rental: SmsRental) -> OrderSummary:
        return OrderSummary(
            type="SMS",
            name=f"{rental.service} ({rental.country}) - {rental.number}",
            id=rental.id,
            status=rental.status.value,
            price=rental.price,
            details=f"Messages: {len(rental.messages)}",
            created_at=rental.created_at,
        )

    @staticmethod
    def _from_esim(order: EsimOrder, now: datetime) -> OrderSummary:
        return OrderSummary(
            type="eSIM",
            name=f"{order.plan_name} ({order.country})",
            id=order.id,
            status=order.status.value,
            price=order.price,
            details=(
                f"Data remaining: {format_gb(order.data_remaining)} | "
                f"{format_time_remaining(order.expiry, now)}"
            ),
            created_at=order.created_at,
        )

    @staticmethod
    def _from_proxy(proxy: ProxyLease) -> OrderSummary:
        return OrderSummary(
            type="Proxy",
            name=f"{proxy.type.value.upper()} proxy - {proxy.country} ({proxy.carrier})",
            id=proxy.id,
            status=proxy.status.value,
            price=proxy.price,
            details=f"Bandwidth: {format_gb(proxy.bandwidth_used)} / {format_gb(proxy.bandwidth_total)}",
            created_at=proxy.created_at,
        )
