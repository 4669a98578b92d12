"""
Market Sandbox - eSIM Order Manager

eSIM 요금제 구매, 사용량 조회, 데이터 충전을 담당합니다.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable

from .catalog import Catalog, EsimPlan
from .errors import InvalidArgumentError, InvalidStateError, NotFoundError
from .formatting import format_gb, round_gb, round_money
from .models import EsimOrder, OrderStatus, TransactionKind
from .orchestrator import PurchaseOrchestrator
from .registry import Registry

logger = logging.getLogger(__name__)


@dataclass
class TopupResult:
    """충전 결과"""
    order: EsimOrder
    added_gb: float
    cost: Decimal


class EsimOrderManager:
    """
    eSIM 주문 관리자

    Usage:
        order = esim.purchase("esim_jp_10g_30d")
        esim.get(order.id).data_used      # 경과 시간 기반 사용량
        esim.topup(order.id, 2)           # 2GB x 요금제 충전 단가
    """

    def __init__(
        self,
        catalog: Catalog,
        orchestrator: PurchaseOrchestrator,
        now: Callable[[], datetime],
        public_base_url: str = "https://sandbox.voidmob.com",
    ):
        self.catalog = catalog
        self.orchestrator = orchestrator
        self._now = now
        self.public_base_url = public_base_url.rstrip("/")
        self.registry: Registry[EsimOrder] = Registry("Order", now)

    def find_plan(self, plan_id: str) -> EsimPlan:
        plan = self.catalog.find_plan(plan_id)
        if plan is None:
            raise NotFoundError(
                f"Plan not found: {plan_id}. Use search_esim_plans to browse available plans.",
                {"plan_id": plan_id},
            )
        return plan

    def purchase(self, plan_id: str) -> EsimOrder:
        """요금제 구매 (만료: 생성 시각 + duration_days)"""
        plan = self.find_plan(plan_id)

        def mint(order_id: str, now: datetime, cost: Decimal) -> EsimOrder:
            return EsimOrder(
                id=order_id,
                price=cost,
                created_at=now,
                expiry=now + timedelta(days=plan.duration_days),
                status=OrderStatus.ACTIVE,
                plan_id=plan.plan_id,
                plan_name=plan.name,
                country=plan.country,
                data_total=float(plan.data_gb),
                data_used=0.0,
                qr_url=f"{self.public_base_url}/esim/qr/{order_id}",
                apn=plan.apn,
            )

        return self.orchestrator.purchase(
            registry=self.registry,
            prefix="ord",
            cost=plan.price,
            kind=TransactionKind.ESIM_PURCHASE,
            description=f"eSIM: {plan.name}",
            mint=mint,
        )

    def get(self, order_id: str) -> EsimOrder:
        return self.registry.get(order_id)

    def topup(self, order_id: str, data_amount: float) -> TopupResult:
        """
        데이터 충전

        active 주문이면서 충전 가능한 요금제에만 허용됩니다.
        비용 = data_amount x topup_price (센트 반올림)
        """
        if data_amount is None or not math.isfinite(data_amount) or data_amount <= 0:
            raise InvalidArgumentError(
                f"Top-up amount must be positive, got {data_amount}",
                {"data_amount": data_amount},
            )

        order = self.registry.get(order_id)
        if not order.is_active:
            raise InvalidStateError(
                f"Order {order_id} is {order.status.value}. Only active orders can be topped up.",
                order.status.value,
            )

        plan = self.catalog.find_plan(order.plan_id)
        if plan is None or not plan.topup_available:
            raise InvalidStateError(
                f"Top-up is not available for this plan ({order.plan_name}).",
                order.status.value,
            )

        cost = self.orchestrator.charge(
            round_money(plan.topup_price * Decimal(str(data_amount))),
            TransactionKind.TOPUP,
            f"eSIM top-up: +{format_gb(data_amount)} for {order.plan_name}",
        )
        order.data_total = round_gb(order.data_total + data_amount)
        order.accrue(self._now())

        logger.info(f"Order {order_id} topped up +{data_amount}GB for {cost}")
        return TopupResult(order=order, added_gb=data_amount, cost=cost)
