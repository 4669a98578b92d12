"""
Market Sandbox - SMS Rental Manager

미국 non-VoIP 번호 대여, 인증 메시지 수신 시뮬레이션, 취소/환불을 담당합니다.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable

from .catalog import Catalog
from .errors import InvalidStateError, NotFoundError
from .formatting import generate_phone_number, generate_verification_code
from .ledger import Ledger
from .models import OrderStatus, SmsMessage, SmsRental, TransactionKind
from .orchestrator import PurchaseOrchestrator
from .registry import Registry

logger = logging.getLogger(__name__)

RENTAL_COUNTRY = "US"


@dataclass
class CancelResult:
    """취소 결과 (refunded가 0이면 환불 없음)"""
    rental: SmsRental
    refunded: Decimal

    @property
    def was_refunded(self) -> bool:
        return self.refunded > 0


class SmsRentalManager:
    """
    SMS 대여 관리자

    Usage:
        rental = sms.purchase("whatsapp")
        sms.get_messages(rental.id)     # 5초 후 인증 코드 1건 수신
        sms.cancel(rental.id)           # 메시지가 없을 때만 전액 환불
    """

    def __init__(
        self,
        catalog: Catalog,
        ledger: Ledger,
        orchestrator: PurchaseOrchestrator,
        rng: random.Random,
        now: Callable[[], datetime],
        rental_duration: timedelta = timedelta(minutes=5),
        delivery_delay: timedelta = timedelta(seconds=5),
    ):
        self.catalog = catalog
        self.ledger = ledger
        self.orchestrator = orchestrator
        self.rng = rng
        self._now = now
        self.rental_duration = rental_duration
        self.delivery_delay = delivery_delay
        self.registry: Registry[SmsRental] = Registry("Rental", now)

    def purchase(self, service_id: str) -> SmsRental:
        """번호 대여 (5분 후 만료)"""
        offer = self.catalog.find_service(service_id)
        if offer is None:
            raise NotFoundError(
                f'Service "{service_id}" not found. Use search_sms_services to find available options.',
                {"service": service_id},
            )

        def mint(rental_id: str, now: datetime, cost: Decimal) -> SmsRental:
            return SmsRental(
                id=rental_id,
                price=cost,
                created_at=now,
                expiry=now + self.rental_duration,
                status=OrderStatus.ACTIVE,
                number=generate_phone_number(RENTAL_COUNTRY, self.rng),
                service=offer.id,
                service_name=offer.name,
                country=RENTAL_COUNTRY,
            )

        return self.orchestrator.purchase(
            registry=self.registry,
            prefix="sms",
            cost=offer.price,
            kind=TransactionKind.SMS_RENTAL,
            description=f"SMS rental: {offer.name} ({RENTAL_COUNTRY})",
            mint=mint,
        )

    def get(self, rental_id: str) -> SmsRental:
        return self.registry.get(rental_id)

    def get_messages(self, rental_id: str) -> SmsRental:
        """
        메시지 조회

        active이고 메시지가 없으며 생성 후 delivery_delay가 지났으면 인증 코드
        메시지를 정확히 한 건 추가합니다. 메시지가 추가되는 유일한 경로입니다.
        """
        now = self._now()
        rental = self.registry.get(rental_id, now)

        if rental.status == OrderStatus.EXPIRED:
            raise InvalidStateError(f"Rental {rental_id} has expired.", rental.status.value)
        if rental.status == OrderStatus.CANCELLED:
            raise InvalidStateError(f"Rental {rental_id} has been cancelled.", rental.status.value)

        if rental.is_active and not rental.messages and now - rental.created_at >= self.delivery_delay:
            code = generate_verification_code(self.rng)
            rental.messages.append(SmsMessage(
                sender=rental.service,
                text=f"Your {rental.service} verification code is: {code}",
                received_at=now,
            ))
            logger.info(f"Rental {rental_id} received verification code")

        return rental

    def cancel(self, rental_id: str) -> CancelResult:
        """대여 취소. 수신 메시지가 없으면 대여 가격 전액 환불"""
        rental = self.registry.get(rental_id)

        if not rental.is_active:
            raise InvalidStateError(
                f"Rental {rental_id} is {rental.status.value} and cannot be cancelled.",
                rental.status.value,
            )

        rental.status = OrderStatus.CANCELLED
        refunded = Decimal("0")
        if not rental.messages:
            self.ledger.credit(
                rental.price,
                TransactionKind.REFUND,
                f"Refund: {rental.service} rental ({rental.country})",
            )
            refunded = rental.price

        logger.info(f"Rental {rental_id} cancelled (refund={refunded})")
        return CancelResult(rental=rental, refunded=refunded)
