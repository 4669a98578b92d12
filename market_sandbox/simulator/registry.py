"""
Market Sandbox - Resource Registry

SMS 대여, eSIM 주문, 프록시 임대가 공유하는 ID -> 레코드 저장소.
레코드는 삭제되지 않고 종료 상태로만 전이됩니다.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Generic, Iterator, List, Optional, TypeVar

from .errors import NotFoundError
from .models import Resource

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Resource)


class Registry(Generic[R]):
    """
    레코드 종류별 저장소

    get()/values()는 반환 전에 항상 record.refresh(now)를 호출하므로
    만료와 사용량이 읽는 시점 기준으로 최신입니다.

    Usage:
        rentals: Registry[SmsRental] = Registry("Rental", clock.now)
        rentals.add(rental)
        rental = rentals.get("sms_ab12cd1")   # 없으면 NotFoundError
    """

    def __init__(self, label: str, now: Callable[[], datetime]):
        self.label = label
        self._now = now
        self._records: Dict[str, R] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: str) -> bool:
        return record_id in self._records

    def add(self, record: R) -> R:
        if record.id in self._records:
            raise ValueError(f"{self.label} {record.id} already exists")
        self._records[record.id] = record
        return record

    def _refresh(self, record: R, now: datetime) -> R:
        if record.refresh(now):
            logger.info(f"{self.label} {record.id} expired")
        return record

    def find(self, record_id: str, now: Optional[datetime] = None) -> Optional[R]:
        record = self._records.get(record_id)
        if record is None:
            return None
        return self._refresh(record, now or self._now())

    def get(self, record_id: str, now: Optional[datetime] = None) -> R:
        record = self.find(record_id, now)
        if record is None:
            raise NotFoundError(f"{self.label} not found: {record_id}", {"id": record_id})
        return record

    def values(self, now: Optional[datetime] = None) -> List[R]:
        now = now or self._now()
        return [self._refresh(record, now) for record in self._records.values()]

    def __iter__(self) -> Iterator[R]:
        return iter(self.values())
