"""
Market Sandbox - Clock

시간 기반 상태 전이(만료, 입금 확인, 사용량, 메시지 수신)는 모두
읽는 시점에 clock.now()로 계산합니다. 테스트에서는 ManualClock을 주입합니다.
"""

from datetime import datetime, timedelta
from typing import Optional, Protocol


class Clock(Protocol):
    """현재 시각을 제공하는 프로토콜"""

    def now(self) -> datetime:
        ...


class SystemClock:
    """실제 시각"""

    def now(self) -> datetime:
        return datetime.now()


class ManualClock:
    """
    수동으로 진행시키는 테스트용 시계

    Usage:
        clock = ManualClock()
        store = SandboxStore.create(clock=clock)

        clock.advance(seconds=6)
        store.get_balance()  # 5초가 지난 입금이 반영됨
    """

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime(2026, 1, 1, 12, 0, 0)

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        """timedelta 인자만큼 시간 진행"""
        delta = timedelta(**kwargs)
        if delta < timedelta(0):
            raise ValueError("ManualClock cannot move backwards")
        self._now += delta
        return self._now

    def set(self, value: datetime) -> None:
        """특정 시각으로 이동 (과거로는 불가)"""
        if value < self._now:
            raise ValueError("ManualClock cannot move backwards")
        self._now = value
