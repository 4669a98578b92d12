"""
Market Sandbox - Formatting & Generators

금액/데이터 포맷, 국가 코드 검증, 모의 전화번호/자격증명/IP/ID 생성기.
상태가 없는 순수 함수들이며 난수는 호출자가 넘겨주는 random.Random을 사용합니다.
"""

import random
import string
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, Dict, Union

from .errors import InvalidArgumentError

CENT = Decimal("0.01")
UNLIMITED_GB = 999

Money = Union[Decimal, int, float, str]

# ISO 3166-1 alpha-2 (자주 쓰는 국가만)
VALID_COUNTRIES = frozenset({
    "US", "GB", "CA", "AU", "DE", "FR", "NL", "IT", "ES", "PT",
    "BR", "MX", "AR", "CO", "CL", "PE", "JP", "KR", "CN", "IN",
    "ID", "TH", "VN", "PH", "MY", "SG", "HK", "TW", "RU", "UA",
    "PL", "CZ", "RO", "SE", "NO", "DK", "FI", "AT", "CH", "BE",
    "IE", "NZ", "ZA", "EG", "NG", "KE", "IL", "TR", "SA", "AE",
})

_BASE36 = string.digits + string.ascii_lowercase


# ============================================================================
# 금액 / 데이터
# ============================================================================

def round_money(amount: Money) -> Decimal:
    """센트 단위 반올림"""
    try:
        if not isinstance(amount, Decimal):
            amount = Decimal(str(amount))
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidArgumentError(f"Amount out of range: {amount}", {"amount": str(amount)})


def round_gb(value: float) -> float:
    """GB 값을 소수 둘째 자리로 반올림"""
    return round(value, 2)


def format_usd(amount: Money) -> str:
    return f"${round_money(amount)}"


def format_gb(gb: float) -> str:
    if gb < 1:
        return f"{gb * 1024:.0f} MB"
    return f"{gb:.1f} GB"


def format_data(gb: float) -> str:
    """999GB 이상은 무제한으로 표시"""
    return "Unlimited" if gb >= UNLIMITED_GB else format_gb(gb)


def format_time_remaining(expiry: datetime, now: datetime) -> str:
    remaining = (expiry - now).total_seconds()
    if remaining <= 0:
        return "expired"
    hours = int(remaining // 3600)
    minutes = int((remaining % 3600) // 60)
    if hours > 24:
        return f"{hours // 24}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


# ============================================================================
# 검증
# ============================================================================

def validate_country(country: str) -> str:
    """국가 코드를 대문자로 정규화하고 검증"""
    upper = (country or "").strip().upper()
    if upper not in VALID_COUNTRIES:
        raise InvalidArgumentError(
            f"Invalid country code: {country}. Use ISO 3166-1 alpha-2 (e.g., US, GB, JP).",
            {"country": country},
        )
    return upper


# ============================================================================
# 생성기
# ============================================================================

def _rand(rng: random.Random, low: int, high: int) -> int:
    return rng.randint(low, high)


_PHONE_FORMATS: Dict[str, Callable[[random.Random], str]] = {
    "US": lambda r: f"+1{_rand(r, 200, 999)}{_rand(r, 200, 999)}{_rand(r, 1000, 9999)}",
    "GB": lambda r: f"+447{_rand(r, 100, 999)}{_rand(r, 100000, 999999)}",
    "CA": lambda r: f"+1{_rand(r, 200, 999)}{_rand(r, 200, 999)}{_rand(r, 1000, 9999)}",
    "DE": lambda r: f"+491{_rand(r, 50, 79)}{_rand(r, 1000000, 9999999)}",
    "FR": lambda r: f"+336{_rand(r, 10000000, 99999999)}",
    "NL": lambda r: f"+316{_rand(r, 10000000, 99999999)}",
    "BR": lambda r: f"+5511{_rand(r, 90000, 99999)}{_rand(r, 1000, 9999)}",
    "JP": lambda r: f"+8190{_rand(r, 1000, 9999)}{_rand(r, 1000, 9999)}",
    "AU": lambda r: f"+614{_rand(r, 10, 99)}{_rand(r, 100000, 999999)}",
    "IN": lambda r: f"+91{_rand(r, 70000, 99999)}{_rand(r, 10000, 99999)}",
}


def generate_phone_number(country: str, rng: random.Random) -> str:
    fmt = _PHONE_FORMATS.get(country)
    if fmt is None:
        return f"+{_rand(rng, 1, 99)}{_rand(rng, 100000000, 999999999)}"
    return fmt(rng)


def _token(rng: random.Random, length: int = 6) -> str:
    return "".join(rng.choice(_BASE36) for _ in range(length))


def generate_proxy_credentials(
    country: str,
    rng: random.Random,
    domain: str = "proxy.voidmob.com"
) -> Dict[str, Union[str, int]]:
    return {
        "host": f"{country.lower()}.{domain}",
        "port": 10000 + rng.randrange(5000),
        "username": f"vm_{_token(rng)}",
        "password": _token(rng) + _token(rng),
    }


def generate_ip(rng: random.Random) -> str:
    return ".".join(str(_rand(rng, 1, 254)) for _ in range(4))


def generate_verification_code(rng: random.Random) -> str:
    """6자리 인증 코드"""
    return str(_rand(rng, 100000, 999999))


class IdFactory:
    """
    접두어 기반 ID 생성기

    "<prefix>_<base36 6자리><일련번호>" 형식으로, 일련번호 덕분에
    같은 스토어 안에서는 항상 유일합니다.
    """

    def __init__(self, rng: random.Random):
        self._rng = rng
        self._counter = 0

    def new(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_{_token(self._rng)}{self._counter}"
