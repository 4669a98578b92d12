"""
Market Sandbox 설정

잔액, 지연 시간, 서버 포트 등 샌드박스 설정 관리
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass
class ServerConfig:
    """HTTP 서버 설정"""
    host: str = "0.0.0.0"
    port: int = 9100

    @property
    def url(self) -> str:
        """클라이언트 접속 URL"""
        host = "localhost" if self.host == "0.0.0.0" else self.host
        return f"http://{host}:{self.port}"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """환경변수에서 설정 로드"""
        return cls(
            host=os.getenv("SANDBOX_HOST", "0.0.0.0"),
            port=int(os.getenv("SANDBOX_PORT", "9100")),
        )


@dataclass
class SandboxConfig:
    """샌드박스 전체 설정"""

    # 서비스 정보
    service_name: str = "market_sandbox"
    version: str = "0.1.0"

    # 지갑
    initial_balance: Decimal = Decimal("50.00")
    deposit_confirm_seconds: float = 5.0
    recent_transactions: int = 10

    # SMS 대여
    sms_rental_minutes: float = 5.0
    sms_delivery_seconds: float = 5.0

    # 외부에 노출되는 URL/호스트
    public_base_url: str = "https://sandbox.voidmob.com"
    proxy_domain: str = "proxy.voidmob.com"

    # 난수 시드 (None이면 비결정적)
    seed: Optional[int] = None

    # 하위 설정
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls) -> "SandboxConfig":
        """환경변수에서 전체 설정 로드"""
        seed = os.getenv("SANDBOX_SEED")
        return cls(
            service_name=os.getenv("SANDBOX_SERVICE_NAME", "market_sandbox"),
            version=os.getenv("SANDBOX_VERSION", "0.1.0"),
            initial_balance=Decimal(os.getenv("SANDBOX_INITIAL_BALANCE", "50.00")),
            deposit_confirm_seconds=float(os.getenv("SANDBOX_DEPOSIT_CONFIRM_SECONDS", "5")),
            recent_transactions=int(os.getenv("SANDBOX_RECENT_TRANSACTIONS", "10")),
            sms_rental_minutes=float(os.getenv("SANDBOX_SMS_RENTAL_MINUTES", "5")),
            sms_delivery_seconds=float(os.getenv("SANDBOX_SMS_DELIVERY_SECONDS", "5")),
            public_base_url=os.getenv("SANDBOX_PUBLIC_BASE_URL", "https://sandbox.voidmob.com"),
            proxy_domain=os.getenv("SANDBOX_PROXY_DOMAIN", "proxy.voidmob.com"),
            seed=int(seed) if seed else None,
            server=ServerConfig.from_env(),
        )


# 전역 설정 인스턴스
_config: Optional[SandboxConfig] = None


def get_config() -> SandboxConfig:
    """전역 설정 반환"""
    global _config
    if _config is None:
        _config = SandboxConfig.from_env()
    return _config


def set_config(config: SandboxConfig) -> None:
    """전역 설정 지정"""
    global _config
    _config = config
