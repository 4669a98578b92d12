"""
Market Sandbox - Data Models

레코드(dataclass)와 API 응답용 Pydantic 스키마를 정의합니다.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .formatting import round_gb


class TransactionKind(str, Enum):
    """거래 종류"""
    DEPOSIT = "deposit"
    SMS_RENTAL = "sms_rental"
    ESIM_PURCHASE = "esim_purchase"
    PROXY_PURCHASE = "proxy_purchase"
    REFUND = "refund"
    TOPUP = "topup"


class DepositStatus(str, Enum):
    """입금 상태"""
    PENDING = "pending"
    COMPLETED = "completed"


class OrderStatus(str, Enum):
    """
    주문 상태

    - SMS 대여: active, completed, cancelled, expired
    - eSIM 주문: active, completed, expired
    - 프록시: active, expired
    """
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class ProxyType(str, Enum):
    """프록시 과금 방식"""
    GB = "gb"                 # GB당 과금
    DEDICATED = "dedicated"   # 월 고정


# 사용량 시뮬레이션 (시간당 GB, 총량 대비 상한 비율)
ESIM_USAGE_GB_PER_HOUR = 0.1
ESIM_USAGE_CAP_RATIO = 0.95
PROXY_USAGE_GB_PER_HOUR = 0.05
PROXY_USAGE_CAP_RATIO = 0.9


def usage_cap(total_gb: float, cap_ratio: float) -> float:
    """총량 x 상한 비율을 0.01GB 단위로 내림. 항상 total_gb * cap_ratio 이하"""
    cap = total_gb * cap_ratio
    rounded = round_gb(cap)
    if rounded > cap:
        rounded = round_gb(rounded - 0.01)
    return rounded


def simulated_usage(
    now: datetime,
    created_at: datetime,
    total_gb: float,
    gb_per_hour: float,
    cap_ratio: float
) -> float:
    """경과 시간에 비례하는 사용량. (now, created_at, total)만으로 결정됩니다."""
    hours = max(0.0, (now - created_at).total_seconds() / 3600)
    return min(round_gb(hours * gb_per_hour), usage_cap(total_gb, cap_ratio))


# ============================================================================
# Ledger Records
# ============================================================================

@dataclass
class Transaction:
    """거래 내역 (amount는 부호 있는 금액)"""
    id: str
    kind: TransactionKind
    amount: Decimal
    description: str
    created_at: datetime

    def to_dict(self) -> dict:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


@dataclass
class Deposit:
    """암호화폐 입금 요청"""
    invoice_id: str
    amount: Decimal
    currency: str
    created_at: datetime
    status: DepositStatus = DepositStatus.PENDING

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data


# ============================================================================
# Resource Records
# ============================================================================

@dataclass
class Resource:
    """
    SMS 대여 / eSIM 주문 / 프록시의 공통 레코드

    상태 전이는 refresh(now)에서만 일어납니다. 접근자마다 맨 앞에서 호출되며,
    만료 시각이 지난 active 레코드를 expired로 바꾸고 파생 필드를 다시 계산합니다.
    """
    id: str
    price: Decimal
    created_at: datetime
    expiry: datetime
    status: OrderStatus

    @property
    def is_active(self) -> bool:
        return self.status == OrderStatus.ACTIVE

    def refresh(self, now: datetime) -> bool:
        """지연 상태 전이. 이번 호출에서 만료되었으면 True"""
        expired_now = False
        if self.status == OrderStatus.ACTIVE and now >= self.expiry:
            self.status = OrderStatus.EXPIRED
            expired_now = True
        self.accrue(now)
        return expired_now

    def accrue(self, now: datetime) -> None:
        """시간 파생 필드 재계산 (기본: 없음)"""

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class SmsMessage:
    """수신 SMS"""
    sender: str
    text: str
    received_at: datetime

    def to_dict(self) -> dict:
        return {"from": self.sender, "text": self.text, "received_at": self.received_at}


@dataclass
class SmsRental(Resource):
    """SMS 번호 대여"""
    number: str = ""
    service: str = ""
    service_name: str = ""
    country: str = "US"
    messages: List[SmsMessage] = field(default_factory=list)

    @property
    def rental_id(self) -> str:
        return self.id

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["messages"] = [m.to_dict() for m in self.messages]
        return data


@dataclass
class EsimOrder(Resource):
    """eSIM 주문"""
    plan_id: str = ""
    plan_name: str = ""
    country: str = ""
    data_total: float = 0.0
    data_used: float = 0.0
    qr_url: str = ""
    apn: str = ""

    @property
    def order_id(self) -> str:
        return self.id

    @property
    def data_remaining(self) -> float:
        return max(0.0, round_gb(self.data_total - self.data_used))

    def accrue(self, now: datetime) -> None:
        self.data_used = simulated_usage(
            now, self.created_at, self.data_total,
            ESIM_USAGE_GB_PER_HOUR, ESIM_USAGE_CAP_RATIO,
        )


@dataclass
class ProxyCredentials:
    """프록시 접속 정보"""
    host: str
    port: int
    username: str
    password: str

    @property
    def connection_string(self) -> str:
        return f"{self.host}:{self.port}:{self.username}:{self.password}"


@dataclass
class ProxyLease(Resource):
    """모바일 프록시 임대"""
    type: ProxyType = ProxyType.GB
    country: str = ""
    carrier: str = ""
    network: str = ""
    credentials: Optional[ProxyCredentials] = None
    bandwidth_used: float = 0.0
    bandwidth_total: float = 0.0
    ip: str = ""

    @property
    def proxy_id(self) -> str:
        return self.id

    @property
    def bandwidth_remaining(self) -> float:
        return max(0.0, round_gb(self.bandwidth_total - self.bandwidth_used))

    def accrue(self, now: datetime) -> None:
        self.bandwidth_used = simulated_usage(
            now, self.created_at, self.bandwidth_total,
            PROXY_USAGE_GB_PER_HOUR, PROXY_USAGE_CAP_RATIO,
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["type"] = self.type.value
        return data


@dataclass
class OrderSummary:
    """통합 주문 목록의 공통 형태"""
    type: str           # "SMS", "eSIM", "Proxy"
    name: str
    id: str
    status: str
    price: Decimal
    details: str
    created_at: datetime

    def to_response(self) -> "OrderResponse":
        return OrderResponse(
            type=self.type,
            name=self.name,
            id=self.id,
            status=self.status,
            price=float(self.price),
            details=self.details,
            created_at=self.created_at.isoformat(),
        )


@dataclass
class WalletSummary:
    """잔액 조회 결과"""
    balance: Decimal
    pending_deposits: List[Deposit]
    recent_transactions: List[Transaction]

    def to_response(self) -> "WalletResponse":
        return WalletResponse(
            balance=float(self.balance),
            pending_deposits=[
                DepositResponse(
                    invoice_id=d.invoice_id,
                    amount=float(d.amount),
                    currency=d.currency,
                    status=d.status.value,
                    created_at=d.created_at.isoformat(),
                )
                for d in self.pending_deposits
            ],
            transactions=[
                TransactionResponse(
                    id=t.id,
                    kind=t.kind.value,
                    amount=float(t.amount),
                    description=t.description,
                    created_at=t.created_at.isoformat(),
                )
                for t in self.recent_transactions
            ],
        )


# ============================================================================
# Pydantic Response Models
# ============================================================================

class TransactionResponse(BaseModel):
    """거래 내역 응답"""
    id: str
    kind: str
    amount: float
    description: str
    created_at: str


class DepositResponse(BaseModel):
    """입금 응답"""
    invoice_id: str
    amount: float
    currency: str
    status: str
    created_at: str


class WalletResponse(BaseModel):
    """지갑 응답"""
    balance: float
    pending_deposits: List[DepositResponse] = Field(default_factory=list)
    transactions: List[TransactionResponse] = Field(default_factory=list)


class OrderResponse(BaseModel):
    """통합 주문 응답"""
    type: str
    name: str
    id: str
    status: str
    price: float
    details: str
    created_at: str


class TextContent(BaseModel):
    """툴 결과 텍스트 블록"""
    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """툴 호출 결과"""
    content: List[TextContent]
    is_error: bool = False

    @classmethod
    def text(cls, text: str, is_error: bool = False) -> "ToolResult":
        return cls(content=[TextContent(text=text)], is_error=is_error)

    @property
    def first_text(self) -> str:
        return self.content[0].text if self.content else ""


class ToolInfo(BaseModel):
    """툴 목록 항목"""
    name: str
    description: str
    input_schema: Dict[str, Any]


class ErrorResponse(BaseModel):
    """에러 응답"""
    success: bool = Field(default=False, description="항상 False")
    error: str = Field(..., description="에러 코드")
    message: str = Field(..., description="에러 메시지")
    details: Optional[Dict[str, Any]] = None


class HealthResponse(BaseModel):
    """헬스체크 응답"""
    status: str
    version: str
    timestamp: str
