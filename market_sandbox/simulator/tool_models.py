"""
Market Sandbox - Tool Argument Models

툴 인자 스키마. 원래 툴 인터페이스의 camelCase 이름(rentalId 등)과
snake_case 이름을 모두 받습니다.
"""

from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ProxyTypeName = Literal["gb", "dedicated"]


class ToolArgs(BaseModel):
    """툴 인자 기본 클래스"""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class NoArgs(ToolArgs):
    pass


# ============================================================================
# Wallet
# ============================================================================

class DepositArgs(ToolArgs):
    amount: Decimal = Field(..., gt=0, description="Amount in USD to deposit")
    currency: Literal["BTC", "ETH", "SOL"] = Field(
        "BTC", description="Cryptocurrency to pay with (default: BTC)"
    )


# ============================================================================
# SMS
# ============================================================================

class SearchSmsArgs(ToolArgs):
    query: Optional[str] = Field(
        None, description="Search by service name or category (e.g., 'telegram', 'social')"
    )


class ServiceArgs(ToolArgs):
    service: str = Field(..., description="Service ID (e.g., 'whatsapp', 'telegram')")


class RentalArgs(ToolArgs):
    rental_id: str = Field(..., alias="rentalId", description="Rental ID returned from rent_number")


# ============================================================================
# eSIM
# ============================================================================

class SearchEsimArgs(ToolArgs):
    country: str = Field(..., description="ISO 3166-1 alpha-2 country code (e.g., JP, US, GB)")
    duration: Optional[int] = Field(None, ge=1, description="Minimum plan duration in days")
    data_amount: Optional[float] = Field(
        None, ge=1, allow_inf_nan=False, alias="dataAmount", description="Minimum data amount in GB"
    )


class PlanArgs(ToolArgs):
    plan_id: str = Field(..., alias="planId", description="Plan ID (e.g., 'esim_jp_3g_7d')")


class OrderArgs(ToolArgs):
    order_id: str = Field(..., alias="orderId", description="Order ID returned from purchase_esim")


class TopupArgs(ToolArgs):
    order_id: str = Field(..., alias="orderId", description="Order ID to top up")
    data_amount: float = Field(..., gt=0, allow_inf_nan=False, alias="dataAmount", description="Amount of data to add in GB")


# ============================================================================
# Proxy
# ============================================================================

class SearchProxyArgs(ToolArgs):
    country: Optional[str] = Field(None, description="ISO 3166-1 alpha-2 country code (e.g., US, GB, DE)")
    type: Optional[ProxyTypeName] = Field(
        None, description="Proxy type: 'gb' for pay-per-GB or 'dedicated' for fixed monthly"
    )


class ProxyPricingArgs(ToolArgs):
    type: ProxyTypeName = Field(..., description="Proxy type: 'gb' for pay-per-GB or 'dedicated' for fixed monthly")
    country: str = Field(..., description="ISO 3166-1 alpha-2 country code (e.g., US, GB)")


class PurchaseProxyArgs(ToolArgs):
    type: ProxyTypeName = Field(..., description="Proxy type: 'gb' for pay-per-GB or 'dedicated' for fixed monthly")
    country: str = Field(..., description="ISO 3166-1 alpha-2 country code (e.g., US, GB)")
    quantity: Optional[float] = Field(
        None, gt=0, allow_inf_nan=False, description="GB for 'gb' type, months for 'dedicated' type (default: 1)"
    )


class ProxyArgs(ToolArgs):
    proxy_id: str = Field(..., alias="proxyId", description="Proxy ID returned from purchase_proxy")


# ============================================================================
# Orders
# ============================================================================

class ListOrdersArgs(ToolArgs):
    type: Optional[Literal["sms", "esim", "proxy"]] = Field(None, description="Filter by service type")
    status: Optional[Literal["active", "completed", "cancelled", "expired", "all"]] = Field(
        None, description="Filter by status (default: all)"
    )
