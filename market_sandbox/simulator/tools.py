"""
Market Sandbox - Tools

외부 에이전트가 호출하는 툴 등록/호출 계층.
코어 예외(SandboxError)는 여기서 잡혀 is_error=True인 ToolResult로 바뀝니다.

Usage:
    store = SandboxStore.create()
    tools = create_tool_registry(store)

    result = tools.call("rent_number", {"service": "telegram"})
    print(result.first_text)
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from .errors import ErrorCodes, NotFoundError, SandboxError
from .formatting import (
    format_data,
    format_gb,
    format_time_remaining,
    format_usd,
    validate_country,
)
from .models import OrderStatus, ProxyType, ToolInfo, ToolResult
from .store import SandboxStore
from .tool_models import (
    DepositArgs,
    ListOrdersArgs,
    NoArgs,
    OrderArgs,
    PlanArgs,
    ProxyArgs,
    ProxyPricingArgs,
    PurchaseProxyArgs,
    RentalArgs,
    SearchEsimArgs,
    SearchProxyArgs,
    SearchSmsArgs,
    ServiceArgs,
    TopupArgs,
)

logger = logging.getLogger(__name__)

Handler = Callable[[SandboxStore, Any], str]


@dataclass
class Tool:
    """등록된 툴"""
    name: str
    description: str
    args_model: Type[BaseModel]
    handler: Handler

    def info(self) -> ToolInfo:
        return ToolInfo(
            name=self.name,
            description=self.description,
            input_schema=self.args_model.model_json_schema(by_alias=True),
        )


def _validation_message(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"]) or "arguments"
        parts.append(f"{location}: {item['msg']}")
    return "Invalid arguments - " + "; ".join(parts)


class ToolRegistry:
    """
    툴 레지스트리

    call()은 예외를 밖으로 던지지 않습니다. 인자 검증 실패, 알 수 없는 툴,
    코어 예외는 모두 is_error=True 결과로 반환됩니다.
    """

    def __init__(self, store: SandboxStore):
        self.store = store
        self._tools: Dict[str, Tool] = {}

    def register(
        self,
        name: str,
        description: str,
        args_model: Type[BaseModel] = NoArgs
    ) -> Callable[[Handler], Handler]:
        """툴 등록 데코레이터"""
        def decorator(handler: Handler) -> Handler:
            if name in self._tools:
                raise ValueError(f"Tool already registered: {name}")
            self._tools[name] = Tool(name, description, args_model, handler)
            return handler
        return decorator

    def names(self) -> List[str]:
        return list(self._tools)

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def list_tools(self) -> List[ToolInfo]:
        return [tool.info() for tool in self._tools.values()]

    def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult.text(f"{ErrorCodes.NOT_FOUND}: unknown tool '{name}'", is_error=True)

        try:
            args = tool.args_model.model_validate(arguments or {})
        except ValidationError as e:
            return ToolResult.text(_validation_message(e), is_error=True)

        logger.debug(f"Tool call: {name} {arguments}")
        try:
            with self.store.locked():
                text = tool.handler(self.store, args)
        except SandboxError as e:
            logger.info(f"Tool {name} failed: {e.code} {e.message}")
            return ToolResult.text(e.message, is_error=True)

        return ToolResult.text(text)


# ============================================================================
# Wallet
# ============================================================================

def get_balance(store: SandboxStore, args: NoArgs) -> str:
    summary = store.wallet_summary()

    lines = [f"Balance: {format_usd(summary.balance)}"]

    if summary.pending_deposits:
        lines += ["", f"Pending deposits: {len(summary.pending_deposits)}"]
        for d in summary.pending_deposits:
            lines.append(f"  - {format_usd(d.amount)} {d.currency} (auto-confirms in ~5s)")

    if summary.recent_transactions:
        lines += ["", f"Last {len(summary.recent_transactions)} transactions:"]
        for tx in summary.recent_transactions:
            sign = "+" if tx.amount >= 0 else "-"
            date = tx.created_at.strftime("%Y-%m-%dT%H:%M")
            lines.append(f"  {date}  {sign}{format_usd(abs(tx.amount))}  {tx.description}")
    else:
        lines += ["", "No transactions yet."]

    return "\n".join(lines)


def deposit(store: SandboxStore, args: DepositArgs) -> str:
    invoice_id = store.deposits.create(args.amount, args.currency)
    pay_url = f"{store.config.public_base_url.rstrip('/')}/pay/{invoice_id}"

    return "\n".join([
        "Deposit created!",
        "",
        f"  Amount:   {format_usd(args.amount)}",
        f"  Currency: {args.currency}",
        f"  Invoice:  {invoice_id}",
        f"  Pay URL:  {pay_url}",
        "",
        "This is a sandbox deposit. It will auto-confirm in ~5 seconds.",
        "Call get_balance after a few seconds to see the updated balance.",
    ])


# ============================================================================
# SMS
# ============================================================================

def search_sms_services(store: SandboxStore, args: SearchSmsArgs) -> str:
    results = store.catalog.search_services(args.query)
    if not results:
        raise NotFoundError("No services found matching your criteria. Try a different search term.")

    lines = [f"Found {len(results)} US non-VoIP SMS service(s):", ""]
    for s in results:
        lines += [
            f"  {s.name} ({s.id})",
            f"    Category: {s.category}",
            "    Country:  US (non-VoIP)",
            f"    Price:    {format_usd(s.price)}",
            f"    Delivery: {s.estimated_delivery}",
            "",
        ]
    return "\n".join(lines)


def get_sms_price(store: SandboxStore, args: ServiceArgs) -> str:
    offer = store.catalog.find_service(args.service)
    if offer is None:
        raise NotFoundError(
            f'Service "{args.service}" not found. Use search_sms_services to find available options.'
        )

    return "\n".join([
        f"{offer.name} - US (non-VoIP)",
        "",
        f"  Price:    {format_usd(offer.price)}",
        f"  Delivery: {offer.estimated_delivery}",
    ])


def rent_number(store: SandboxStore, args: ServiceArgs) -> str:
    rental = store.sms.purchase(args.service)

    return "\n".join([
        "Number rented!",
        "",
        f"  Rental ID: {rental.id}",
        f"  Number:    {rental.number}",
        f"  Service:   {rental.service_name}",
        "  Country:   US (non-VoIP)",
        f"  Cost:      {format_usd(rental.price)}",
        f"  Expires:   {format_time_remaining(rental.expiry, store.now())}",
        "",
        "Use get_messages with the rental ID to check for incoming verification codes.",
    ])


def get_messages(store: SandboxStore, args: RentalArgs) -> str:
    rental = store.sms.get_messages(args.rental_id)

    if not rental.messages:
        elapsed = int((store.now() - rental.created_at).total_seconds())
        return "\n".join([
            f"No messages yet for {rental.number} ({rental.service}).",
            "",
            "Waiting for verification code... try again shortly.",
            f"Time since rental: {elapsed}s",
        ])

    lines = [f"Messages for {rental.number} ({rental.service}):", ""]
    for msg in rental.messages:
        lines += [
            f"  [{msg.received_at.strftime('%H:%M:%S')}] From: {msg.sender}",
            f"  {msg.text}",
            "",
        ]
    return "\n".join(lines)


def cancel_rental(store: SandboxStore, args: RentalArgs) -> str:
    result = store.sms.cancel(args.rental_id)

    if result.was_refunded:
        return "\n".join([
            f"Rental {args.rental_id} cancelled.",
            "",
            f"  Refund: {format_usd(result.refunded)} (no messages received)",
            f"  New balance: {format_usd(store.ledger.balance)}",
        ])

    return "\n".join([
        f"Rental {args.rental_id} cancelled.",
        "",
        "  No refund - messages were already received.",
    ])


# ============================================================================
# eSIM
# ============================================================================

def search_esim_plans(store: SandboxStore, args: SearchEsimArgs) -> str:
    country = validate_country(args.country)
    results = store.catalog.search_plans(country, args.duration, args.data_amount)
    if not results:
        raise NotFoundError(
            "No eSIM plans found matching your criteria. Try a different country or adjust filters."
        )

    lines = [f"Found {len(results)} eSIM plan(s) for {country}:", ""]
    for plan in results:
        topup = f"Yes ({format_usd(plan.topup_price)}/GB)" if plan.topup_available else "No"
        lines += [
            f"  {plan.name} ({plan.plan_id})",
            f"    Data:     {format_data(plan.data_gb)}",
            f"    Duration: {plan.duration_days} days",
            f"    Price:    {format_usd(plan.price)}",
            f"    Carrier:  {plan.carrier}",
            f"    Routing:  {plan.routing}",
            f"    Top-up:   {topup}",
            "",
        ]
    return "\n".join(lines)


def get_esim_plan_details(store: SandboxStore, args: PlanArgs) -> str:
    plan = store.esim.find_plan(args.plan_id)
    topup = (
        f"Available at {format_usd(plan.topup_price)}/GB"
        if plan.topup_available else "Not available"
    )

    return "\n".join([
        plan.name,
        "",
        f"  Plan ID:   {plan.plan_id}",
        f"  Country:   {plan.country}",
        f"  Region:    {plan.region}",
        f"  Data:      {format_data(plan.data_gb)}",
        f"  Duration:  {plan.duration_days} days",
        f"  Price:     {format_usd(plan.price)}",
        f"  Carrier:   {plan.carrier}",
        f"  APN:       {plan.apn}",
        f"  Routing:   {plan.routing}",
        f"  Top-up:    {topup}",
    ])


def purchase_esim(store: SandboxStore, args: PlanArgs) -> str:
    plan = store.esim.find_plan(args.plan_id)
    order = store.esim.purchase(args.plan_id)

    return "\n".join([
        "eSIM purchased!",
        "",
        f"  Order ID:  {order.id}",
        f"  Plan:      {plan.name}",
        f"  Data:      {format_data(plan.data_gb)}",
        f"  Duration:  {plan.duration_days} days",
        f"  Cost:      {format_usd(order.price)}",
        f"  Carrier:   {plan.carrier}",
        f"  Routing:   {plan.routing}",
        "",
        f"  QR Code:   {order.qr_url}",
        f"  APN:       {order.apn}",
        "",
        "Setup steps:",
        "  1. Scan the QR code with your device camera",
        f'  2. Set APN to "{order.apn}"',
        "  3. Enable the eSIM line in Settings",
        "",
        "Use get_esim_usage with the order ID to check data consumption.",
    ])


def get_esim_usage(store: SandboxStore, args: OrderArgs) -> str:
    order = store.esim.get(args.order_id)
    now = store.now()

    expired = order.status == OrderStatus.EXPIRED
    days_left = max(0, math.ceil((order.expiry - now).total_seconds() / 86400))
    remaining = "Unlimited" if format_data(order.data_total) == "Unlimited" else format_gb(order.data_remaining)

    return "\n".join([
        f"eSIM Usage - {order.plan_name}",
        "",
        f"  Order ID:       {order.id}",
        f"  Status:         {order.status.value}",
        f"  Data used:      {format_gb(order.data_used)}",
        f"  Data remaining: {remaining}",
        f"  Data total:     {format_data(order.data_total)}",
        f"  Days left:      {'Expired' if expired else f'{days_left} day(s)'}",
        f"  Expires:        {'Expired' if expired else format_time_remaining(order.expiry, now)}",
    ])


def topup_esim(store: SandboxStore, args: TopupArgs) -> str:
    result = store.esim.topup(args.order_id, args.data_amount)

    return "\n".join([
        "Top-up successful!",
        "",
        f"  Order:     {result.order.id}",
        f"  Added:     {format_gb(result.added_gb)}",
        f"  Cost:      {format_usd(result.cost)}",
        f"  New total: {format_data(result.order.data_total)}",
        f"  Balance:   {format_usd(store.ledger.balance)}",
    ])


# ============================================================================
# Proxy
# ============================================================================

def _proxy_type_label(proxy_type: str) -> str:
    return "Pay-per-GB" if proxy_type == ProxyType.GB.value else "Dedicated"


def search_proxies(store: SandboxStore, args: SearchProxyArgs) -> str:
    country = validate_country(args.country) if args.country else None
    results = store.catalog.search_proxy_offerings(country, args.type)
    if not results:
        raise NotFoundError("No proxy options found matching your criteria. Try a different country or type.")

    lines = [f"Found {len(results)} proxy option(s):", ""]
    for p in results:
        lines += [f"  {p.carrier} - {p.country} ({p.type})", f"    Network: {p.network}"]
        if p.type == ProxyType.GB.value:
            lines.append(f"    Price:   {format_usd(p.price_per_gb)}/GB")
        else:
            lines.append(f"    Price:   {format_usd(p.price_per_month)}/month")
            lines.append(f"    Included bandwidth: {format_gb(p.bandwidth_gb)}")
        lines.append("")
    return "\n".join(lines)


def get_proxy_pricing(store: SandboxStore, args: ProxyPricingArgs) -> str:
    country = validate_country(args.country)
    options = store.catalog.find_proxy_offerings(args.type, country)
    if not options:
        raise NotFoundError(
            f"No {args.type} proxies available in {country}. Use search_proxies to find available options."
        )

    lines = [f"{_proxy_type_label(args.type)} proxy pricing - {country}:", ""]
    for opt in options:
        lines.append(f"  {opt.carrier} ({opt.network})")
        if opt.type == ProxyType.GB.value:
            lines.append(f"    Rate: {format_usd(opt.price_per_gb)}/GB")
        else:
            lines.append(f"    Rate:      {format_usd(opt.price_per_month)}/month")
            lines.append(f"    Bandwidth: {format_gb(opt.bandwidth_gb)} included")
        lines.append("")
    return "\n".join(lines)


def purchase_proxy(store: SandboxStore, args: PurchaseProxyArgs) -> str:
    proxy = store.proxies.purchase(args.type, args.country, args.quantity)
    creds = proxy.credentials

    return "\n".join([
        "Proxy purchased!",
        "",
        f"  Proxy ID:    {proxy.id}",
        f"  Type:        {_proxy_type_label(proxy.type.value)}",
        f"  Carrier:     {proxy.carrier} ({proxy.network})",
        f"  Country:     {proxy.country}",
        f"  Cost:        {format_usd(proxy.price)}",
        f"  Bandwidth:   {format_gb(proxy.bandwidth_total)}",
        f"  Expires:     {format_time_remaining(proxy.expiry, store.now())}",
        "",
        "  Connection:",
        f"    Host:      {creds.host}",
        f"    Port:      {creds.port}",
        f"    Username:  {creds.username}",
        f"    Password:  {creds.password}",
        f"    String:    {creds.connection_string}",
        f"    Current IP: {proxy.ip}",
        "",
        "Use get_proxy_status to check bandwidth usage, or rotate_proxy to get a new IP.",
    ])


def get_proxy_status(store: SandboxStore, args: ProxyArgs) -> str:
    proxy = store.proxies.get(args.proxy_id)
    now = store.now()

    uptime_minutes = int((now - proxy.created_at).total_seconds() // 60)
    expires = "Expired" if proxy.status == OrderStatus.EXPIRED else format_time_remaining(proxy.expiry, now)

    return "\n".join([
        f"Proxy Status - {proxy.carrier} ({proxy.country})",
        "",
        f"  Proxy ID:           {proxy.id}",
        f"  Status:             {proxy.status.value}",
        f"  Type:               {_proxy_type_label(proxy.type.value)}",
        f"  Location:           {proxy.country}",
        f"  Current IP:         {proxy.ip}",
        f"  Bandwidth used:     {format_gb(proxy.bandwidth_used)}",
        f"  Bandwidth remaining: {format_gb(proxy.bandwidth_remaining)}",
        f"  Bandwidth total:    {format_gb(proxy.bandwidth_total)}",
        f"  Uptime:             {uptime_minutes // 60}h {uptime_minutes % 60}m",
        f"  Expires:            {expires}",
    ])


def rotate_proxy(store: SandboxStore, args: ProxyArgs) -> str:
    result = store.proxies.rotate_ip(args.proxy_id)

    return "\n".join([
        "IP rotated!",
        "",
        f"  Proxy ID: {result.proxy.id}",
        f"  Old IP:   {result.old_ip}",
        f"  New IP:   {result.new_ip}",
    ])


# ============================================================================
# Orders
# ============================================================================

def list_orders(store: SandboxStore, args: ListOrdersArgs) -> str:
    orders = store.orders.list(order_type=args.type, status=args.status)
    if not orders:
        return "No orders found."

    lines = [f"{len(orders)} order(s):"]
    for o in orders:
        lines += [
            "",
            f"  [{o.type}] {o.name}",
            f"    ID: {o.id}",
            f"    Status: {o.status}  |  Price: {format_usd(o.price)}",
            f"    {o.details}",
            f"    Created: {o.created_at.strftime('%Y-%m-%d %H:%M')}",
        ]
    return "\n".join(lines)


# ============================================================================
# Registry Factory
# ============================================================================

_TOOLS = [
    ("get_balance",
     "Get wallet balance and recent transactions. Resolves any pending deposits first.",
     NoArgs, get_balance),
    ("deposit",
     "Create a crypto deposit to add funds to the wallet. Returns a mock payment link that auto-confirms in ~5 seconds.",
     DepositArgs, deposit),
    ("search_sms_services",
     "Search available US non-VoIP SMS verification services. Filter by name or category.",
     SearchSmsArgs, search_sms_services),
    ("get_sms_price",
     "Get pricing for a US non-VoIP SMS verification service.",
     ServiceArgs, get_sms_price),
    ("rent_number",
     "Rent a US non-VoIP phone number to receive an SMS verification code. Deducts cost from wallet. Number expires in 5 minutes.",
     ServiceArgs, rent_number),
    ("get_messages",
     "Check for incoming SMS messages on a rented number. Messages typically arrive within a few seconds.",
     RentalArgs, get_messages),
    ("cancel_rental",
     "Cancel an SMS rental. Refunds the full price only if no messages were received.",
     RentalArgs, cancel_rental),
    ("search_esim_plans",
     "Search available eSIM data plans. Filter by country, minimum duration, or minimum data amount.",
     SearchEsimArgs, search_esim_plans),
    ("get_esim_plan_details",
     "Get full details for a specific eSIM plan including APN settings and top-up availability.",
     PlanArgs, get_esim_plan_details),
    ("purchase_esim",
     "Purchase an eSIM plan. Deducts cost from wallet and provides QR code for installation.",
     PlanArgs, purchase_esim),
    ("get_esim_usage",
     "Check data usage and status for an eSIM order. Shows data consumed, remaining, and time left.",
     OrderArgs, get_esim_usage),
    ("topup_esim",
     "Add more data to an active eSIM order. Only available for plans that support top-ups.",
     TopupArgs, topup_esim),
    ("search_proxies",
     "Search available mobile proxy options. Filter by country or proxy type (gb = pay-per-GB, dedicated = fixed monthly).",
     SearchProxyArgs, search_proxies),
    ("get_proxy_pricing",
     "Get detailed pricing for a specific proxy type and country combination.",
     ProxyPricingArgs, get_proxy_pricing),
    ("purchase_proxy",
     "Purchase a mobile proxy. For GB type, quantity = GB to buy. For dedicated, quantity = months. Deducts cost from wallet.",
     PurchaseProxyArgs, purchase_proxy),
    ("get_proxy_status",
     "Check status, bandwidth usage, and connection details for a proxy.",
     ProxyArgs, get_proxy_status),
    ("rotate_proxy",
     "Rotate a proxy to get a new IP address. Only works on active proxies.",
     ProxyArgs, rotate_proxy),
    ("list_orders",
     "List all orders across SMS, eSIM, and proxy services. Filter by service type or status.",
     ListOrdersArgs, list_orders),
]


def create_tool_registry(store: SandboxStore) -> ToolRegistry:
    """모든 툴이 등록된 레지스트리 생성"""
    registry = ToolRegistry(store)
    for name, description, args_model, handler in _TOOLS:
        registry.register(name, description, args_model)(handler)
    return registry
