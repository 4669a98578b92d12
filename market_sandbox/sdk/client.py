"""
Market Sandbox Client

샌드박스 서버와 통신하는 클라이언트
"""

import httpx
from typing import Optional, Dict, Any, List
from dataclasses import dataclass
from datetime import datetime


@dataclass
class ToolResponse:
    """요청 결과"""
    success: bool
    status_code: int
    response_time_ms: float
    data: Optional[Any] = None
    error: Optional[str] = None

    @property
    def text(self) -> str:
        """툴 결과의 첫 번째 텍스트 블록"""
        if isinstance(self.data, dict) and self.data.get("content"):
            return self.data["content"][0].get("text", "")
        return ""


class SandboxClient:
    """
    샌드박스 API 클라이언트

    전송 실패도 예외 대신 success=False인 ToolResponse로 반환합니다.

    Usage:
        client = SandboxClient("http://localhost:9100")

        client.deposit(20)
        result = client.rent_number("telegram")
        print(result.text)

        client.orders(type="sms", status="active")
    """

    def __init__(
        self,
        base_url: str = "http://localhost:9100",
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None
    ):
        """
        Args:
            base_url: 샌드박스 서버 URL (예: http://localhost:9100)
            timeout: 요청 타임아웃 (초)
            client: 사용할 httpx.Client (테스트에서 TestClient 주입용)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> ToolResponse:
        start = datetime.now()
        try:
            if self._client is not None:
                response = self._client.request(method, f"{self.base_url}{path}", json=json, params=params)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.request(method, f"{self.base_url}{path}", json=json, params=params)
            elapsed = (datetime.now() - start).total_seconds() * 1000

            ok = response.status_code == 200
            data = response.json() if ok else None
            error = None if ok else response.text

            # 툴 에러는 200 응답 안의 is_error로 전달됨
            if ok and isinstance(data, dict) and data.get("is_error"):
                ok = False
                error = data["content"][0]["text"] if data.get("content") else "Tool error"

            return ToolResponse(
                success=ok,
                status_code=response.status_code,
                response_time_ms=elapsed,
                data=data,
                error=error
            )
        except Exception as e:
            elapsed = (datetime.now() - start).total_seconds() * 1000
            return ToolResponse(
                success=False,
                status_code=0,
                response_time_ms=elapsed,
                error=str(e)
            )

    # =========================================================================
    # 서버
    # =========================================================================

    def health(self) -> ToolResponse:
        """헬스체크"""
        return self._request("GET", "/health")

    def list_tools(self) -> ToolResponse:
        """툴 목록"""
        return self._request("GET", "/tools")

    def tool_names(self) -> List[str]:
        result = self.list_tools()
        return [t["name"] for t in result.data] if result.success else []

    def call_tool(self, name: str, **arguments) -> ToolResponse:
        """툴 호출 (None 인자는 보내지 않음)"""
        payload = {k: v for k, v in arguments.items() if v is not None}
        return self._request("POST", f"/tools/{name}", json=payload)

    def wallet(self, limit: Optional[int] = None) -> ToolResponse:
        """지갑 조회 (JSON)"""
        return self._request("GET", "/wallet", params={"limit": limit} if limit else None)

    def orders(self, type: Optional[str] = None, status: Optional[str] = None) -> ToolResponse:
        """통합 주문 목록 (JSON)"""
        params = {k: v for k, v in {"type": type, "status": status}.items() if v}
        return self._request("GET", "/orders", params=params or None)

    def reset(self) -> ToolResponse:
        """샌드박스 초기화"""
        return self._request("POST", "/reset")

    # =========================================================================
    # 툴 래퍼
    # =========================================================================

    def get_balance(self) -> ToolResponse:
        return self.call_tool("get_balance")

    def deposit(self, amount: float, currency: str = "BTC") -> ToolResponse:
        return self.call_tool("deposit", amount=amount, currency=currency)

    def rent_number(self, service: str) -> ToolResponse:
        return self.call_tool("rent_number", service=service)

    def get_messages(self, rental_id: str) -> ToolResponse:
        return self.call_tool("get_messages", rentalId=rental_id)

    def cancel_rental(self, rental_id: str) -> ToolResponse:
        return self.call_tool("cancel_rental", rentalId=rental_id)

    def purchase_esim(self, plan_id: str) -> ToolResponse:
        return self.call_tool("purchase_esim", planId=plan_id)

    def get_esim_usage(self, order_id: str) -> ToolResponse:
        return self.call_tool("get_esim_usage", orderId=order_id)

    def topup_esim(self, order_id: str, data_amount: float) -> ToolResponse:
        return self.call_tool("topup_esim", orderId=order_id, dataAmount=data_amount)

    def purchase_proxy(self, type: str, country: str, quantity: Optional[float] = None) -> ToolResponse:
        return self.call_tool("purchase_proxy", type=type, country=country, quantity=quantity)

    def get_proxy_status(self, proxy_id: str) -> ToolResponse:
        return self.call_tool("get_proxy_status", proxyId=proxy_id)

    def rotate_proxy(self, proxy_id: str) -> ToolResponse:
        return self.call_tool("rotate_proxy", proxyId=proxy_id)

    def list_orders(self, type: Optional[str] = None, status: Optional[str] = None) -> ToolResponse:
        return self.call_tool("list_orders", type=type, status=status)
