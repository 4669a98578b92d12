"""
Market Sandbox - SDK Client Tests

SandboxClient를 TestClient에 연결해 서버와의 왕복을 테스트합니다.

실행:
    pytest tests/test_sdk.py -v
"""

import httpx
import pytest

from market_sandbox.sdk import SandboxClient, ToolResponse


@pytest.fixture
def client(test_client):
    return SandboxClient(base_url="http://testserver", client=test_client)


class TestSandboxClient:
    """SandboxClient 테스트"""

    def test_client_creation(self):
        client = SandboxClient(base_url="http://localhost:9100/", timeout=5.0)
        assert client.base_url == "http://localhost:9100"
        assert client.timeout == 5.0

    def test_health(self, client):
        result = client.health()
        assert isinstance(result, ToolResponse)
        assert result.success
        assert result.status_code == 200
        assert result.response_time_ms >= 0

    def test_tool_names(self, client):
        names = client.tool_names()
        assert len(names) == 18
        assert "rotate_proxy" in names

    def test_purchase_flow(self, client, manual_clock):
        rented = client.rent_number("telegram")
        assert rented.success
        assert "Number rented!" in rented.text

        rental_id = client.orders(type="sms").data[0]["id"]
        manual_clock.advance(seconds=6)
        messages = client.get_messages(rental_id)
        assert "verification code is" in messages.text

        esim = client.purchase_esim("esim_jp_10g_30d")
        assert esim.success
        order_id = client.orders(type="esim").data[0]["id"]
        assert client.topup_esim(order_id, 2).success

        proxy = client.purchase_proxy("gb", "US", quantity=1)
        assert proxy.success
        proxy_id = client.orders(type="proxy").data[0]["id"]
        assert client.rotate_proxy(proxy_id).success
        assert client.get_proxy_status(proxy_id).success

        assert client.wallet().data["balance"] == pytest.approx(50 - 1.5 - 12 - 3 - 2.99)
        assert len(client.orders().data) == 3

    def test_tool_error(self, client):
        result = client.cancel_rental("sms_missing")
        assert not result.success
        assert result.status_code == 200
        assert result.error == "Rental not found: sms_missing"

    def test_http_error(self, client):
        result = client.orders(status="refunded")
        assert not result.success
        assert result.status_code == 422

    def test_deposit_and_balance(self, client, manual_clock):
        assert client.deposit(15, "ETH").success
        manual_clock.advance(seconds=6)
        assert client.get_balance().text.startswith("Balance: $65.00")

    def test_reset(self, client):
        client.rent_number("discord")
        assert client.reset().success
        assert client.list_orders().text == "No orders found."

    def test_connection_failure(self):
        """전송 실패도 예외 없이 결과로 반환"""
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        transport_client = httpx.Client(transport=httpx.MockTransport(refuse))
        client = SandboxClient(base_url="http://localhost:1", client=transport_client)

        result = client.health()

        assert not result.success
        assert result.status_code == 0
        assert "connection refused" in result.error
