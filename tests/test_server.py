"""
Market Sandbox - HTTP Server Tests

FastAPI 앱의 엔드포인트와 에러 매핑을 테스트합니다.

실행:
    pytest tests/test_server.py -v
"""

import threading

import httpx
import pytest

from market_sandbox.config import SandboxConfig
from market_sandbox.simulator.server import create_app


class TestRootEndpoints:
    """루트 / 헬스체크"""

    def test_root(self, test_client):
        data = test_client.get("/").json()
        assert data["service"] == "market_sandbox"
        assert data["endpoints"]["tools"]["call"] == "POST /tools/{name}"

    def test_health(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_app_state(self, sandbox_store):
        app = create_app(store=sandbox_store)
        assert app.state.store is sandbox_store
        assert app.state.tools.store is sandbox_store


class TestToolEndpoints:
    """툴 엔드포인트"""

    def test_list_tools(self, test_client):
        tools = test_client.get("/tools").json()
        assert len(tools) == 18
        assert {"name", "description", "input_schema"} <= set(tools[0])

    def test_call_tool(self, test_client):
        response = test_client.post("/tools/rent_number", json={"service": "telegram"})

        assert response.status_code == 200
        data = response.json()
        assert data["is_error"] is False
        assert data["content"][0]["type"] == "text"
        assert "Number rented!" in data["content"][0]["text"]

    def test_call_tool_without_body(self, test_client):
        response = test_client.post("/tools/get_balance")
        assert response.status_code == 200
        assert response.json()["content"][0]["text"].startswith("Balance: $50.00")

    def test_tool_error_is_200(self, test_client):
        """툴 에러는 200 응답의 is_error로 전달"""
        response = test_client.post("/tools/get_proxy_status", json={"proxyId": "prx_missing"})
        assert response.status_code == 200
        assert response.json()["is_error"] is True

    def test_unrepresentable_quantity_is_tool_error(self, test_client):
        """만료일을 계산할 수 없는 수량도 500이 아닌 툴 에러"""
        response = test_client.post(
            "/tools/purchase_proxy", json={"type": "dedicated", "country": "US", "quantity": 100000}
        )

        assert response.status_code == 200
        assert response.json()["is_error"] is True
        assert response.json()["content"][0]["text"].startswith("Insufficient balance.")

    def test_unknown_tool(self, test_client):
        response = test_client.post("/tools/nope", json={})
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "NOT_FOUND"


class TestStructuredEndpoints:
    """지갑 / 주문 / 초기화"""

    def test_wallet(self, test_client, manual_clock):
        test_client.post("/tools/deposit", json={"amount": 10})
        manual_clock.advance(seconds=6)
        assert test_client.get("/wallet").json()["balance"] == 60.0

        manual_clock.advance(seconds=1)
        test_client.post("/tools/rent_number", json={"service": "discord"})

        wallet = test_client.get("/wallet").json()

        assert wallet["balance"] == 58.8
        assert wallet["pending_deposits"] == []
        assert [t["kind"] for t in wallet["transactions"]] == ["sms_rental", "deposit"]

    def test_wallet_limit(self, test_client):
        for _ in range(3):
            test_client.post("/tools/rent_number", json={"service": "discord"})
        assert len(test_client.get("/wallet", params={"limit": 2}).json()["transactions"]) == 2

    def test_orders(self, test_client, manual_clock):
        test_client.post("/tools/rent_number", json={"service": "discord"})
        manual_clock.advance(seconds=1)
        test_client.post("/tools/purchase_esim", json={"planId": "esim_de_5g_7d"})

        orders = test_client.get("/orders").json()
        assert [o["type"] for o in orders] == ["eSIM", "SMS"]

        sms = test_client.get("/orders", params={"type": "sms", "status": "active"}).json()
        assert len(sms) == 1

    def test_orders_invalid_filter(self, test_client):
        response = test_client.get("/orders", params={"status": "refunded"})
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "INVALID_ARGUMENT"
        assert detail["success"] is False

    def test_reset(self, test_client):
        test_client.post("/tools/rent_number", json={"service": "discord"})

        response = test_client.post("/reset")

        assert response.json()["balance"] == 50.0
        assert test_client.get("/orders").json() == []
        assert test_client.get("/wallet").json()["balance"] == 50.0

    def test_reset_waits_for_running_operation(self, test_client, sandbox_store):
        """다른 스레드가 스토어를 잡고 있으면 끝날 때까지 교체하지 않음"""
        done = threading.Event()

        def do_reset():
            test_client.post("/reset")
            done.set()

        worker = threading.Thread(target=do_reset)
        with sandbox_store.locked():
            worker.start()
            assert not done.wait(0.2)
            assert test_client.app.state.store is sandbox_store

        worker.join(timeout=5)
        assert done.is_set()
        assert test_client.app.state.store is not sandbox_store


class TestErrorMapping:
    """SandboxError -> HTTP 상태 코드"""

    @pytest.mark.parametrize("error, status_code", [
        ("NotFoundError", 404),
        ("InsufficientBalanceError", 402),
        ("InvalidStateError", 409),
        ("InvalidArgumentError", 422),
    ])
    def test_status_codes(self, error, status_code):
        from decimal import Decimal
        from market_sandbox.simulator import errors
        from market_sandbox.simulator.server import _http_error

        if error == "InsufficientBalanceError":
            exc = errors.InsufficientBalanceError(Decimal("3"), Decimal("1"))
        else:
            exc = getattr(errors, error)("boom")

        http_exc = _http_error(exc)
        assert http_exc.status_code == status_code
        assert http_exc.detail["error"] == exc.code


class TestAsyncClient:
    """ASGI 트랜스포트로 비동기 호출"""

    @pytest.mark.asyncio
    async def test_async_round_trip(self):
        app = create_app(config=SandboxConfig(seed=1))
        transport = httpx.ASGITransport(app=app)

        async with httpx.AsyncClient(transport=transport, base_url="http://sandbox") as client:
            response = await client.post("/tools/search_esim_plans", json={"country": "DE"})
            assert response.status_code == 200
            assert "Found 2 eSIM plan(s) for DE" in response.json()["content"][0]["text"]

            health = await client.get("/health")
            assert health.json()["version"] == "0.1.0"
