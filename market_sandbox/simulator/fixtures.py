"""
Market Sandbox - Pytest Fixtures

pytest에서 사용할 수 있는 fixture들을 제공합니다.
모든 스토어는 ManualClock과 고정 시드를 사용하므로 결과가 결정적입니다.

Usage:
    # tests/conftest.py에서 import
    from market_sandbox.simulator.fixtures import *

    # 테스트에서 사용
    def test_rent(sandbox_store, manual_clock):
        rental = sandbox_store.sms.purchase("telegram")
        manual_clock.advance(seconds=6)
        assert sandbox_store.sms.get_messages(rental.id).messages
"""

import pytest
from dataclasses import dataclass
from datetime import datetime
from typing import Generator

from fastapi.testclient import TestClient

from ..config import SandboxConfig
from .catalog import Catalog
from .clock import ManualClock
from .server import create_app
from .store import SandboxStore
from .tools import ToolRegistry, create_tool_registry

FIXTURE_START = datetime(2026, 1, 1, 12, 0, 0)
FIXTURE_SEED = 1234


@dataclass
class SandboxTestContext:
    """테스트 컨텍스트 - 스토어, 시계, 툴을 한 번에 제공"""
    store: SandboxStore
    clock: ManualClock
    tools: ToolRegistry

    def call(self, name: str, **arguments) -> str:
        """툴 호출 후 텍스트 반환 (에러면 AssertionError)"""
        result = self.tools.call(name, arguments)
        assert not result.is_error, result.first_text
        return result.first_text


@pytest.fixture
def manual_clock() -> ManualClock:
    """
    테스트용 시계 fixture

    Usage:
        def test_expiry(sandbox_store, manual_clock):
            manual_clock.advance(minutes=6)
    """
    return ManualClock(FIXTURE_START)


@pytest.fixture
def sandbox_config() -> SandboxConfig:
    """고정 시드 설정 fixture"""
    return SandboxConfig(seed=FIXTURE_SEED)


@pytest.fixture
def sandbox_catalog() -> Catalog:
    """기본 카탈로그 fixture"""
    return Catalog()


@pytest.fixture
def sandbox_store(
    sandbox_config: SandboxConfig,
    manual_clock: ManualClock,
    sandbox_catalog: Catalog
) -> SandboxStore:
    """
    SandboxStore fixture (잔액 50.00, 빈 저장소)

    Usage:
        def test_balance(sandbox_store):
            assert sandbox_store.get_balance() == Decimal("50.00")
    """
    return SandboxStore.create(sandbox_config, clock=manual_clock, catalog=sandbox_catalog)


@pytest.fixture
def tool_registry(sandbox_store: SandboxStore) -> ToolRegistry:
    """
    ToolRegistry fixture

    Usage:
        def test_tool(tool_registry):
            result = tool_registry.call("get_balance")
            assert "Balance: $50.00" in result.first_text
    """
    return create_tool_registry(sandbox_store)


@pytest.fixture
def sandbox_context(
    sandbox_store: SandboxStore,
    manual_clock: ManualClock,
    tool_registry: ToolRegistry
) -> SandboxTestContext:
    """
    통합 테스트 컨텍스트 fixture

    Usage:
        def test_full_flow(sandbox_context):
            ctx = sandbox_context
            ctx.call("deposit", amount=20)
            ctx.clock.advance(seconds=6)
            assert ctx.store.get_balance() == Decimal("70.00")
    """
    return SandboxTestContext(store=sandbox_store, clock=manual_clock, tools=tool_registry)


@pytest.fixture
def test_client(sandbox_store: SandboxStore) -> Generator[TestClient, None, None]:
    """
    FastAPI TestClient fixture (sandbox_store를 공유)

    Usage:
        def test_health(test_client):
            assert test_client.get("/health").status_code == 200
    """
    app = create_app(store=sandbox_store)
    with TestClient(app) as client:
        yield client


# Export all fixtures
__all__ = [
    "manual_clock",
    "sandbox_config",
    "sandbox_catalog",
    "sandbox_store",
    "tool_registry",
    "sandbox_context",
    "test_client",
    "SandboxTestContext",
]
