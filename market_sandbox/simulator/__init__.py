"""
Market Sandbox Simulator

가상 서비스 마켓(SMS 번호 대여, eSIM, 모바일 프록시, 지갑)을
프로세스 안에서 시뮬레이션합니다.

주요 구성:
    - SandboxStore: 지갑/입금/주문 상태를 소유하는 컨텍스트 객체
    - ToolRegistry: 외부 에이전트용 툴 (텍스트 결과)
    - create_app: 툴을 HTTP로 노출하는 FastAPI 앱

Usage:
    from market_sandbox.simulator import SandboxStore, create_tool_registry

    store = SandboxStore.create()
    tools = create_tool_registry(store)
    print(tools.call("get_balance").first_text)
"""

from .catalog import Catalog
from .clock import ManualClock, SystemClock
from .errors import (
    ErrorCodes,
    InsufficientBalanceError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    SandboxError,
)
from .models import OrderStatus, ProxyType, ToolResult, TransactionKind
from .server import create_app
from .store import SandboxStore
from .tools import ToolRegistry, create_tool_registry

__version__ = "0.1.0"
__all__ = [
    "Catalog",
    "ManualClock",
    "SystemClock",
    "ErrorCodes",
    "SandboxError",
    "NotFoundError",
    "InsufficientBalanceError",
    "InvalidStateError",
    "InvalidArgumentError",
    "OrderStatus",
    "ProxyType",
    "ToolResult",
    "TransactionKind",
    "SandboxStore",
    "ToolRegistry",
    "create_tool_registry",
    "create_app",
]
