"""
Market Sandbox - Pytest Configuration

테스트에서 사용할 공통 fixture들을 정의합니다.
"""

import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Simulator fixtures import
from market_sandbox.simulator.fixtures import (
    manual_clock,
    sandbox_config,
    sandbox_catalog,
    sandbox_store,
    tool_registry,
    sandbox_context,
    test_client,
    SandboxTestContext,
)

# Re-export all fixtures
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
