"""
Market Sandbox SDK

샌드박스 서버를 호출하기 위한 SDK
"""

from .client import SandboxClient, ToolResponse

__version__ = "0.1.0"
__all__ = ["SandboxClient", "ToolResponse"]
