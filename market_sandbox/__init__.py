"""
Market Sandbox

가상 서비스 마켓 샌드박스 (시뮬레이터 + SDK)
"""

from .config import SandboxConfig, ServerConfig, get_config, set_config

__version__ = "0.1.0"
__all__ = ["SandboxConfig", "ServerConfig", "get_config", "set_config"]
