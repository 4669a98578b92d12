"""
Market Sandbox Server

샌드박스 툴을 HTTP로 노출하는 로컬 서버입니다.
에이전트/SDK는 이 서버를 통해 지갑, SMS, eSIM, 프록시 툴을 호출합니다.

주요 기능:
    1. 툴 목록 조회 및 호출
    2. 지갑/주문 조회 (JSON)
    3. 샌드박스 초기화

사용법:
    # 서버 실행
    python -m market_sandbox.simulator.cli serve --port 9100

    # 툴 호출
    curl -X POST http://localhost:9100/tools/rent_number \
        -H "Content-Type: application/json" \
        -d '{"service": "telegram"}'

    curl http://localhost:9100/orders?type=sms&status=active
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from ..config import SandboxConfig, get_config
from .errors import (
    ErrorCodes,
    InsufficientBalanceError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    SandboxError,
)
from .models import (
    ErrorResponse,
    HealthResponse,
    OrderResponse,
    ToolInfo,
    ToolResult,
    WalletResponse,
)
from .store import SandboxStore
from .tools import ToolRegistry, create_tool_registry

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# 예외 → HTTP 상태 코드
STATUS_CODES = {
    NotFoundError: 404,
    InsufficientBalanceError: 402,
    InvalidStateError: 409,
    InvalidArgumentError: 422,
}


def _http_error(error: SandboxError) -> HTTPException:
    """SandboxError를 HTTPException으로 변환"""
    status_code = next(
        (code for exc_type, code in STATUS_CODES.items() if isinstance(error, exc_type)),
        500,
    )
    return HTTPException(status_code=status_code, detail=error.to_dict())


def _error_detail(code: str, message: str) -> dict:
    """에러 응답 생성"""
    return {
        "success": False,
        "error": code,
        "message": message,
    }


def get_store(request: Request) -> SandboxStore:
    return request.app.state.store


def get_tools(request: Request) -> ToolRegistry:
    return request.app.state.tools


def _install_store(app: FastAPI, store: SandboxStore) -> None:
    # 앱 상태에 저장 (엔드포인트에서 접근)
    app.state.store = store
    app.state.tools = create_tool_registry(store)


def create_app(
    store: Optional[SandboxStore] = None,
    config: Optional[SandboxConfig] = None
) -> FastAPI:
    """
    샌드박스 FastAPI 앱 생성

    Args:
        store: 사용할 스토어 (None이면 config로 새로 생성)
        config: 샌드박스 설정 (None이면 환경변수에서 로드)

    Returns:
        FastAPI: 앱 인스턴스 (app.state.store, app.state.tools 설정됨)
    """
    cfg = config or (store.config if store else get_config())

    app = FastAPI(
        title="Market Sandbox",
        description="""
가상 서비스 마켓(SMS 번호 대여, eSIM, 모바일 프록시, 지갑)의 샌드박스 서버입니다.
모든 구매는 가상 잔액으로 처리되며 실제 결제/통신은 일어나지 않습니다.

## 주요 기능

1. **툴 목록**: GET /tools
2. **툴 호출**: POST /tools/{name}
3. **지갑 조회**: GET /wallet
4. **주문 조회**: GET /orders
5. **초기화**: POST /reset
        """,
        version=cfg.version,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _install_store(app, store or SandboxStore.create(cfg))

    # ========================================================================
    # Root & Health Endpoints
    # ========================================================================

    @app.get("/")
    async def root():
        """루트 - API 정보"""
        return {
            "service": cfg.service_name,
            "version": cfg.version,
            "endpoints": {
                "tools": {
                    "list": "GET /tools",
                    "call": "POST /tools/{name}",
                },
                "wallet": "GET /wallet",
                "orders": "GET /orders",
                "reset": "POST /reset",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthResponse)
    async def health():
        """헬스 체크"""
        return HealthResponse(
            status="healthy",
            version=cfg.version,
            timestamp=datetime.now().isoformat(),
        )

    # ========================================================================
    # Tool Endpoints
    # ========================================================================

    @app.get("/tools", response_model=List[ToolInfo])
    async def list_tools(request: Request):
        """등록된 툴 목록"""
        return get_tools(request).list_tools()

    @app.post(
        "/tools/{name}",
        response_model=ToolResult,
        responses={404: {"model": ErrorResponse, "description": "Unknown tool"}},
    )
    async def call_tool(
        name: str,
        request: Request,
        arguments: Optional[Dict[str, Any]] = Body(default=None),
    ):
        """
        툴 호출

        코어 에러는 200 응답의 is_error=True 결과로 반환됩니다.
        """
        tools = get_tools(request)
        if tools.get(name) is None:
            raise HTTPException(
                status_code=404,
                detail=_error_detail(ErrorCodes.NOT_FOUND, f"Unknown tool: {name}"),
            )
        return tools.call(name, arguments or {})

    # ========================================================================
    # Structured Endpoints
    # ========================================================================

    @app.get("/wallet", response_model=WalletResponse)
    async def wallet(request: Request, limit: Optional[int] = Query(None, ge=1)):
        """잔액, 대기 입금, 최근 거래"""
        store = get_store(request)
        with store.locked():
            return store.wallet_summary(limit).to_response()

    @app.get(
        "/orders",
        response_model=List[OrderResponse],
        responses={422: {"model": ErrorResponse, "description": "Invalid filter"}},
    )
    async def list_orders(
        request: Request,
        type: Optional[str] = Query(None, description="sms, esim, proxy"),
        status: Optional[str] = Query(None, description="active, completed, cancelled, expired, all"),
    ):
        """통합 주문 목록 (최신순)"""
        store = get_store(request)
        try:
            with store.locked():
                orders = store.orders.list(order_type=type, status=status)
        except SandboxError as e:
            raise _http_error(e)
        return [o.to_response() for o in orders]

    @app.post("/reset")
    async def reset(request: Request):
        """샌드박스 상태 초기화 (같은 설정/시계로 새 스토어 생성)"""
        old = get_store(request)
        with old.locked():
            store = SandboxStore.create(old.config, clock=old.clock, catalog=old.catalog)
            _install_store(request.app, store)
        logger.info("Sandbox store reset")
        return {"message": "Sandbox reset", "balance": float(store.ledger.balance)}

    return app
