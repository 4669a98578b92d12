#!/usr/bin/env python3
"""
Market Sandbox CLI

샌드박스를 커맨드라인에서 사용할 수 있습니다.

Usage:
    # 서버 실행
    python -m market_sandbox.simulator.cli serve --port 9100

    # 툴 목록
    python -m market_sandbox.simulator.cli tools

    # 실행 중인 서버의 툴 호출
    python -m market_sandbox.simulator.cli call rent_number --args '{"service": "telegram"}'

    # 프로세스 안에서 전체 흐름 데모
    python -m market_sandbox.simulator.cli demo
"""

import argparse
import json
import sys
from dataclasses import replace
from typing import Optional

from ..config import SandboxConfig, ServerConfig, get_config
from ..sdk.client import SandboxClient
from .clock import ManualClock
from .store import SandboxStore
from .tools import create_tool_registry


def print_json(data, indent: int = 2):
    """JSON 출력"""
    print(json.dumps(data, ensure_ascii=False, indent=indent, default=str))


def print_table(headers: list, rows: list, widths: Optional[list] = None):
    """간단한 테이블 출력"""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) + 2 for i in range(len(headers))]

    # 헤더
    header_line = "".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_line)
    print("-" * len(header_line))

    # 행
    for row in rows:
        print("".join(str(c).ljust(w) for c, w in zip(row, widths)))


def cmd_serve(args):
    """서버 실행"""
    import uvicorn
    from .server import create_app

    base = get_config()
    config = replace(
        base,
        server=ServerConfig(host=args.host, port=args.port),
        seed=args.seed if args.seed is not None else base.seed,
    )

    app = create_app(config=config)
    print(f"Starting Market Sandbox on http://{args.host}:{args.port}")
    print(f"Initial balance: ${config.initial_balance}")
    print(f"API Docs: http://{args.host}:{args.port}/docs")
    print()

    uvicorn.run(app, host=args.host, port=args.port)


def cmd_tools(args):
    """툴 목록"""
    tools = create_tool_registry(SandboxStore.create())
    infos = tools.list_tools()

    if args.json:
        print_json([info.model_dump() for info in infos])
        return

    headers = ["Name", "Arguments", "Description"]
    rows = [
        [
            info.name,
            ", ".join(info.input_schema.get("properties", {})) or "-",
            info.description[:60] + ("..." if len(info.description) > 60 else ""),
        ]
        for info in infos
    ]
    print_table(headers, rows)
    print(f"\nTotal: {len(infos)} tools")


def cmd_call(args):
    """실행 중인 서버의 툴 호출"""
    try:
        arguments = json.loads(args.args) if args.args else {}
    except json.JSONDecodeError as e:
        print(f"Invalid --args JSON: {e}")
        return 1

    client = SandboxClient(base_url=args.url)
    result = client.call_tool(args.tool, **arguments)

    if args.json:
        print_json({
            "success": result.success,
            "status_code": result.status_code,
            "response_time_ms": round(result.response_time_ms, 1),
            "data": result.data,
            "error": result.error,
        })
    elif result.success:
        print(result.text)
    else:
        print(f"Error ({result.status_code}): {result.error}")

    return 0 if result.success else 1


def cmd_demo(args):
    """프로세스 안에서 입금 → 구매 → 사용량 → 주문 목록 흐름 실행"""
    clock = ManualClock()
    config = SandboxConfig(seed=args.seed)
    store = SandboxStore.create(config, clock=clock)
    tools = create_tool_registry(store)

    outputs = []

    def step(title: str, name: str, **arguments):
        result = tools.call(name, arguments)
        outputs.append({"step": title, "tool": name, "arguments": arguments, **result.model_dump()})
        if not args.json:
            print("=" * 60)
            print(f"{title}  ({name})")
            print("=" * 60)
            print(result.first_text)
            print()
        return result

    step("1. Deposit", "deposit", amount=25, currency="BTC")
    clock.advance(seconds=6)
    step("2. Balance after confirmation", "get_balance")

    step("3. Rent a number", "rent_number", service="telegram")
    rental_id = store.orders.list(order_type="sms")[0].id
    clock.advance(seconds=6)
    step("4. Read verification code", "get_messages", rentalId=rental_id)

    step("5. Buy an eSIM", "purchase_esim", planId="esim_jp_10g_30d")
    order_id = store.orders.list(order_type="esim")[0].id
    clock.advance(hours=3)
    step("6. eSIM usage after 3 hours", "get_esim_usage", orderId=order_id)

    step("7. Buy a proxy", "purchase_proxy", type="gb", country="US", quantity=2)
    proxy_id = store.orders.list(order_type="proxy")[0].id
    step("8. Rotate proxy IP", "rotate_proxy", proxyId=proxy_id)

    clock.advance(minutes=10)
    step("9. All orders", "list_orders")
    step("10. Final balance", "get_balance")

    if args.json:
        print_json(outputs)


def main():
    parser = argparse.ArgumentParser(
        description="Market Sandbox CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start server
  python -m market_sandbox.simulator.cli serve --port 9100

  # List tools
  python -m market_sandbox.simulator.cli tools

  # Call a tool on a running server
  python -m market_sandbox.simulator.cli call purchase_esim \\
      --args '{"planId": "esim_jp_10g_30d"}'

  # Scripted walkthrough without a server
  python -m market_sandbox.simulator.cli demo --json
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start sandbox server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Server host")
    serve_parser.add_argument("--port", type=int, default=9100, help="Server port")
    serve_parser.add_argument("--seed", type=int, default=None, help="Random seed")

    # tools
    tools_parser = subparsers.add_parser("tools", help="List available tools")
    tools_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # call
    call_parser = subparsers.add_parser("call", help="Call a tool on a running server")
    call_parser.add_argument("tool", help="Tool name (e.g. rent_number)")
    call_parser.add_argument("--args", default=None, help="Tool arguments as JSON")
    call_parser.add_argument("--url", default="http://localhost:9100", help="Sandbox server URL")
    call_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # demo
    demo_parser = subparsers.add_parser("demo", help="Run an in-process walkthrough")
    demo_parser.add_argument("--seed", type=int, default=42, help="Random seed")
    demo_parser.add_argument("--json", action="store_true", help="Output as JSON")

    args = parser.parse_args()

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "tools":
        cmd_tools(args)
    elif args.command == "call":
        return cmd_call(args)
    elif args.command == "demo":
        cmd_demo(args)
    else:
        parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
