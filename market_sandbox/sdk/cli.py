#!/usr/bin/env python3
"""
Market Sandbox SDK CLI

사용법:
    python -m market_sandbox.sdk.cli health http://localhost:9100
    python -m market_sandbox.sdk.cli tools http://localhost:9100
    python -m market_sandbox.sdk.cli call http://localhost:9100 rent_number --args '{"service": "telegram"}'
"""

import argparse
import sys
import json

from .client import SandboxClient


def cmd_health(args):
    """헬스체크"""
    client = SandboxClient(base_url=args.server_url)

    result = client.health()

    if result.success:
        print(f"[OK] 서버 정상 ({result.response_time_ms:.2f}ms)")
        if result.data:
            print(json.dumps(result.data, indent=2, ensure_ascii=False))
        return 0
    else:
        print(f"[FAIL] 서버 연결 실패: {result.error}")
        return 1


def cmd_tools(args):
    """툴 목록"""
    client = SandboxClient(base_url=args.server_url)

    result = client.list_tools()
    if not result.success:
        print(f"[FAIL] 툴 목록 조회 실패: {result.error}")
        return 1

    if args.json:
        print(json.dumps(result.data, indent=2, ensure_ascii=False))
    else:
        for tool in result.data:
            print(f"  {tool['name']:<24} {tool['description']}")
        print(f"\nTotal: {len(result.data)} tools")
    return 0


def cmd_call(args):
    """툴 호출"""
    try:
        arguments = json.loads(args.args) if args.args else {}
    except json.JSONDecodeError as e:
        print(f"[FAIL] 잘못된 JSON 인자: {e}")
        return 1

    client = SandboxClient(base_url=args.server_url)
    result = client.call_tool(args.tool, **arguments)

    if args.json:
        print(json.dumps(result.data, indent=2, ensure_ascii=False))
    elif result.success:
        print(result.text)
    else:
        print(f"[FAIL] {result.error}")

    return 0 if result.success else 1


def main():
    parser = argparse.ArgumentParser(
        description="Market Sandbox SDK - 샌드박스 서버 호출 도구",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
예제:
  # 헬스체크
  python -m market_sandbox.sdk.cli health http://localhost:9100

  # 툴 목록
  python -m market_sandbox.sdk.cli tools http://localhost:9100

  # 툴 호출
  python -m market_sandbox.sdk.cli call http://localhost:9100 purchase_esim --args '{"planId": "esim_jp_3g_7d"}'
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="명령어")

    # health 명령어
    health_parser = subparsers.add_parser("health", help="헬스체크")
    health_parser.add_argument("server_url", help="서버 URL (예: http://localhost:9100)")

    # tools 명령어
    tools_parser = subparsers.add_parser("tools", help="툴 목록")
    tools_parser.add_argument("server_url", help="서버 URL")
    tools_parser.add_argument("--json", action="store_true", help="JSON 형식으로 출력")

    # call 명령어
    call_parser = subparsers.add_parser("call", help="툴 호출")
    call_parser.add_argument("server_url", help="서버 URL")
    call_parser.add_argument("tool", help="툴 이름 (예: rent_number)")
    call_parser.add_argument("--args", default=None, help="JSON 인자 문자열")
    call_parser.add_argument("--json", action="store_true", help="JSON 형식으로 출력")

    args = parser.parse_args()

    if args.command == "health":
        return cmd_health(args)
    elif args.command == "tools":
        return cmd_tools(args)
    elif args.command == "call":
        return cmd_call(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
