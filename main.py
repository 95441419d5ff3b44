"""
CLI entry point for the LLM gateway.

Usage:
    python main.py invoke --prompt "..." [--fast] [--ttl 3600] [--json object]
    python main.py keys
"""

import argparse
import asyncio
import json
import logging
import sys

from pydantic import ValidationError

from llm_gateway.config import get_settings
from llm_gateway.exceptions import GatewayException, ParseError
from llm_gateway.extraction import extract_json_array, extract_json_object
from llm_gateway.gateway import Gateway
from llm_gateway.keys import load_key_pool
from llm_gateway.logging_utils import setup_logging
from llm_gateway.models import ChatMessage, ChatRequest

logger = logging.getLogger("llm_gateway.cli")


def _build_request(args) -> ChatRequest:
    settings = get_settings()
    if args.model:
        model = args.model
    elif args.fast:
        model = settings.completion.fast_model
    else:
        model = settings.completion.smart_model

    messages = []
    if args.system:
        messages.append(ChatMessage(role="system", content=args.system))
    messages.append(ChatMessage(role="user", content=args.prompt))

    overrides = {}
    if args.ttl is not None:
        overrides["ttl"] = args.ttl
    if args.temperature is not None:
        overrides["temperature"] = args.temperature
    if args.max_tokens is not None:
        overrides["max_tokens"] = args.max_tokens

    return ChatRequest(model=model, messages=messages, **overrides)


async def _run_invoke(request: ChatRequest, gateway: Gateway) -> str:
    try:
        return await gateway.invoke(request)
    finally:
        await gateway.store.close()


def cmd_invoke(args, gateway: Gateway = None) -> int:
    """Send one prompt through the gateway and print the result."""
    try:
        request = _build_request(args)
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        print(f"Error: invalid arguments: {', '.join(fields)}", file=sys.stderr)
        return 2

    gateway = gateway or Gateway()
    try:
        text = asyncio.run(_run_invoke(request, gateway))
    except GatewayException as exc:
        logger.error("Generation failed", extra={"error_type": type(exc).__name__})
        print("Error: generation failed", file=sys.stderr)
        return 1

    if args.json == "object":
        extract = extract_json_object
    elif args.json == "array":
        extract = extract_json_array
    else:
        print(text)
        return 0

    try:
        print(json.dumps(extract(text), indent=2))
    except ParseError:
        print("Error: response did not contain valid JSON", file=sys.stderr)
        return 1
    return 0


def cmd_keys(args) -> int:
    """Report how many completion-service credentials are configured."""
    env_name = get_settings().completion.api_key_env
    pool = load_key_pool(env_name=env_name)
    print(f"{len(pool)} credential(s) configured via {env_name}[_N]")
    return 0 if pool else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="LLM gateway - cached, key-rotating completion calls"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # invoke
    p_invoke = subparsers.add_parser("invoke", help="Run a single completion")
    p_invoke.add_argument("--prompt", required=True, help="User prompt")
    p_invoke.add_argument("--system", default=None, help="Optional system prompt")
    p_invoke.add_argument("--model", default=None, help="Explicit model id")
    p_invoke.add_argument("--fast", action="store_true", help="Use the fast model")
    p_invoke.add_argument("--ttl", type=int, default=None, help="Cache TTL (0 disables)")
    p_invoke.add_argument("--temperature", type=float, default=None)
    p_invoke.add_argument("--max-tokens", dest="max_tokens", type=int, default=None)
    p_invoke.add_argument(
        "--json", choices=["object", "array"], default=None,
        help="Extract and pretty-print JSON from the response",
    )

    # keys
    subparsers.add_parser("keys", help="Count configured credentials")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging()

    commands = {
        "invoke": cmd_invoke,
        "keys": cmd_keys,
    }

    if args.command in commands:
        return commands[args.command](args)
    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
