"""CLI entry point and argument parsing"""

import sys
import asyncio
import argparse
from rich.console import Console

import settings
from gateway import GigaChatClient
from gigachat_oauth import TokenCache
from proxy import ProxyServer, setup_logging
from proxy.app import build_timeouts
from cli.chat_handlers import build_request, run_chat, run_token_status


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="GigaChat Gateway CLI")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the OpenAI-compatible proxy server")
    serve.add_argument("--bind", "-b", default=None, help="Override bind address (default: from config)")
    serve.add_argument("--port", "-p", type=int, default=None, help="Override port (default: from config)")
    serve.add_argument(
        "--stream-trace",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable raw stream tracing log capture (enabled by --debug unless explicitly disabled)"
    )

    chat = subparsers.add_parser("chat", help="Send a single prompt to GigaChat")
    chat.add_argument("prompt", help="User message")
    chat.add_argument("--system", "-s", default=None, help="System message")
    chat.add_argument("--model", "-m", default=None, help="Model name (default: from config)")
    chat.add_argument("--stream", action="store_true", help="Print the answer as it is generated")
    chat.add_argument("--temperature", type=float, default=None)
    chat.add_argument("--max-tokens", type=int, default=None)
    chat.add_argument("--top-p", type=float, default=None)
    chat.add_argument("--repetition-penalty", type=float, default=None)

    subparsers.add_parser("token", help="Authenticate and show token status")

    return parser


def create_client() -> GigaChatClient:
    """Build a gateway client from settings"""
    if not settings.GIGACHAT_API_KEY:
        console.print("[red]ERROR:[/red] GIGACHAT_API_KEY is not set (environment or .env)")
        sys.exit(1)

    token_cache = TokenCache(
        auth_url=settings.GIGACHAT_AUTH_URL,
        scope=settings.GIGACHAT_SCOPE,
        verify=settings.GIGACHAT_VERIFY_SSL,
        single_flight=settings.TOKEN_SINGLE_FLIGHT,
    )
    timeout, request_timeout = build_timeouts()
    return GigaChatClient(
        base_url=settings.GIGACHAT_API_URL,
        credentials=settings.GIGACHAT_API_KEY,
        model=settings.GIGACHAT_MODEL,
        token_cache=token_cache,
        timeout=timeout,
        request_timeout=request_timeout,
        verify=settings.GIGACHAT_VERIFY_SSL,
    )


async def _run_with_client(handler, *args) -> int:
    async with create_client() as client:
        return await handler(client, *args)


def main():
    """Entry point for the CLI"""
    args = build_parser().parse_args()
    setup_logging(debug=args.debug)

    try:
        if args.command == "serve":
            # Config default -> --debug -> explicit flag
            stream_trace_setting = settings.STREAM_TRACE_ENABLED
            if args.stream_trace is None:
                if args.debug:
                    stream_trace_setting = True
            else:
                stream_trace_setting = args.stream_trace
            settings.STREAM_TRACE_ENABLED = stream_trace_setting

            ProxyServer(debug=args.debug, bind_address=args.bind, port=args.port).run()
            return

        if args.command == "chat":
            request = build_request(
                args.prompt,
                model=args.model or settings.GIGACHAT_MODEL,
                system=args.system,
                temperature=args.temperature,
                max_tokens=args.max_tokens,
                top_p=args.top_p,
                repetition_penalty=args.repetition_penalty,
                stream=args.stream,
            )
            sys.exit(asyncio.run(_run_with_client(run_chat, request, console)))

        if args.command == "token":
            sys.exit(asyncio.run(_run_with_client(run_token_status, console)))

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
    except Exception as e:
        console.print(f"\n[red]Fatal error:[/red] {e}")
        if args.debug:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
