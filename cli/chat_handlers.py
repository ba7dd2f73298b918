"""Chat and token handlers for CLI"""

import logging
from typing import Optional

from gateway import (
    AuthenticationError,
    ChatRequest,
    Error,
    Finish,
    GigaChatClient,
    Message,
    RequestError,
    TextDelta,
)
from cli.status_display import show_token_status, show_usage

logger = logging.getLogger(__name__)


def build_request(
    prompt: str,
    model: str,
    system: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
    top_p: Optional[float] = None,
    repetition_penalty: Optional[float] = None,
    stream: bool = False,
) -> ChatRequest:
    """Build a single-turn chat request from CLI arguments"""
    messages = []
    if system:
        messages.append(Message(role="system", content=system))
    messages.append(Message(role="user", content=prompt))
    return ChatRequest(
        model=model,
        messages=messages,
        temperature=temperature,
        max_tokens=max_tokens,
        top_p=top_p,
        repetition_penalty=repetition_penalty,
        stream=stream,
    )


async def run_chat(client: GigaChatClient, request: ChatRequest, console) -> int:
    """
    Send a chat request and print the answer

    Args:
        client: Gateway client
        request: Request to send; ``request.stream`` prints text as it arrives
        console: Rich console for output

    Returns:
        Process exit code
    """
    try:
        result = await client.send(request)
    except AuthenticationError as e:
        console.print(f"[red]Authentication failed:[/red] {e}")
        return 2
    except RequestError as e:
        console.print(f"[red]Request failed:[/red] {e}")
        if e.body:
            console.print(f"[dim]{e.body}[/dim]", markup=False)
        return 1

    if not request.stream:
        console.print(result.text, markup=False)
        show_usage(result, console)
        return 0

    async with result as events:
        async for event in events:
            if isinstance(event, TextDelta):
                console.print(event.text, end="", markup=False, highlight=False)
            elif isinstance(event, Finish):
                console.print(
                    f"\n\n[dim]finish={event.reason.value} prompt_tokens={event.usage.prompt_tokens} "
                    f"completion_tokens={event.usage.completion_tokens}[/dim]"
                )
            elif isinstance(event, Error):
                console.print(f"\n[red]Stream interrupted:[/red] {event.detail}")
                return 1
    return 0


async def run_token_status(client: GigaChatClient, console) -> int:
    """
    Authenticate (or reuse the cached token) and show its status

    Returns:
        Process exit code
    """
    try:
        await client.token_cache.get_valid_token(client.credentials)
    except AuthenticationError as e:
        console.print(f"[red]Authentication failed:[/red] {e}")
        return 2

    console.print("[green]✓ Authenticated[/green]")
    show_token_status(client.token_cache.status(), console, client.token_cache.scope)
    return 0
