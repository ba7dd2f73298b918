"""Status display functionality for CLI"""

from typing import Any, Dict

from rich.table import Table

from gateway import ChatResult


def show_token_status(status: Dict[str, Any], console, scope: str):
    """
    Display token cache status

    Args:
        status: Dict returned by TokenCache.status()
        console: Rich console for output
        scope: OAuth scope the token was issued for
    """
    table = Table(title="GigaChat Token Status")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Scope", scope)
    table.add_row("Has Token", "Yes" if status["has_token"] else "No")
    table.add_row("Is Valid", "[green]Yes[/green]" if status["is_valid"] else "[red]No[/red]")

    if status["expires_at"]:
        table.add_row("Expires At", status["expires_at"])
        table.add_row("Time Until Expiry", format_duration(status["expires_in_seconds"]))

    table.add_row("Exchanges Performed", str(status["refresh_count"]))

    console.print(table)


def show_usage(result: ChatResult, console):
    """Print finish reason and token usage after a completion"""
    usage = result.usage
    console.print(
        f"\n[dim]finish={result.finish_reason.value} "
        f"prompt_tokens={usage.prompt_tokens} completion_tokens={usage.completion_tokens} "
        f"total={usage.total_tokens}[/dim]"
    )


def format_duration(seconds: int) -> str:
    """Format a number of seconds as '1h 5m' / '12m' / 'expired'"""
    if seconds is None or seconds <= 0:
        return "expired"
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m"
    return f"{seconds}s"
