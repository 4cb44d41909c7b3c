"""CLI entry point and commands.

Provides the main CLI application with commands for:
- chat: Send one message to a chat endpoint and show the reply
- replay: Fold a recorded stream offline
- version: Show version information
"""

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from streamchat import __version__
from streamchat.exceptions import ChatStreamError, StreamChatError
from streamchat.logging_config import configure_logging
from streamchat.models.enums import StreamFraming
from streamchat.models.messages import Message
from streamchat.models.parts import (
    BaseToolPart,
    DataPart,
    FilePart,
    ReasoningPart,
    SourceDocumentPart,
    SourceUrlPart,
    StepStartPart,
    TextPart,
)

app = typer.Typer(
    name="streamchat",
    help="Client for UI-message-stream chat endpoints",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", "-l", help="Override STREAMCHAT_LOG_LEVEL"),
    ] = None,
) -> None:
    """streamchat command-line interface."""
    configure_logging(log_level.upper() if log_level else None)  # type: ignore[arg-type]


@app.command()
def chat(
    prompt: Annotated[str, typer.Argument(help="Message to send")],
    base_url: Annotated[
        str | None,
        typer.Option("--base-url", "-u", help="Endpoint base URL (default: STREAMCHAT_API_BASE_URL)"),
    ] = None,
    path: Annotated[
        str | None,
        typer.Option("--path", "-p", help="Chat endpoint path"),
    ] = None,
    framing: Annotated[
        StreamFraming | None,
        typer.Option("--framing", "-f", help="Stream framing: sse or ndjson"),
    ] = None,
) -> None:
    """Send a message and print the assembled assistant reply.

    Examples:
        streamchat chat "What's the weather in Berlin?"
        streamchat chat "hi" --base-url http://localhost:3000 --framing ndjson
    """
    try:
        message = asyncio.run(_run_chat(prompt, base_url, path, framing))
    except StreamChatError as e:
        console.print(f"[red]❌ Chat failed: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    if message is None:
        console.print("[yellow]No reply received.[/yellow]")
        return
    _render_message(message)


async def _run_chat(
    prompt: str,
    base_url: str | None,
    path: str | None,
    framing: StreamFraming | None,
) -> Message | None:
    """Run a single chat turn against the configured endpoint."""
    from streamchat.chat import Chat
    from streamchat.settings import get_settings
    from streamchat.transport import HttpChatTransport

    overrides: dict[str, object] = {}
    if base_url:
        overrides["api_base_url"] = base_url
    if path:
        overrides["api_chat_path"] = path
    if framing:
        overrides["stream_framing"] = framing.value
    settings = get_settings().model_copy(update=overrides)

    transport = HttpChatTransport.from_settings(settings)
    finished: list[Message] = []
    conversation = Chat(
        transport=transport,
        settings=settings,
        on_finish=finished.append,
        on_error=_print_stream_error,
    )
    try:
        with console.status("[dim]Waiting for reply...[/dim]"):
            await conversation.send_message(text=prompt)
    finally:
        await transport.close()
    return finished[-1] if finished else None


def _print_stream_error(error: Exception) -> None:
    # Failures that abort the turn are re-raised and reported by the command.
    if isinstance(error, ChatStreamError):
        console.print(f"[red]{escape(str(error))}[/red]")


@app.command()
def replay(
    file: Annotated[
        Path,
        typer.Argument(help="Recorded stream transcript", exists=True, dir_okay=False, readable=True),
    ],
    framing: Annotated[
        StreamFraming,
        typer.Option("--framing", "-f", help="Stream framing: sse or ndjson"),
    ] = StreamFraming.SSE,
    message_id: Annotated[
        str,
        typer.Option("--message-id", help="Id for the assembled message"),
    ] = "replay",
) -> None:
    """Fold a recorded chunk stream into a message, without any network.

    Each line of FILE is one SSE line or one NDJSON object, exactly as the
    server sent it. Error chunks are reported; folding continues past them.
    """
    from streamchat.streaming import (
        Notification,
        StreamEnd,
        apply_chunk,
        create_streaming_state,
        decode_line,
        finalize_streaming_state,
    )

    state = create_streaming_state(None, message_id)
    chunk_count = 0
    errors = 0
    try:
        with file.open("rb") as transcript:
            for line in transcript:
                decoded = decode_line(line, framing)
                if decoded is StreamEnd.DONE:
                    break
                if decoded is None:
                    continue
                chunk_count += 1
                if apply_chunk(state, decoded) == Notification.ERROR:
                    errors += 1
                    console.print(f"[red]error chunk: {escape(decoded.error_text)}[/red]")  # type: ignore[union-attr]
    except StreamChatError as e:
        console.print(f"[red]❌ Replay failed: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    abandoned = finalize_streaming_state(state)
    console.print(_parts_table(state.message))
    console.print(
        f"[dim]{chunk_count} chunks, {len(state.message.parts)} parts, "
        f"{errors} errors, {len(abandoned)} abandoned tool calls[/dim]"
    )


@app.command()
def version() -> None:
    """Show streamchat version information."""
    console.print(
        Panel(
            f"[bold]streamchat[/bold] v{__version__}\n"
            "Client for UI-message-stream chat endpoints",
            title="Version",
            border_style="blue",
        )
    )


# =============================================================================
# RENDERING
# =============================================================================


def _describe_part(part: object) -> tuple[str, str]:
    """Return a (kind, summary) pair for a message part."""
    if isinstance(part, TextPart):
        return "text", part.text
    if isinstance(part, ReasoningPart):
        return "reasoning", part.text
    if isinstance(part, BaseToolPart):
        detail = part.error_text if part.error_text else part.output if part.output is not None else part.input
        return f"tool:{part.tool_name}", f"[{part.state.value}] {detail if detail is not None else ''}"
    if isinstance(part, SourceUrlPart):
        return "source-url", part.url
    if isinstance(part, SourceDocumentPart):
        return "source-document", part.title
    if isinstance(part, FilePart):
        return "file", f"{part.media_type} {part.url}"
    if isinstance(part, DataPart):
        return f"data:{part.data_name}", str(part.data)
    if isinstance(part, StepStartPart):
        return "step-start", ""
    return type(part).__name__, ""


def _parts_table(message: Message) -> Table:
    table = Table(title=f"Message {message.id}", show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Part", style="cyan")
    table.add_column("Content")
    for index, part in enumerate(message.parts):
        kind, summary = _describe_part(part)
        table.add_row(str(index), escape(kind), escape(summary))
    return table


def _render_message(message: Message) -> None:
    for part in message.parts:
        if isinstance(part, TextPart):
            console.print(Markdown(part.text))
        elif isinstance(part, ReasoningPart):
            console.print(f"[dim italic]{escape(part.text)}[/dim italic]")
        elif not isinstance(part, StepStartPart):
            kind, summary = _describe_part(part)
            console.print(f"[cyan]{escape(kind)}[/cyan] {escape(summary)}")


# Entry point for: python -m streamchat.cli.main
if __name__ == "__main__":
    app()
