from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from lingoraft.data_models import Response
from lingoraft.engine import RESET_SENTINEL
from lingoraft.system import CONFIG_PATH_ENV, SESSION_FILE_ENV, LingoRaftSystem

app = typer.Typer(help="LingoRaft: chat-driven typing lessons in the terminal.")
console = Console()

EXIT_WORDS = {"/quit", ":q"}
FEEDBACK_STYLES = {"success": "green", "warning": "yellow", "info": "cyan"}


def _load_system(config: Optional[Path], session_file: Optional[Path]) -> LingoRaftSystem:
    """Instantiate `LingoRaftSystem` with optional config and session file overrides."""
    return LingoRaftSystem.from_config(config, session_path=session_file)


def render_response(response: Response, out: Console = console) -> None:
    """Print a Response the way the browser UI lays it out: messages, lesson card, feedback, actions."""
    for message in response.messages:
        out.print(f"[bold magenta]LingoRaft[/bold magenta]: {escape(message)}")

    if response.feedback_card is not None:
        style = FEEDBACK_STYLES.get(response.feedback_card.status, "white")
        out.print(Panel(escape("\n".join(response.feedback_card.lines)), border_style=style))

    info = response.current_lesson_info
    if info is not None:
        out.print(
            f"[dim]{escape(info.lesson_title)} • Section {info.section_number}/{info.total_sections}: "
            f"{escape(info.section_title)} • Prompt {info.prompt_number}/{info.total_prompts} • "
            f"avg {info.average_accuracy}%[/dim]"
        )
    if response.prompt_card is not None:
        card = response.prompt_card
        body = f"[bold]{escape(card.target_text)}[/bold]"
        if card.hint:
            body += f"\n[dim]{escape(card.hint)}[/dim]"
        out.print(Panel(body, title=card.title, border_style="blue"))

    actions = response.lesson_actions + response.quick_actions
    if actions:
        out.print("[dim]" + escape(" | ".join(f"{action.label}: {action.value}" for action in actions)) + "[/dim]")


def run_repl(
    system: LingoRaftSystem,
    input_fn: Callable[[str], str] = input,
    out: Console = console,
) -> None:
    """Feed typed lines to the engine until EOF or an exit word."""
    render_response(system.engine.boot_response(), out)
    out.print("[dim]Type /help for commands, /quit to leave.[/dim]")
    while True:
        try:
            line = input_fn("> ")
        except (EOFError, KeyboardInterrupt):
            out.print("\nbye!")
            return
        if line.strip().lower() in EXIT_WORDS:
            out.print("bye!")
            return
        render_response(system.engine.handle_message(line), out)


@app.command()
def chat(
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
    session_file: Optional[Path] = typer.Option(None, help="Override the session JSON file."),
):
    """
    Start an interactive lesson chat.

    Restores the saved session through `LingoRaftSystem`, prints the boot response, then
    routes every line through `LessonEngine.handle_message` and renders the result with Rich.
    """
    system = _load_system(config, session_file)
    run_repl(system)


@app.command()
def lessons(
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
    session_file: Optional[Path] = typer.Option(None, help="Override the session JSON file."),
):
    """List available lessons with their completion state."""
    system = _load_system(config, session_file)
    table = Table(title="Lessons")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Level")
    table.add_column("Minutes", justify="right")
    table.add_column("Completed")
    table.add_column("Last avg", justify="right")
    for item in system.engine.lessons_list_view():
        table.add_row(
            item.id,
            item.title,
            item.level,
            str(item.estimated_minutes),
            "yes" if item.completed else "no",
            f"{item.last_average_accuracy}%" if item.last_average_accuracy is not None else "-",
        )
    console.print(table)


@app.command()
def reset(
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
    session_file: Optional[Path] = typer.Option(None, help="Override the session JSON file."),
):
    """Forget the saved session, including lesson completions."""
    system = _load_system(config, session_file)
    render_response(system.engine.handle_message(RESET_SENTINEL))


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: int = typer.Option(8000, help="Port to listen on."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
    session_file: Optional[Path] = typer.Option(None, help="Override the session JSON file."),
):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    # The app is imported by uvicorn, so the paths travel through the environment.
    if config is not None:
        os.environ[CONFIG_PATH_ENV] = str(config.resolve())
    if session_file is not None:
        os.environ[SESSION_FILE_ENV] = str(session_file.resolve())
    uvicorn.run("lingoraft.api:app", host=host, port=port)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
