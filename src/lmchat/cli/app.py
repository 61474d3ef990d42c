"""Main CLI application using Typer."""
import asyncio
import logging
from datetime import datetime

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from ..chat import ChatService
from ..content import render_content
from ..sessions import Message, Role, Session, SessionStore
from ..settings import model_display_name
from .providers import get_data_dir, get_llm, get_stores

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="lmchat",
    help="Local chat client for OpenAI-compatible model servers",
    no_args_is_help=True,
    add_completion=True,
)

settings_app = typer.Typer(
    help="Show or change client settings",
    no_args_is_help=True,
)
app.add_typer(settings_app, name="settings")

# Console for rich output
console = Console()

EXIT_WORDS = ("exit", "quit", "q")


def _configure_logging(verbose: bool) -> None:
    package_logger = logging.getLogger("lmchat")
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        package_logger.addHandler(
            RichHandler(console=Console(stderr=True), show_path=False)
        )


def _error(e: Exception) -> None:
    console.print(f"[red]Error: {escape(str(e))}[/red]")


def _format_time(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


def _print_message(message: Message) -> None:
    if message.role is Role.USER:
        console.print("[bold yellow]You[/bold yellow]")
    else:
        console.print("[bold green]Assistant[/bold green]")
    console.print(render_content(message.content))
    console.print()


def _print_session(session: Session) -> None:
    console.print(Text(session.display_title, style="bold cyan"))
    console.print(f"[dim]{session.id}[/dim]\n")
    if not session.messages:
        console.print("[dim]Type a message to start the conversation.[/dim]")
        return
    for message in session.messages:
        _print_message(message)


def _sessions_table(sessions: list[Session], current_id: str | None) -> Table:
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title")
    table.add_column("Messages", justify="right", width=8)
    table.add_column("Updated", style="green", width=16)
    table.add_column("ID", style="dim")

    for i, session in enumerate(sessions, 1):
        marker = "*" if session.id == current_id else ""
        table.add_row(
            f"{i}{marker}",
            Text(session.display_title),
            str(len(session.messages)),
            _format_time(session.updated_at),
            session.id,
        )
    return table


def _select_or_fail(sessions: SessionStore, session_id: str) -> Session:
    if session_id not in sessions:
        console.print(f"[red]Error: no session with id {escape(session_id)}[/red]")
        raise typer.Exit(code=1)
    return sessions.select(session_id)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging"
    )
):
    """Chat with a local model server and keep your conversations."""
    _configure_logging(verbose)


@app.command()
def chat(
    session_id: str | None = typer.Option(
        None,
        "--session",
        "-s",
        help="Continue the session with this id"
    ),
    new: bool = typer.Option(
        False,
        "--new",
        "-n",
        help="Start a new session"
    )
):
    """Interactive chat mode."""
    async def _chat():
        sessions, settings = get_stores()
        llm = get_llm(settings.settings)
        service = ChatService(sessions, settings, llm)

        try:
            if new:
                service.new_session()
            elif session_id:
                _select_or_fail(sessions, session_id)

            model = model_display_name(settings.settings.model_id)
            console.print(f"[bold cyan]lmchat[/bold cyan] [dim]({escape(model)})[/dim]")
            console.print("[dim]Type 'exit', 'quit', or 'q' to leave, '/new' for a new chat[/dim]\n")
            _print_session(sessions.current)

            while True:
                try:
                    user_input = console.input("[bold yellow]You:[/bold yellow] ")

                    if not user_input.strip():
                        continue

                    if user_input.strip().lower() in EXIT_WORDS:
                        console.print("[dim]Goodbye![/dim]")
                        break

                    if user_input.strip() == "/new":
                        _print_session(service.new_session())
                        continue

                    with console.status("[dim]Generating reply...[/dim]"):
                        reply = await service.send(user_input)

                    if reply is not None:
                        console.print()
                        _print_message(reply)

                except KeyboardInterrupt:
                    console.print("\n[dim]Goodbye![/dim]")
                    break
                except EOFError:
                    console.print("\n[dim]Goodbye![/dim]")
                    break

        except typer.Exit:
            raise
        except Exception as e:
            _error(e)
            raise typer.Exit(code=1)
        finally:
            await llm.close()

    asyncio.run(_chat())


@app.command()
def ask(
    message: str = typer.Argument(..., help="Message to send"),
    session_id: str | None = typer.Option(
        None,
        "--session",
        "-s",
        help="Send to the session with this id (default: most recent)"
    ),
    new: bool = typer.Option(
        False,
        "--new",
        "-n",
        help="Send to a new session"
    )
):
    """Send a single message and print the reply."""
    async def _ask():
        sessions, settings = get_stores()
        llm = get_llm(settings.settings)
        service = ChatService(sessions, settings, llm)

        try:
            if new:
                service.new_session()
            elif session_id:
                _select_or_fail(sessions, session_id)

            with console.status("[dim]Generating reply...[/dim]"):
                reply = await service.send(message)

            if reply is None:
                console.print("[yellow]Nothing to send[/yellow]")
                return
            console.print(render_content(reply.content))

        except typer.Exit:
            raise
        except Exception as e:
            _error(e)
            raise typer.Exit(code=1)
        finally:
            await llm.close()

    asyncio.run(_ask())


@app.command(name="sessions")
def list_sessions():
    """List sessions, most recently updated first."""
    try:
        sessions, _ = get_stores()
        console.print(_sessions_table(sessions.list_by_recency(), sessions.current_id))
    except Exception as e:
        _error(e)
        raise typer.Exit(code=1)


@app.command()
def show(
    session_id: str | None = typer.Argument(
        None,
        help="Session id (default: most recent)"
    )
):
    """Print the messages of a session."""
    sessions, _ = get_stores()
    session = _select_or_fail(sessions, session_id) if session_id else sessions.current
    _print_session(session)


@app.command()
def new(
    title: str = typer.Argument("New chat", help="Title of the new session")
):
    """Create an empty session."""
    sessions, _ = get_stores()
    session = sessions.create(title)
    console.print(f"[green]Created session[/green] {session.id}")


@app.command()
def rename(
    session_id: str = typer.Argument(..., help="Session id"),
    title: str = typer.Argument(..., help="New title")
):
    """Rename a session."""
    sessions, _ = get_stores()
    _select_or_fail(sessions, session_id)
    session = sessions.rename(session_id, title)
    console.print(Text.assemble(("Renamed to ", "green"), session.display_title))


@app.command()
def delete(
    session_id: str = typer.Argument(..., help="Session id"),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt"
    )
):
    """Delete a session."""
    sessions, _ = get_stores()
    session = _select_or_fail(sessions, session_id)

    if not yes:
        confirm = typer.confirm(f"Delete '{session.display_title}'?")
        if not confirm:
            console.print("[dim]Aborted.[/dim]")
            return

    sessions.delete(session_id)
    console.print(f"[green]Deleted[/green] {session_id}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Keyword to look for in titles and messages"),
    pick: int | None = typer.Option(
        None,
        "--pick",
        "-p",
        help="Open the N-th match without prompting"
    )
):
    """Search sessions and open a match."""
    sessions, _ = get_stores()
    matches = sessions.search(query)

    if not matches:
        console.print("[yellow]No matching chats found[/yellow]")
        return

    if len(matches) == 1:
        _print_session(sessions.select(matches[0].id))
        return

    if pick is None:
        console.print(f"[green]Found {len(matches)} chats[/green]\n")
        console.print(_sessions_table(matches, sessions.current_id))
        answer = typer.prompt("Number of the chat to open", default="", show_default=False)
        try:
            pick = int(answer)
        except ValueError:
            return

    if not 1 <= pick <= len(matches):
        console.print(f"[yellow]Pick a number between 1 and {len(matches)}[/yellow]")
        return

    _print_session(sessions.select(matches[pick - 1].id))


@app.command()
def models():
    """List models offered by the server."""
    async def _models():
        sessions, settings = get_stores()
        llm = get_llm(settings.settings)
        service = ChatService(sessions, settings, llm)
        try:
            model_ids = await service.list_models()
        finally:
            await llm.close()

        if not model_ids:
            console.print("[red]Could not fetch the model list[/red]")
            raise typer.Exit(code=1)

        current = settings.settings.model_id
        for model_id in model_ids:
            marker = "[green]*[/green] " if model_id == current else "  "
            console.print(f"{marker}{escape(model_id)}")

    asyncio.run(_models())


@app.command()
def ping():
    """Check that the model server is reachable."""
    async def _ping():
        sessions, settings = get_stores()
        llm = get_llm(settings.settings)
        service = ChatService(sessions, settings, llm)
        try:
            connected = await service.check_connection()
        finally:
            await llm.close()

        base_url = escape(settings.settings.api_base_url)
        if connected:
            console.print(f"[green]+[/green] Model server {base_url}: OK")
        else:
            console.print(f"[red]x[/red] Model server {base_url}: not reachable")
            console.print("[dim]Check that the server is running and the settings are correct.[/dim]")
            raise typer.Exit(code=1)

    asyncio.run(_ping())


@settings_app.command(name="show")
def settings_show():
    """Show the current settings."""
    _, settings_store = get_stores()
    current = settings_store.settings

    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="bold cyan", width=16)
    table.add_column("Value")

    table.add_row("API base URL", Text(current.api_base_url))
    table.add_row("Model", Text(current.model_id))
    table.add_row("Temperature", str(current.temperature))
    table.add_row("Max tokens", str(current.max_tokens) if current.max_tokens else "no limit")
    table.add_row("System prompt", Text(current.system_prompt))
    table.add_row("Data directory", str(get_data_dir()))

    console.print(table)


@settings_app.command(name="set")
def settings_set(
    base_url: str | None = typer.Option(None, "--base-url", help="API base URL"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model id"),
    system_prompt: str | None = typer.Option(None, "--system-prompt", help="System prompt"),
    temperature: str | None = typer.Option(None, "--temperature", "-t", help="Sampling temperature (0-2)"),
    max_tokens: str | None = typer.Option(None, "--max-tokens", help="Maximum tokens per reply"),
    no_max_tokens: bool = typer.Option(False, "--no-max-tokens", help="Remove the token limit"),
):
    """Change settings. Blank or invalid values fall back to defaults."""
    _, settings_store = get_stores()
    settings_store.update(
        api_base_url=base_url,
        model_id=model,
        system_prompt=system_prompt,
        temperature=temperature,
        max_tokens=max_tokens,
        clear_max_tokens=no_max_tokens,
    )
    console.print("[green]Settings saved.[/green]")
    settings_show()


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
