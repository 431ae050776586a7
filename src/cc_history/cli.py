"""CLI for cc-history."""

import json
import logging
from contextlib import closing
from dataclasses import asdict
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console, Group
from rich.logging import RichHandler
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

from cc_history import __version__
from cc_history.models import MessageTag, ResolvedMessageView, SessionSummary, TokenUsage, ToolBlock

app = typer.Typer(
    name="cc-history",
    help="Browse and export Claude Code session history.",
    no_args_is_help=True,
)
console = Console()

# Longest tool result shown inline
MAX_RESULT_CHARS = 2000

TAG_LABELS = {
    MessageTag.USER: ("User", "bold cyan"),
    MessageTag.ASSISTANT: ("Assistant", "bold green"),
    MessageTag.INTERNAL: ("Internal", "dim"),
    MessageTag.HOOK: ("Hook", "magenta"),
    MessageTag.TOOL: ("Tool", "yellow"),
    MessageTag.TOOL_RESULT: ("ToolResult", "yellow"),
    MessageTag.THINKING: ("Thinking", "blue"),
}

RootOption = Annotated[
    Path | None,
    typer.Option("--root", "-r", help="Sessions directory (default: ~/.claude/projects)"),
]


def version_callback(value: bool) -> None:
    if value:
        console.print(f"cc-history {__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool) -> None:
    """Send library logs to stderr through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-V", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logs")] = False,
) -> None:
    """Browse Claude Code session history."""
    setup_logging(verbose)


def resolve_root(root: Path | None) -> Path:
    from cc_history import indexer

    return root if root is not None else indexer.SESSIONS_DIR


def load_summary(session_id: str, root: Path) -> SessionSummary:
    """Find a session in the index or exit with an error."""
    from cc_history.indexer import build_session_index, find_session

    summary = find_session(build_session_index(root), session_id)
    if summary is None:
        console.print(f"[red]Session not found: {session_id}[/red]")
        raise typer.Exit(1)
    return summary


def session_title(summary: SessionSummary) -> str:
    return summary.first_user_message[:50] or f"Session {summary.session_id}"


@app.command()
def projects(
    root: RootOption = None,
    filter_term: Annotated[
        str | None, typer.Option("--filter", "-f", help="Only projects whose name contains this")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """List projects, most recently active first."""
    from cc_history.indexer import build_session_index, filter_projects, project_display_name

    root = resolve_root(root)
    index = build_session_index(root)
    project_list = filter_projects(index, filter_term)

    if json_output:
        console.print_json(
            data={
                "projects": [
                    {"name": project_display_name(p), **asdict(p)} for p in project_list
                ]
            }
        )
        return

    if not index:
        console.print(f"[yellow]No chat history found in {root}[/yellow]")
        return
    if not project_list:
        console.print(f"[yellow]No projects found matching '{filter_term}'[/yellow]")
        return

    for project in project_list:
        count = len(project.sessions)
        console.print(
            f"[cyan]{project_display_name(project)}[/cyan] ({count} session{'s' if count != 1 else ''})",
            highlight=False,
        )


@app.command()
def sessions(
    project: Annotated[str, typer.Argument(help="Project directory name or path substring")],
    root: RootOption = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """List the sessions of a project."""
    from cc_history.exporter import format_timestamp
    from cc_history.indexer import build_session_index, filter_projects

    index = build_session_index(resolve_root(root))
    matches = [p for p in index if p.path == project] or filter_projects(index, project)
    if not matches:
        console.print(f"[red]Project not found: {project}[/red]")
        raise typer.Exit(1)

    entry = matches[0]
    if json_output:
        console.print_json(data={"project": entry.path, "sessions": [asdict(s) for s in entry.sessions]})
        return

    for summary in entry.sessions:
        header = Text()
        header.append(summary.session_id[:8], style="bold cyan")
        header.append(f" | {format_timestamp(summary.last_message_timestamp)}", style="dim")
        header.append(f" | {summary.message_count} messages", style="dim")
        console.print(header)
        console.print(Text(f"  {summary.first_user_message}"))


def render_tool_block(block: ToolBlock) -> list:
    from cc_history.resolver import payload_text

    parts: list = []
    if block.invocation is not None:
        label = Text(f"→ {block.invocation.name}", style="bold yellow")
        if block.key_parameter:
            label.append(f" {block.key_parameter}", style="yellow")
        parts.append(label)
        parts.append(
            Syntax(json.dumps(block.invocation.input, indent=2, default=str), "json", word_wrap=True)
        )

    if block.result is not None:
        text = payload_text(block.result.content)
        if len(text) > MAX_RESULT_CHARS:
            remaining = len(text) - MAX_RESULT_CHARS
            text = text[:MAX_RESULT_CHARS] + f"\n[truncated - {remaining} more chars]"
        parts.append(Text("← result", style="bold yellow"))
        parts.append(Text(text, style="dim"))
    return parts


def usage_label(usage: TokenUsage | None) -> str | None:
    """One-line token usage summary for a message panel."""
    if usage is None:
        return None
    label = f"Input: {usage.input_tokens} | Output: {usage.output_tokens}"
    if usage.cache_creation_input_tokens:
        label += f" | Cache Creation: {usage.cache_creation_input_tokens}"
    return label


def render_view(view: ResolvedMessageView, expand_all: bool = False) -> Panel:
    """Render one resolved message as a panel."""
    from cc_history.exporter import format_timestamp

    label, style = TAG_LABELS[view.tag]
    header = Text()
    header.append(label, style=style)
    if view.tag == MessageTag.TOOL and view.tool_names:
        header.append(f": {', '.join(view.tool_names)}", style=style)
    header.append(f" | {format_timestamp(view.record.timestamp)}", style="dim")
    usage = usage_label(view.record.usage)
    subtitle = Text(usage, style="dim") if usage else None

    if not (view.expanded or expand_all):
        summary = [b.key_parameter for b in view.tool_blocks if b.key_parameter]
        return Panel(
            Text(", ".join(summary) or "(collapsed)", style="dim"),
            title=header,
            title_align="left",
            subtitle=subtitle,
            subtitle_align="right",
        )

    parts: list = []
    for thinking in view.thinking_blocks:
        parts.append(Text(thinking, style="italic blue"))
    for block in view.text_blocks:
        for span in block.spans:
            if span.kind == "code":
                parts.append(Syntax(span.content, span.language or "text", word_wrap=True))
            else:
                parts.append(Text(span.content))
    for tool_block in view.tool_blocks:
        parts.extend(render_tool_block(tool_block))

    return Panel(Group(*parts), title=header, title_align="left", subtitle=subtitle, subtitle_align="right")


@app.command()
def show(
    session_id: Annotated[str, typer.Argument(help="Session ID (or unique prefix)")],
    root: RootOption = None,
    search: Annotated[
        str | None, typer.Option("--search", "-s", help="Only messages containing this text")
    ] = None,
    expand_all: Annotated[
        bool, typer.Option("--all", "-a", help="Expand tool calls and internal messages")
    ] = False,
) -> None:
    """Show a session as a conversation."""
    from cc_history.indexer import load_session_records
    from cc_history.resolver import resolve_session_view, search_views

    root = resolve_root(root)
    summary = load_summary(session_id, root)
    records = load_session_records(root, summary.project_path, summary.session_id)
    views = resolve_session_view(records)
    shown = search_views(views, search)

    console.print(Text(summary.cwd or summary.project_path, style="bold"))
    for view in shown:
        console.print(render_view(view, expand_all=expand_all))

    console.print("─" * 50)
    if search:
        console.print(f"{len(shown)}/{len(views)} messages match '{search}'", highlight=False)
    else:
        console.print(f"{len(views)} messages")


@app.command()
def export(
    session_id: Annotated[str, typer.Argument(help="Session ID (or unique prefix)")],
    root: RootOption = None,
    export_format: Annotated[
        str, typer.Option("--format", "-F", help="Export format (markdown, json)")
    ] = "markdown",
    no_tools: Annotated[
        bool, typer.Option("--no-tools", help="Leave out messages with tool calls or results")
    ] = False,
    no_timestamps: Annotated[
        bool, typer.Option("--no-timestamps", help="Leave out message timestamps")
    ] = False,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write to this file or directory")
    ] = None,
) -> None:
    """Export a session transcript as Markdown or JSON."""
    from cc_history.exporter import default_export_filename, export_transcript, write_export
    from cc_history.models import ExportOptions
    from cc_history.indexer import load_session_records

    root = resolve_root(root)
    summary = load_summary(session_id, root)
    records = load_session_records(root, summary.project_path, summary.session_id)

    title = session_title(summary)
    options = ExportOptions(
        format=export_format.lower(),
        include_tool_calls=not no_tools,
        include_timestamps=not no_timestamps,
    )
    result = export_transcript(records, title, options)
    if not result.success:
        console.print(f"[red]Export failed: {result.error}[/red]")
        raise typer.Exit(1)

    if output is None:
        typer.echo(result.content)
        return

    if output.is_dir():
        output = output / default_export_filename(title, options.format)
    written = write_export(result, output)
    if not written.success:
        console.print(f"[red]Export failed: {written.error}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Exported {written.message_count} messages to {written.file_path}[/green]")


@app.command()
def favorite(
    session_id: Annotated[str, typer.Argument(help="Session ID (or unique prefix)")],
    root: RootOption = None,
) -> None:
    """Star or unstar a session."""
    from cc_history.storage import ensure_store_exists, toggle_favorite

    summary = load_summary(session_id, resolve_root(root))
    with closing(ensure_store_exists()) as conn:
        starred = toggle_favorite(conn, summary.session_id, summary.project_path)

    if starred:
        console.print(f"[green]Starred {summary.session_id}[/green]")
    else:
        console.print(f"Unstarred {summary.session_id}")


@app.command()
def favorites(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """List starred sessions."""
    from cc_history.storage import ensure_store_exists, get_favorites, store_exists

    if not store_exists():
        favorite_list = []
    else:
        with closing(ensure_store_exists()) as conn:
            favorite_list = get_favorites(conn)

    if json_output:
        console.print_json(data={"favorites": [asdict(f) for f in favorite_list]})
        return

    if not favorite_list:
        console.print("[yellow]No favorite sessions.[/yellow]")
        return
    for fav in favorite_list:
        console.print(f"[cyan]{fav.session_id}[/cyan] {fav.project_path} [dim]{fav.starred_at}[/dim]")


@app.command()
def context(
    session_id: Annotated[str, typer.Argument(help="Session ID (or unique prefix)")],
    root: RootOption = None,
) -> None:
    """Show the CLAUDE.md instructions for a session's project."""
    from cc_history.context import read_session_context
    from cc_history.indexer import load_session_records

    root = resolve_root(root)
    summary = load_summary(session_id, root)
    records = load_session_records(root, summary.project_path, summary.session_id)
    session_context = read_session_context(summary.cwd)

    if summary.cwd:
        console.print(f"[bold]Working Directory:[/bold] {summary.cwd}", highlight=False)
    if records and records[0].git_branch:
        console.print(f"[bold]Git Branch:[/bold] {records[0].git_branch}", highlight=False)
    if records and records[0].version:
        console.print(f"[bold]Claude Code Version:[/bold] {records[0].version}", highlight=False)
    if not (session_context.claude_md or session_context.global_claude_md):
        console.print("[yellow]No CLAUDE.md found.[/yellow]")
        return

    if session_context.claude_md:
        console.print(Panel(Text(session_context.claude_md), title="Project CLAUDE.md", title_align="left"))
    if session_context.global_claude_md:
        console.print(
            Panel(
                Text(session_context.global_claude_md),
                title="Global CLAUDE.md (~/.claude/CLAUDE.md)",
                title_align="left",
            )
        )


if __name__ == "__main__":
    app()
