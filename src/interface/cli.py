# src/interface/cli.py

from typing import Dict, List
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich import box
from rich.text import Text

from src.domain.models import SearchResult


console = Console()


def display_welcome_banner() -> None:
    console.print(Panel.fit(
        "[bold cyan]🔍 Fuzzy Document Search[/bold cyan]\n"
        "[dim]Typo-tolerant matching over PDF, TXT and MD files[/dim]",
        box=box.DOUBLE,
        border_style="cyan",
    ))


def display_corpus_roots(roots: Dict[str, str]) -> None:
    for key, directory in roots.items():
        console.print(f"[dim]•[/dim] [bold]{key}[/bold] → {directory}")


def prompt_for_query() -> str:
    return Prompt.ask("\n[bold yellow]❓ Search for[/bold yellow]")


def display_results(query: str, results: List[SearchResult]) -> None:
    if not results:
        console.print(f"\n[yellow]No documents match[/yellow] [italic]\"{query}\"[/italic].\n")
        return

    console.print(f"\n[bold]{len(results)} result(s) for:[/bold] [italic]\"{query}\"[/italic]\n")

    for rank, result in enumerate(results, start=1):
        border = "green" if result.preview_image else "yellow"

        panel_content = Text()
        panel_content.append("📄 Document: ", style="dim")
        panel_content.append(result.document_id, style="bold white")
        panel_content.append("\n🕒 Modified: ", style="dim")
        panel_content.append(result.modified_at.strftime("%Y-%m-%d %H:%M"))
        panel_content.append("\n📑 Pages: ", style="dim")
        panel_content.append(_format_pages(result))
        panel_content.append("\n🖼  Preview: ", style="dim")
        panel_content.append(
            f"{len(result.preview_image)} bytes PNG" if result.preview_image else "none"
        )
        panel_content.append(f"\n\n{result.snippet}")

        console.print(Panel(
            panel_content,
            title=f"[bold]#{rank}[/bold]",
            border_style=border,
            box=box.ROUNDED,
            padding=(1, 2),
        ))


def display_error(message: str) -> None:
    console.print(f"\n[bold red]✗ Error:[/bold red] {message}\n")


def ask_continue() -> bool:
    answer = Prompt.ask(
        "\n[dim]Search again?[/dim]",
        choices=["y", "n"],
        default="y",
    )
    return answer.lower() == "y"


def _format_pages(result: SearchResult) -> str:
    if not result.matched_pages:
        return "—"
    pages = ", ".join(str(page) for page in result.matched_pages)
    return f"{pages} (first: {result.primary_page})"
