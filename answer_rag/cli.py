"""Command-line interface for answer-rag."""

import asyncio
import sys
from contextlib import AsyncExitStack
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config.logging import get_logger, setup_logging
from .config.settings import Settings
from .core.exceptions import AnswerRAGError, VectorIndexError
from .core.server import AnswerRAGServer
from .models.rag import RAGAnswer
from .models.sync import ReconcileReport
from .rag.embeddings import EmbeddingManager
from .rag.generation import ChatCompletionModel
from .rag.index import VectorIndex, create_vector_index
from .rag.orchestrator import RAGOrchestrator
from .sync.outbox import create_outbox
from .sync.reconciler import IndexReconciler
from .sync.worker import AnswerSyncWorker

app = typer.Typer(
    name="answer-rag",
    help="answer-rag - Question answering over indexed community answers",
    add_completion=False,
)
console = Console()


@app.command("server")
def run_server(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Host to bind to"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to bind to"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode"),
) -> None:
    """Start the answer-rag HTTP server."""
    try:
        settings = Settings()

        if debug:
            settings.DEBUG = True
            settings.LOG_LEVEL = "DEBUG"
        if host:
            settings.SERVER_HOST = host
        if port:
            settings.SERVER_PORT = port

        console.print(
            f"[green]Starting answer-rag server on {settings.SERVER_HOST}:{settings.SERVER_PORT}[/green]"
        )

        server = AnswerRAGServer(settings)
        asyncio.run(server.start())

    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped by user[/yellow]")
    except Exception as e:
        console.print(f"[red]Error starting server: {e}[/red]")
        sys.exit(1)


async def _open_index(settings: Settings, stack: AsyncExitStack) -> VectorIndex:
    """Open the vector index; an unreachable index only removes retrieval context."""
    vector_index = create_vector_index(settings)
    stack.push_async_callback(vector_index.close)
    try:
        await vector_index.initialize()
    except VectorIndexError as e:
        get_logger(__name__).warning("Vector index unavailable, answering without context", error=str(e))
    return vector_index


async def _ask(
    settings: Settings,
    question: str,
    threshold: Optional[float],
    max_context: Optional[int],
) -> RAGAnswer:
    async with AsyncExitStack() as stack:
        embedding_manager = EmbeddingManager(settings)
        stack.push_async_callback(embedding_manager.close)
        await embedding_manager.initialize()

        vector_index = await _open_index(settings, stack)

        model = ChatCompletionModel(settings)
        stack.push_async_callback(model.close)
        await model.initialize()

        orchestrator = RAGOrchestrator(settings, embedding_manager, vector_index, model)
        return await orchestrator.answer(
            question,
            similarity_threshold=threshold,
            max_context_items=max_context,
        )


@app.command("ask")
def ask(
    question: str = typer.Argument(..., help="Question to answer"),
    threshold: Optional[float] = typer.Option(
        None, "--threshold", "-t", help="Minimum similarity for context answers"
    ),
    max_context: Optional[int] = typer.Option(
        None, "--max-context", "-k", help="Maximum answers used as context"
    ),
) -> None:
    """Answer a question from the indexed answers."""
    settings = Settings()
    setup_logging(settings)

    try:
        result = asyncio.run(_ask(settings, question, threshold, max_context))
    except AnswerRAGError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    console.print(result.answer)
    console.print()
    if result.related_question_ids:
        related = ", ".join(str(qid) for qid in result.related_question_ids)
        console.print(f"[dim]Related questions: {related}[/dim]")
    console.print(
        f"[dim]Context items: {result.context_items_used} | status: {result.status.value}[/dim]"
    )
    if result.index_degraded:
        console.print("[yellow]Answer index unavailable, answered without context[/yellow]")


async def _reconcile(settings: Settings) -> ReconcileReport:
    async with AsyncExitStack() as stack:
        embedding_manager = EmbeddingManager(settings)
        stack.push_async_callback(embedding_manager.close)
        await embedding_manager.initialize()

        vector_index = create_vector_index(settings)
        stack.push_async_callback(vector_index.close)
        await vector_index.initialize()

        outbox = create_outbox(settings)
        stack.push_async_callback(outbox.close)
        await outbox.initialize()

        worker = AnswerSyncWorker(settings, embedding_manager, vector_index, outbox)
        return await IndexReconciler(settings, worker, outbox).run_once()


@app.command("reconcile")
def reconcile() -> None:
    """Retry due pending index ops once."""
    settings = Settings()
    settings.create_directories()
    setup_logging(settings)

    try:
        report = asyncio.run(_reconcile(settings))
    except AnswerRAGError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    table = Table(title="Reconcile pass")
    table.add_column("Attempted", justify="right")
    table.add_column("Succeeded", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Remaining", justify="right")
    table.add_row(
        str(report.attempted),
        str(report.succeeded),
        str(report.failed),
        str(report.remaining),
    )
    console.print(table)


@app.command("version")
def show_version() -> None:
    """Show version information."""
    from . import __version__
    console.print(f"answer-rag version {__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
