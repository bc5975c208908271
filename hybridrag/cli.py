"""
Hybrid RAG CLI

Commands:
    hybridrag ingest PATH
    hybridrag search QUERY [--limit --vector-weight --graph-weight --no-graph --depth]
    hybridrag compare QUERY [--limit]
    hybridrag status

Output is JSON on stdout; errors go to stderr with exit code 1.
"""

import asyncio
import json
import sys
from pathlib import Path

import click

from hybridrag import __version__
from hybridrag.config.environments import get_current_environment
from hybridrag.config.logging_setup import configure_logging
from hybridrag.core.engine import HybridRAG
from hybridrag.exceptions import HybridRAGError
from hybridrag.storage.retriever.models import SearchStrategy


# ============================================================================
# Helper Functions
# ============================================================================

def run_with_engine(operation):
    """Run ``operation(engine)`` inside a connected engine and return its result."""
    async def _run():
        engine = HybridRAG()
        await engine.connect()
        try:
            return await operation(engine)
        finally:
            await engine.close()

    return asyncio.run(_run())


def emit(data) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


# ============================================================================
# Commands
# ============================================================================

@click.group()
@click.version_option(version=__version__, prog_name='hybridrag')
@click.option('--log-level', default=None, help='Override the environment log level')
def cli(log_level):
    """Hybrid RAG - vector search enriched with an entity knowledge graph."""
    environment = get_current_environment()
    configure_logging(level=log_level or environment.log_level, json_logs=environment.json_logs)


@cli.command('ingest')
@click.argument('path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
def ingest(path):
    """Ingest a PDF or plain-text file.

    Example:
        hybridrag ingest report.pdf
    """
    async def _ingest(engine):
        if path.suffix.lower() == '.pdf':
            return await engine.ingest_pdf(path)
        return await engine.ingest(path.read_text(encoding='utf-8'), path.name)

    try:
        result = run_with_engine(_ingest)
    except HybridRAGError as e:
        fail(str(e))
    emit(result.to_dict())


@cli.command('search')
@click.argument('query')
@click.option('--limit', default=5, show_default=True, type=int)
@click.option('--vector-weight', default=0.7, show_default=True, type=float)
@click.option('--graph-weight', default=0.3, show_default=True, type=float)
@click.option('--no-graph', is_flag=True, help='Disable graph expansion')
@click.option('--depth', default=2, show_default=True, type=int, help='Maximum graph depth')
def search(query, limit, vector_weight, graph_weight, no_graph, depth):
    """Hybrid search over ingested documents."""
    try:
        strategy = SearchStrategy(
            vector_weight=vector_weight,
            graph_weight=graph_weight,
            enable_graph_expansion=not no_graph,
            max_graph_depth=depth,
        )
        results = run_with_engine(lambda engine: engine.search(query, limit=limit, strategy=strategy))
    except (ValueError, HybridRAGError) as e:
        fail(str(e))
    emit({
        "query": query,
        "strategy": strategy.to_dict(),
        "results": [r.to_dict() for r in results],
        "count": len(results),
    })


@cli.command('compare')
@click.argument('query')
@click.option('--limit', default=5, show_default=True, type=int)
def compare(query, limit):
    """Compare vector-only and hybrid ranking for QUERY."""
    try:
        report = run_with_engine(lambda engine: engine.compare(query, limit=limit))
    except (ValueError, HybridRAGError) as e:
        fail(str(e))
    emit(report.to_dict())


@cli.command('status')
def status():
    """Report which capabilities are available."""
    emit(run_with_engine(lambda engine: engine.status()))


def main():
    cli()


if __name__ == '__main__':
    main()
