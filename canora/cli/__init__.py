"""
Command Line Interface for CANORA.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional

import typer
import uvicorn
from pydantic import ValidationError as PydanticValidationError
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import get_settings
from ..curation.contributions import ContributionService
from ..curation.edges import EdgeRegistry
from ..curation.lineage import LineageGraphBuilder
from ..curation.metrics import compute_metrics
from ..curation.promotion import PromotionEngine
from ..curation.schemas import Curator
from ..curation.works import WorkService
from ..db.base import get_session_local, init_database
from ..db.store import WorkStore
from ..errors import CurationError
from ..events import get_notifier

app = typer.Typer(help="CANORA - lineage and promotion for curated works")
console = Console()

TIER_STYLES = {"JAM": "yellow", "PLATE": "cyan", "CANON": "bold magenta"}


@contextmanager
def open_store() -> Iterator[WorkStore]:
    db = get_session_local()()
    try:
        yield WorkStore(db)
    except CurationError as e:
        console.print(f"❌ [red]{e.code}[/red]: {e.message}")
        raise typer.Exit(code=1)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        console.print(f"❌ [red]VALIDATION_ERROR[/red]: {problems}")
        raise typer.Exit(code=1)
    finally:
        db.close()


def _tier(tier: str) -> str:
    style = TIER_STYLES.get(tier, "white")
    return f"[{style}]{tier}[/{style}]"


@app.command("init-db")
def init_db():
    """Create all tables in the configured database."""
    init_database()
    console.print("✅ Database initialized")


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, help="Port to run the API server on"),
    host: Optional[str] = typer.Option(None, help="Host to bind the server to"),
    dev: bool = typer.Option(False, help="Run in development mode with reload"),
):
    """Start the CANORA API server."""
    settings = get_settings()
    rprint(Panel.fit("Starting CANORA", style="bold blue"))
    uvicorn.run(
        "canora.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=dev,
    )


@app.command("create-work")
def create_work(
    title: str = typer.Argument(..., help="Title of the new work"),
    description: Optional[str] = typer.Option(None, help="Optional description"),
    parent: List[str] = typer.Option([], "--parent", help="Parent work id (repeatable)"),
):
    """Create a JAM work, forking any given parents."""
    with open_store() as store:
        work = WorkService(store, get_notifier()).create_work(
            title, description=description, parent_ids=parent
        )
        console.print(f"✅ Created {work.slug} ({work.id}) in {_tier(work.tier)}")


@app.command()
def link(
    source_id: str = typer.Argument(..., help="Source (parent) work id"),
    target_id: str = typer.Argument(..., help="Target (derived) work id"),
    edge_type: str = typer.Option("FORK", "--type", help="FORK, MERGE or DERIVED"),
):
    """Record a derivation edge between two works."""
    with open_store() as store:
        edge = EdgeRegistry(store).create_edge(source_id, target_id, edge_type.upper())
        console.print(f"✅ {edge.type} edge {edge.source_id} → {edge.target_id}")


@app.command()
def lineage(
    work_id: str = typer.Argument(..., help="Work id or slug"),
    depth: int = typer.Option(3, help="Maximum hops above and below the work"),
):
    """Show the lineage graph around a work."""
    with open_store() as store:
        graph = LineageGraphBuilder(store).build_graph(work_id, max_depth=depth)

        table = Table(title=f"Lineage of {work_id}", show_header=True, header_style="bold magenta")
        table.add_column("Depth", justify="right")
        table.add_column("Slug", style="cyan")
        table.add_column("Title")
        table.add_column("Tier")
        for node in sorted(graph.nodes, key=lambda n: n.depth):
            table.add_row(str(node.depth), node.slug, node.title, _tier(node.tier))
        console.print(table)

        edges = Table(title="Edges", show_header=True, header_style="bold magenta")
        edges.add_column("Type")
        edges.add_column("Source", style="cyan")
        edges.add_column("Target", style="cyan")
        for edge in graph.edges:
            edges.add_row(edge.type, edge.source, edge.target)
        console.print(edges)


@app.command()
def promote(
    work_id: str = typer.Argument(..., help="Work id or slug"),
    justification: str = typer.Option(..., help="Curator rationale (min 10 characters)"),
    curator_id: str = typer.Option(..., help="Signing curator id"),
    curator_name: Optional[str] = typer.Option(None, help="Signing curator display name"),
    yes: bool = typer.Option(False, "--yes", help="Skip confirmation before CANON"),
):
    """Promote a work to its next tier."""
    with open_store() as store:
        signer = Curator(id=curator_id, display_name=curator_name)
        work = WorkService(store).get_work(work_id)
        if work.tier == "PLATE" and not yes:
            typer.confirm(
                f"Canonize {work.slug}? This is permanent and cannot be undone", abort=True
            )

        result = PromotionEngine(store, get_notifier()).promote(
            work_id, justification, signer
        )
        event = result.promotion_event
        console.print(
            f"✅ {result.work.slug}: {_tier(event.from_tier)} → {_tier(event.to_tier)}"
            f" signed by {event.signed_by_display_name}"
        )


@app.command()
def credit(
    work_id: str = typer.Argument(..., help="Work id or slug"),
    display_name: str = typer.Argument(..., help="Name shown in the credits"),
    role: str = typer.Option(..., help="VOCAL, BEAT, LYRIC, SOUND, CURATION or AI_ASSIST"),
    notes: Optional[str] = typer.Option(None, help="Optional notes"),
):
    """Credit a contributor on a work that is not CANON."""
    with open_store() as store:
        contribution = ContributionService(store).add_contribution(
            work_id, display_name, role.upper(), notes=notes
        )
        console.print(f"✅ Credited {contribution.display_name} as {contribution.role}")


@app.command()
def metrics():
    """Show tier distribution and promotion latency."""
    with open_store() as store:
        data = compute_metrics(store)

        table = Table(title="Curation Metrics", show_header=True, header_style="bold magenta")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        for key, value in data.to_dict().items():
            table.add_row(key.replace("_", " "), "n/a" if value is None else str(value))
        console.print(table)


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
