"""
CLI Application for the pricewatch crawl engine
"""

import json
from typing import List, Optional

import typer
from typer import Typer

from ..crawl.config import AppConfig, load_config
from ..crawl.dataset_store import DatasetStore
from ..crawl.exceptions import ConfigurationError
from ..crawl.models import CycleReport
from ..crawl.orchestrator import CrawlOrchestrator
from ..crawl.registry import ChangeRegistry
from .display import Display, console
from .logger import Logger

app = Typer(
    name="pricewatch",
    help="📄 Pricewatch - incremental crawl of provider pricing documents",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def _load(config_path: Optional[str], log_level: Optional[str] = None) -> AppConfig:
    try:
        app_config = load_config(config_path)
    except ConfigurationError as e:
        Display.show_error(str(e))
        raise typer.Exit(2)

    Logger.setup_logging(log_level or app_config.settings.log_level)
    return app_config


@app.command()
def run(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to sources.json"),
    source: Optional[List[str]] = typer.Option(None, "--source", "-s", help="Only crawl these source ids"),
    log_level: Optional[str] = typer.Option(None, help="Override log level"),
    as_json: bool = typer.Option(False, "--json", help="Print the cycle report as JSON"),
):
    """Run one crawl cycle across the configured sources"""
    app_config = _load(config, log_level)

    sources = app_config.sources
    if source:
        sources = []
        for key in source:
            found = app_config.get_source(key)
            if found is None:
                Display.show_error(f"Unknown source: {key}")
                raise typer.Exit(2)
            sources.append(found)

    orchestrator = CrawlOrchestrator.from_config(app_config)
    try:
        result = orchestrator.run_cycle_sync(sources)
    except ConfigurationError as e:
        Display.show_error(str(e))
        raise typer.Exit(2)

    report = CycleReport.from_result(result)
    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    else:
        Display.show_cycle_report(report)

    if report.failed:
        raise typer.Exit(1)


@app.command()
def status(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to sources.json"),
):
    """Show the stored URLs per source"""
    app_config = _load(config)
    registry = ChangeRegistry(app_config.settings.metadata_dir)
    Display.show_registry_summary(registry.summary())


@app.command()
def dataset(
    source: str = typer.Argument(..., help="Source id or alias"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to sources.json"),
):
    """Show statistics of one source's consolidated dataset"""
    app_config = _load(config)
    found = app_config.get_source(source)
    source_id = found.source_id if found else source

    store = DatasetStore(app_config.settings.datasets_dir)
    stats = store.statistics(source_id)
    Display.show_dataset_statistics(source_id, stats)

    if not stats.get("has_data"):
        raise typer.Exit(1)


@app.command()
def sources(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to sources.json"),
):
    """List configured sources"""
    app_config = _load(config)
    if not app_config.sources:
        console.print("[yellow]⚠️ No sources configured[/yellow]")
        return
    Display.show_sources(app_config.sources)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address"),
    port: Optional[int] = typer.Option(None, help="Port"),
    reload: bool = typer.Option(False, help="Auto-reload on code changes"),
):
    """Start the HTTP read API"""
    import uvicorn

    from ..api.config import settings

    uvicorn.run(
        "pricewatch.api.app:create_app",
        factory=True,
        host=host or settings.HOST,
        port=port or settings.PORT,
        reload=reload or settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )


def main():
    app()


if __name__ == "__main__":
    main()
