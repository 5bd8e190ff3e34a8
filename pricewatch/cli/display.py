from typing import Dict, List

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..crawl.models import CycleReport, SourceConfig

console = Console()

STATUS_STYLES = {
    "updated": "green",
    "unchanged": "dim",
    "partial": "yellow",
    "failed": "red",
}


class Display:
    @staticmethod
    def show_cycle_report(report: CycleReport):
        """Per-source table plus a summary panel"""
        table = Table(title="📊 Crawl Cycle", show_header=True, header_style="bold magenta")
        table.add_column("Source", style="cyan", no_wrap=True)
        table.add_column("Status")
        table.add_column("Change")
        table.add_column("Mode")
        table.add_column("Units", justify="right")
        table.add_column("Failed", justify="right")
        table.add_column("Details", style="dim")

        for detail in report.sources:
            status = detail["status"]
            style = STATUS_STYLES.get(status, "white")
            details = detail["error"] or "; ".join(detail["changes"])
            table.add_row(
                detail["source"],
                f"[{style}]{status}[/{style}]",
                detail["classification"],
                detail["mode"] or "-",
                str(detail["totalUnits"]),
                str(detail["failedUnits"]),
                details or "",
            )

        console.print(table)

        summary = (
            f"Sources: {report.total_sources}\n"
            f"Succeeded: {report.succeeded}\n"
            f"Failed: {report.failed}\n"
            f"Unchanged: {report.skipped_unchanged}\n"
            f"Change rate: {report.change_rate_percent:.1f}%\n"
            f"Duration: {report.duration_seconds:.2f}s"
        )
        if report.no_op:
            summary += "\n\nNo changes detected, extraction skipped"

        border = "bold red" if report.failed else "bold green"
        console.print(Panel(summary, title="Summary", border_style=border, padding=(1, 2)))

    @staticmethod
    def show_registry_summary(summary: Dict):
        table = Table(title="🗂️ Change Registry", show_header=True, header_style="bold magenta")
        table.add_column("Source", style="cyan", no_wrap=True)
        table.add_column("Documents", justify="right", style="green")
        table.add_column("Hashed", justify="right")
        table.add_column("URLs", style="dim")

        for source, details in summary["sources"].items():
            table.add_row(
                source,
                str(details["documents"]),
                str(details["hashed"]),
                "\n".join(details["urls"]),
            )

        console.print(table)
        console.print(
            f"Total: {summary['total_sources']} source(s), "
            f"{summary['total_documents']} document(s)"
        )

    @staticmethod
    def show_dataset_statistics(source: str, stats: Dict):
        if not stats.get("has_data"):
            message = stats.get("error") or "No dataset stored yet"
            console.print(f"[yellow]⚠️ {source}: {message}[/yellow]")
            return

        table = Table(title=f"📄 {source}", show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Total units", str(stats["total_units"]))
        table.add_row("Successful", str(stats["successful_units"]))
        table.add_row("Failed", str(stats["failed_units"]))
        table.add_row("Last crawl", stats["last_crawl_date"] or "-")
        last_update = stats.get("last_update")
        if last_update:
            table.add_row("Last update", f"{last_update['updatedCount']} unit(s), {last_update['mode']}")
        table.add_row("Document types", ", ".join(stats["document_types"]) or "-")

        console.print(table)

    @staticmethod
    def show_sources(sources: List[SourceConfig]):
        table = Table(title="⚙️ Configured Sources", show_header=True, header_style="bold magenta")
        table.add_column("Id", style="cyan", no_wrap=True)
        table.add_column("Name")
        table.add_column("Adapter")
        table.add_column("Targets", justify="right")
        table.add_column("Hash check")
        table.add_column("URL", style="dim")

        for source in sources:
            table.add_row(
                source.source_id,
                source.name,
                f"{source.adapter} / {source.extractor}",
                str(len(source.targets)),
                "✅" if source.hash_detection else "❌",
                source.crawl_url or "-",
            )

        console.print(table)

    @staticmethod
    def show_error(message: str):
        console.print(f"[red]✖️ {message}[/red]")
