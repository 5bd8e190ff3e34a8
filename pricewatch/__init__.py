"""
pricewatch: incremental monitoring of published pricing documents

Packages:
- crawl: change detection, crawl orchestration and dataset reconciliation
- api: FastAPI read access to the consolidated datasets
- cli: Typer command line interface
"""

__version__ = "1.0.0"
