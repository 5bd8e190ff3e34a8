"""
Incremental crawl engine

Change detection, two-phase orchestration and identity-keyed dataset
reconciliation over configurable source adapters.
"""

from .change_detector import ChangeDetector
from .config import AppConfig, CrawlConfig, load_config
from .dataset_store import DatasetStore
from .durable_store import DurableStore
from .exceptions import (
    ConfigurationError,
    ExtractionError,
    ManifestError,
    MergeError,
    PricewatchError,
    StoreError,
    ValidationError,
)
from .merger import DatasetMerger
from .models import (
    ChangeClassification,
    ChangeRecord,
    ConsolidatedDataset,
    CycleReport,
    CycleResult,
    DocumentReference,
    ExtractedUnit,
    SourceConfig,
    SourceManifest,
    SourceOutcome,
    UpdateMode,
)
from .orchestrator import CrawlOrchestrator
from .registry import ChangeRegistry
from .validator import UnitValidator

__all__ = [
    # Orchestration
    'CrawlOrchestrator',
    'ChangeDetector',
    'DatasetMerger',

    # Configuration
    'AppConfig',
    'CrawlConfig',
    'load_config',

    # Persistence
    'ChangeRegistry',
    'DatasetStore',
    'DurableStore',
    'UnitValidator',

    # Data models
    'ChangeClassification',
    'ChangeRecord',
    'ConsolidatedDataset',
    'CycleReport',
    'CycleResult',
    'DocumentReference',
    'ExtractedUnit',
    'SourceConfig',
    'SourceManifest',
    'SourceOutcome',
    'UpdateMode',

    # Errors
    'PricewatchError',
    'ConfigurationError',
    'ExtractionError',
    'ManifestError',
    'MergeError',
    'StoreError',
    'ValidationError',
]
