"""
Two-phase crawl cycle: cheap manifest check, then extraction for changed sources
"""

import asyncio
import logging
import time
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from .adapters import ContentExtractor, ContentHasher, HttpContentHasher, SourceAdapter, get_adapter, get_extractor
from .change_detector import ChangeDetector
from .config import AppConfig, CrawlConfig
from .dataset_store import DatasetStore
from .durable_store import DurableStore
from .exceptions import (
    ConfigurationError,
    ExtractionError,
    ManifestError,
    MergeError,
    StoreError,
    ValidationError,
)
from .merger import DatasetMerger
from .models import (
    ChangeClassification,
    ChangeRecord,
    ConsolidatedDataset,
    CycleResult,
    DocumentReference,
    ExtractedUnit,
    FailureKind,
    OutcomeStatus,
    SourceConfig,
    SourceOutcome,
    UpdateMode,
    utc_now,
)
from .registry import ChangeRegistry
from .validator import UnitValidator

FAILURE_KINDS = (
    (ManifestError, FailureKind.MANIFEST),
    (ExtractionError, FailureKind.EXTRACTION),
    (ValidationError, FailureKind.VALIDATION),
    (MergeError, FailureKind.MERGE),
    (StoreError, FailureKind.STORE),
)


def failure_kind_for(error: BaseException) -> FailureKind:
    for error_type, kind in FAILURE_KINDS:
        if isinstance(error, error_type):
            return kind
    return FailureKind.CRAWL


class CrawlOrchestrator:
    """Runs one crawl cycle across all configured sources"""

    def __init__(
        self,
        settings: CrawlConfig,
        sources: Sequence[SourceConfig] = (),
        adapters: Optional[Dict[str, SourceAdapter]] = None,
        extractors: Optional[Dict[str, ContentExtractor]] = None,
        hasher: Optional[ContentHasher] = None,
        registry: Optional[ChangeRegistry] = None,
        dataset_store: Optional[DatasetStore] = None,
    ):
        self.settings = settings
        self.sources = list(sources)
        self.adapters: Dict[str, SourceAdapter] = dict(adapters or {})
        self.extractors: Dict[str, ContentExtractor] = dict(extractors or {})

        store = DurableStore()
        self.registry = registry or ChangeRegistry(settings.metadata_dir, store)
        self.datasets = dataset_store or DatasetStore(settings.datasets_dir, store, debug=settings.debug)
        self.detector = ChangeDetector(
            self.registry,
            hasher if hasher is not None else HttpContentHasher(settings),
            hash_timeout=settings.hash_timeout,
        )
        self.merger = DatasetMerger()
        self.validator = UnitValidator(settings)

        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, app_config: AppConfig, **kwargs) -> "CrawlOrchestrator":
        return cls(app_config.settings, app_config.sources, **kwargs)

    def _adapter_for(self, source: SourceConfig) -> SourceAdapter:
        if source.adapter not in self.adapters:
            self.adapters[source.adapter] = get_adapter(source.adapter, self.settings)
        return self.adapters[source.adapter]

    def _extractor_for(self, source: SourceConfig) -> ContentExtractor:
        if source.extractor not in self.extractors:
            self.extractors[source.extractor] = get_extractor(source.extractor, self.settings)
        return self.extractors[source.extractor]

    def run_cycle_sync(self, sources: Optional[Sequence[SourceConfig]] = None) -> CycleResult:
        return asyncio.run(self.run_cycle(sources))

    async def run_cycle(self, sources: Optional[Sequence[SourceConfig]] = None) -> CycleResult:
        """Phase A for every source, change gate, then Phase B for changed sources"""
        sources = list(sources) if sources is not None else list(self.sources)
        if not sources:
            raise ConfigurationError("No sources configured")

        start_time = time.time()
        started_at = utc_now()
        semaphore = asyncio.Semaphore(self.settings.max_concurrent)

        self.logger.info(f"Starting crawl cycle for {len(sources)} source(s)")

        # Phase A
        manifests = await asyncio.gather(
            *(self._fetch_manifest(source, semaphore) for source in sources)
        )
        records = await self.detector.detect(list(zip(sources, manifests)))
        pairs = list(zip(sources, records))

        if not any(record.needs_processing for record in records):
            self.logger.info("No changes detected, skipping extraction")
            outcomes = [self._passive_outcome(record) for record in records]
            return self._build_result(outcomes, records, True, started_at, start_time)

        # Phase B
        outcomes = await asyncio.gather(
            *(self._run_source(source, record, semaphore) for source, record in pairs)
        )
        return self._build_result(list(outcomes), records, False, started_at, start_time)

    async def _fetch_manifest(self, source: SourceConfig, semaphore: asyncio.Semaphore):
        """Manifest or the ManifestError describing why there is none"""
        async with semaphore:
            try:
                adapter = self._adapter_for(source)
                return await asyncio.wait_for(
                    adapter.fetch_manifest(source), self.settings.manifest_timeout
                )
            except asyncio.TimeoutError:
                return ManifestError(
                    f"manifest timed out after {self.settings.manifest_timeout}s",
                    source=source.source_id,
                )
            except ManifestError as e:
                return e
            except Exception as e:
                return ManifestError(f"{type(e).__name__}: {e}", source=source.source_id)

    def _passive_outcome(self, record: ChangeRecord) -> SourceOutcome:
        """Outcome for a source that is not processed this cycle"""
        if record.classification == ChangeClassification.ERROR:
            return SourceOutcome(
                source=record.source,
                status=OutcomeStatus.FAILED,
                classification=record.classification,
                error=record.error,
                failure_kind=FailureKind.MANIFEST,
            )
        return SourceOutcome(
            source=record.source,
            status=OutcomeStatus.UNCHANGED,
            classification=record.classification,
            changes=tuple(record.changes),
        )

    async def _run_source(self, source: SourceConfig, record: ChangeRecord, semaphore: asyncio.Semaphore) -> SourceOutcome:
        if not record.needs_processing:
            return self._passive_outcome(record)

        start = time.monotonic()
        async with semaphore:
            try:
                outcome = await self._process_source(source, record)
            except Exception as e:
                kind = failure_kind_for(e)
                self.logger.error(f"[{source.source_id}] Failed ({kind.value}): {e}")
                outcome = SourceOutcome(
                    source=source.source_id,
                    status=OutcomeStatus.FAILED,
                    classification=record.classification,
                    error=getattr(e, 'message', None) or str(e) or type(e).__name__,
                    failure_kind=kind,
                    changes=tuple(record.changes),
                )

        return replace(outcome, duration_seconds=time.monotonic() - start)

    def _select_documents(self, source: SourceConfig, record: ChangeRecord) -> Tuple[UpdateMode, List[DocumentReference]]:
        documents = list(record.manifest.documents)
        if self.datasets.exists(source.source_id) and record.changed_refs:
            mode = UpdateMode.SELECTIVE
            documents = [doc for doc in documents if doc.url in record.changed_refs]
        else:
            mode = UpdateMode.FULL

        unique = {}
        for doc in documents:
            unique.setdefault(doc.url, doc)
        return mode, list(unique.values())

    async def _process_source(self, source: SourceConfig, record: ChangeRecord) -> SourceOutcome:
        source_id = source.source_id
        mode, documents = self._select_documents(source, record)
        self.logger.info(
            f"[{source_id}] {record.classification.value}: processing {len(documents)} "
            f"document(s) in {mode.value} mode"
        )

        extractor = self._extractor_for(source)
        units = []
        for ref in documents:
            units.append(await self._extract_document(extractor, source, ref))

        failed_units = [unit for unit in units if not unit.ok]
        ok_units = [unit for unit in units if unit.ok]
        valid, validation_errors = self.validator.partition(ok_units, source_id)
        valid_ids = {id(unit) for unit in valid}
        invalid = [unit for unit in ok_units if id(unit) not in valid_ids]

        if validation_errors:
            if self.settings.validation_policy == "batch":
                raise validation_errors[0]
            for error in validation_errors:
                self.logger.warning(f"[{source_id}] Dropped invalid unit: {error.message}")

        if not valid:
            raise ExtractionError(
                f"all {len(documents)} document(s) failed to extract", source=source_id
            )

        kept = valid_ids | {id(unit) for unit in failed_units}
        fresh = [unit for unit in units if id(unit) in kept]

        existing = self._load_existing(source_id, mode, invalid)
        dataset = self.merger.reconcile(
            fresh, existing, mode, source_id,
            preserve_keys=[unit.identity_key for unit in invalid],
        )
        self.datasets.save(dataset)

        # Dropped documents stay unknown so the next cycle retries them
        dropped = {unit.source_url for unit in invalid}
        urls = [url for url in record.manifest.urls() if url not in dropped]
        hashes = {url: value for url, value in record.hashes.items() if url not in dropped}
        await self.registry.update(source_id, urls, hashes or None)

        failed_count = len(failed_units) + len(validation_errors)
        status = OutcomeStatus.PARTIAL if failed_count else OutcomeStatus.UPDATED
        error = f"{failed_count} document(s) failed to extract" if failed_count else None
        if failed_count:
            self.logger.warning(f"[{source_id}] {error}")
        else:
            self.logger.info(f"[{source_id}] Updated {len(valid)} unit(s)")

        return SourceOutcome(
            source=source_id,
            status=status,
            classification=record.classification,
            mode=mode,
            error=error,
            failure_kind=FailureKind.EXTRACTION if failed_count else None,
            processed_units=len(documents),
            successful_units=len(valid),
            failed_units=failed_count,
            total_units=dataset.total_units,
            changes=tuple(record.changes),
        )

    def _load_existing(self, source_id: str, mode: UpdateMode, invalid: List[ExtractedUnit]) -> Optional[ConsolidatedDataset]:
        """Stored dataset when the merge needs it: selective mode, or dropped units to keep"""
        if mode == UpdateMode.SELECTIVE:
            return self.datasets.load(source_id)
        if not invalid or not self.datasets.exists(source_id):
            return None
        try:
            return self.datasets.load(source_id)
        except MergeError as e:
            self.logger.warning(f"[{source_id}] Stored dataset unreadable, nothing to keep: {e}")
            return None

    async def _extract_document(self, extractor: ContentExtractor, source: SourceConfig, ref: DocumentReference) -> ExtractedUnit:
        """Extracted unit, or a failed unit carrying the error"""
        try:
            return await asyncio.wait_for(
                extractor.extract(source, ref), self.settings.extract_timeout
            )
        except asyncio.TimeoutError:
            error = f"extraction timed out after {self.settings.extract_timeout}s"
        except ExtractionError as e:
            error = e.message
        except Exception as e:
            error = f"{type(e).__name__}: {e}"

        self.logger.warning(f"[{source.source_id}] {ref.url}: {error}")
        return ExtractedUnit.failed(ref, error)

    def _build_result(
        self,
        outcomes: List[SourceOutcome],
        records: Sequence[ChangeRecord],
        no_op: bool,
        started_at: str,
        start_time: float,
    ) -> CycleResult:
        succeeded = []
        failed = []
        for outcome in outcomes:
            if outcome.status == OutcomeStatus.FAILED:
                failed.append(outcome)
            elif outcome.status == OutcomeStatus.PARTIAL and self.settings.partial_failure_is_failure:
                failed.append(outcome)
            else:
                succeeded.append(outcome)

        duration = time.time() - start_time
        self.logger.info(
            f"Crawl cycle finished in {duration:.2f}s: {len(succeeded)} succeeded, "
            f"{len(failed)} failed{' (no-op)' if no_op else ''}"
        )

        return CycleResult(
            succeeded=tuple(succeeded),
            failed=tuple(failed),
            change_records=tuple(records),
            no_op=no_op,
            started_at=started_at,
            finished_at=utc_now(),
            duration_seconds=duration,
        )
