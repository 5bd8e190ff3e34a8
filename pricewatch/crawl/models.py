"""
Data models for the incremental crawl engine
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple


def utc_now() -> str:
    """Current UTC time as an ISO 8601 string"""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _normalize_label(value: Optional[str]) -> str:
    if not value:
        return ""
    return value.strip().casefold()


def derive_identity_key(document_type: Optional[str], title: Optional[str], url: Optional[str]) -> str:
    """Stable merge key: document type label, then title, then the raw URL"""
    key = _normalize_label(document_type)
    if key:
        return key
    key = _normalize_label(title)
    if key:
        return key
    return url or ""


class ChangeClassification(Enum):
    NEW = "new"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    ERROR = "error"


class UpdateMode(Enum):
    FULL = "full"
    SELECTIVE = "selective"


class OutcomeStatus(Enum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    PARTIAL = "partial"
    FAILED = "failed"


class FailureKind(Enum):
    MANIFEST = "manifest"
    EXTRACTION = "extraction"
    VALIDATION = "validation"
    MERGE = "merge"
    STORE = "store"
    CRAWL = "crawl"


@dataclass(frozen=True)
class SourceConfig:
    """Static configuration of one monitored source"""
    source_id: str
    adapter: str = "html-links"
    extractor: str = "http-text"
    crawl_url: Optional[str] = None
    display_name: Optional[str] = None
    targets: Tuple[Dict[str, Any], ...] = field(default=(), hash=False)
    hash_detection: bool = False
    aliases: Tuple[str, ...] = ()
    options: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @property
    def name(self) -> str:
        return self.display_name or self.source_id

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceConfig":
        return cls(
            source_id=data["id"],
            adapter=data.get("adapter", "html-links"),
            extractor=data.get("extractor", "http-text"),
            crawl_url=data.get("crawlUrl"),
            display_name=data.get("displayName"),
            targets=tuple(data.get("targets") or ()),
            hash_detection=bool(data.get("hashDetection", False)),
            aliases=tuple(data.get("aliases") or ()),
            options=dict(data.get("options") or {}),
        )


@dataclass(frozen=True)
class DocumentReference:
    """A candidate document discovered on a source page"""
    url: str
    display_text: str = ""
    category: Optional[str] = None
    document_type: Optional[str] = None

    @property
    def identity_key(self) -> str:
        return derive_identity_key(self.document_type, self.display_text, self.url)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'url': self.url,
            'displayText': self.display_text,
            'category': self.category,
            'documentType': self.document_type,
        }


@dataclass
class SourceManifest:
    """Cheap, download-free listing of a source's documents"""
    source: str
    documents: List[DocumentReference] = field(default_factory=list)
    fetched_at: str = field(default_factory=utc_now)

    def urls(self) -> List[str]:
        return [doc.url for doc in self.documents]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source': self.source,
            'documents': [doc.to_dict() for doc in self.documents],
            'fetchedAt': self.fetched_at,
        }


@dataclass
class ChangeRecord:
    """Detector verdict for one source in one cycle"""
    source: str
    classification: ChangeClassification
    old_urls: Set[str] = field(default_factory=set)
    new_urls: Set[str] = field(default_factory=set)
    changed_refs: Set[str] = field(default_factory=set)
    error: Optional[str] = None
    changes: List[str] = field(default_factory=list)
    hashes: Dict[str, str] = field(default_factory=dict)
    manifest: Optional[SourceManifest] = None

    @property
    def needs_processing(self) -> bool:
        return self.classification in (ChangeClassification.NEW, ChangeClassification.UPDATED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source': self.source,
            'classification': self.classification.value,
            'oldUrls': sorted(self.old_urls),
            'newUrls': sorted(self.new_urls),
            'changedRefs': sorted(self.changed_refs),
            'error': self.error,
            'changes': list(self.changes),
        }


@dataclass
class ExtractedUnit:
    """One extracted document, keyed by its stable identity"""
    identity_key: str
    source_url: str
    category: Optional[str] = None
    document_type: Optional[str] = None
    title: Optional[str] = None
    payload: Any = None
    summary: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def create(
        cls,
        source_url: str,
        payload: Any,
        document_type: Optional[str] = None,
        title: Optional[str] = None,
        category: Optional[str] = None,
        summary: Optional[Dict[str, Any]] = None,
        identity_key: Optional[str] = None,
    ) -> "ExtractedUnit":
        return cls(
            identity_key=identity_key or derive_identity_key(document_type, title, source_url),
            source_url=source_url,
            category=category,
            document_type=document_type,
            title=title,
            payload=payload,
            summary=summary or {},
        )

    @classmethod
    def failed(cls, ref: DocumentReference, error: str) -> "ExtractedUnit":
        return cls(
            identity_key=ref.identity_key,
            source_url=ref.url,
            category=ref.category,
            document_type=ref.document_type,
            title=ref.display_text or None,
            payload=None,
            error=error,
        )

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'identityKey': self.identity_key,
            'sourceUrl': self.source_url,
            'category': self.category,
            'documentType': self.document_type,
            'title': self.title,
            'payload': self.payload,
            'summary': self.summary,
            'error': self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtractedUnit":
        source_url = data.get('sourceUrl') or ''
        identity_key = data.get('identityKey') or derive_identity_key(
            data.get('documentType'), data.get('title'), source_url
        )
        return cls(
            identity_key=identity_key,
            source_url=source_url,
            category=data.get('category'),
            document_type=data.get('documentType'),
            title=data.get('title'),
            payload=data.get('payload'),
            summary=data.get('summary') or {},
            error=data.get('error'),
        )


@dataclass
class LastUpdate:
    updated_count: int
    updated_urls: List[str]
    mode: UpdateMode

    def to_dict(self) -> Dict[str, Any]:
        return {
            'updatedCount': self.updated_count,
            'updatedUrls': list(self.updated_urls),
            'mode': self.mode.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LastUpdate":
        return cls(
            updated_count=int(data.get('updatedCount', 0)),
            updated_urls=list(data.get('updatedUrls') or []),
            mode=UpdateMode(data.get('mode', UpdateMode.FULL.value)),
        )


@dataclass
class ConsolidatedDataset:
    """Per-source dataset persisted as <source>.json"""
    source: str
    crawled_at: str
    units: List[ExtractedUnit] = field(default_factory=list)
    last_update: Optional[LastUpdate] = None

    @property
    def total_units(self) -> int:
        return len(self.units)

    @property
    def successful_units(self) -> int:
        return sum(1 for unit in self.units if unit.error is None)

    @property
    def failed_units(self) -> int:
        return sum(1 for unit in self.units if unit.error is not None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source': self.source,
            'crawledAt': self.crawled_at,
            'totalUnits': self.total_units,
            'successfulUnits': self.successful_units,
            'failedUnits': self.failed_units,
            'units': [unit.to_dict() for unit in self.units],
            'lastUpdate': self.last_update.to_dict() if self.last_update else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConsolidatedDataset":
        """Rebuild from JSON; counters are recomputed, never trusted"""
        last_update = data.get('lastUpdate')
        return cls(
            source=data['source'],
            crawled_at=data.get('crawledAt') or '',
            units=[ExtractedUnit.from_dict(item) for item in data['units']],
            last_update=LastUpdate.from_dict(last_update) if last_update else None,
        )


@dataclass(frozen=True)
class SourceOutcome:
    """Result of one source in one cycle"""
    source: str
    status: OutcomeStatus
    classification: ChangeClassification
    mode: Optional[UpdateMode] = None
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    processed_units: int = 0
    successful_units: int = 0
    failed_units: int = 0
    total_units: int = 0
    duration_seconds: float = 0.0
    changes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source': self.source,
            'status': self.status.value,
            'classification': self.classification.value,
            'mode': self.mode.value if self.mode else None,
            'error': self.error,
            'failureKind': self.failure_kind.value if self.failure_kind else None,
            'processedUnits': self.processed_units,
            'successfulUnits': self.successful_units,
            'failedUnits': self.failed_units,
            'totalUnits': self.total_units,
            'durationSeconds': round(self.duration_seconds, 3),
            'changes': list(self.changes),
        }


@dataclass(frozen=True)
class CycleResult:
    """Immutable result of one orchestration cycle"""
    succeeded: Tuple[SourceOutcome, ...]
    failed: Tuple[SourceOutcome, ...]
    change_records: Tuple[ChangeRecord, ...] = ()
    no_op: bool = False
    started_at: str = ""
    finished_at: str = ""
    duration_seconds: float = 0.0

    @property
    def outcomes(self) -> Tuple[SourceOutcome, ...]:
        return self.succeeded + self.failed

    def outcome_for(self, source: str) -> Optional[SourceOutcome]:
        for outcome in self.outcomes:
            if outcome.source == source:
                return outcome
        return None


@dataclass
class CycleReport:
    """Caller-facing summary of a cycle"""
    total_sources: int
    succeeded: int
    failed: int
    skipped_unchanged: int
    change_rate_percent: float
    no_op: bool
    duration_seconds: float
    sources: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_result(cls, result: CycleResult) -> "CycleReport":
        outcomes = result.outcomes
        total = len(outcomes)
        skipped = sum(1 for o in outcomes if o.status == OutcomeStatus.UNCHANGED)
        succeeded = sum(1 for o in result.succeeded if o.status != OutcomeStatus.UNCHANGED)
        changed = sum(1 for r in result.change_records if r.needs_processing)
        change_rate = (changed / total) * 100 if total > 0 else 0.0

        return cls(
            total_sources=total,
            succeeded=succeeded,
            failed=len(result.failed),
            skipped_unchanged=skipped,
            change_rate_percent=change_rate,
            no_op=result.no_op,
            duration_seconds=result.duration_seconds,
            sources=[o.to_dict() for o in sorted(outcomes, key=lambda o: o.source)],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalSources': self.total_sources,
            'succeeded': self.succeeded,
            'failed': self.failed,
            'skippedUnchanged': self.skipped_unchanged,
            'changeRatePercent': round(self.change_rate_percent, 1),
            'noOp': self.no_op,
            'durationSeconds': round(self.duration_seconds, 3),
            'sources': self.sources,
        }
