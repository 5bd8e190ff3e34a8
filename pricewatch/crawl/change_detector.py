"""
Change detection between the published manifest and the registry
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

from .adapters.base import ContentHasher
from .models import ChangeClassification, ChangeRecord, SourceConfig, SourceManifest
from .registry import ChangeRegistry

ManifestResult = Union[SourceManifest, BaseException]


def describe_url_changes(current: Set[str], stored: Set[str]) -> List[str]:
    """Human readable summary of how a URL set moved"""
    changes = []
    added = current - stored
    removed = stored - current

    if len(current) != len(stored):
        changes.append(f"Number of documents changed: {len(stored)} → {len(current)}")
    if added:
        changes.append(f"New documents: {len(added)} added")
    if removed:
        changes.append(f"Removed documents: {len(removed)} removed")
    if len(current) == len(stored) and added:
        changes.append(f"Document URLs updated: {len(added)} changed")

    return changes


class ChangeDetector:
    """Classify sources as new, updated, unchanged or failed"""

    def __init__(
        self,
        registry: ChangeRegistry,
        hasher: Optional[ContentHasher] = None,
        hash_timeout: Optional[float] = None,
    ):
        self.registry = registry
        self.hasher = hasher
        self.hash_timeout = hash_timeout
        self.logger = logging.getLogger(__name__)

    async def detect(self, manifests: Sequence[Tuple[SourceConfig, ManifestResult]]) -> List[ChangeRecord]:
        """Produce one ChangeRecord per (source, manifest-or-error) pair"""
        self.logger.info(f"Detecting changes for {len(manifests)} source(s)")
        records = []
        for source, manifest in manifests:
            record = await self.classify(source, manifest)
            records.append(record)

        summary = self.summarize(records)
        self.logger.info(
            f"Change detection: {summary['with_changes']} changed, "
            f"{summary['unchanged']} unchanged, {summary['errors']} error(s), "
            f"change rate {summary['change_rate']:.1f}%"
        )
        return records

    async def classify(self, source: SourceConfig, manifest: ManifestResult) -> ChangeRecord:
        source_id = source.source_id

        if isinstance(manifest, BaseException):
            self.logger.warning(f"[{source_id}] Manifest unavailable: {manifest}")
            return ChangeRecord(
                source=source_id,
                classification=ChangeClassification.ERROR,
                error=str(manifest) or type(manifest).__name__,
            )

        current_list = manifest.urls()
        current = set(current_list)
        if not current:
            self.logger.warning(f"[{source_id}] No documents found")
            return ChangeRecord(
                source=source_id,
                classification=ChangeClassification.ERROR,
                error="no documents found",
                manifest=manifest,
            )

        stored = set(self.registry.stored_urls(source_id))

        if not stored:
            hashes = await self._hashes_for(source, current_list) if source.hash_detection else {}
            self.logger.info(f"[{source_id}] New source with {len(current)} document(s)")
            return ChangeRecord(
                source=source_id,
                classification=ChangeClassification.NEW,
                new_urls=current,
                changes=[f"New source detected with {len(current)} document(s)"],
                hashes=hashes,
                manifest=manifest,
            )

        if current != stored:
            hashes = await self._hashes_for(source, current_list) if source.hash_detection else {}
            changes = describe_url_changes(current, stored)
            self.logger.info(f"[{source_id}] {len(changes)} change(s): {'; '.join(changes)}")
            return ChangeRecord(
                source=source_id,
                classification=ChangeClassification.UPDATED,
                old_urls=stored,
                new_urls=current,
                changed_refs=current - stored,
                changes=changes,
                hashes=hashes,
                manifest=manifest,
            )

        if source.hash_detection:
            return await self._compare_hashes(source, manifest, current_list, stored)

        self.logger.info(f"[{source_id}] No changes ({len(current)} document(s))")
        return ChangeRecord(
            source=source_id,
            classification=ChangeClassification.UNCHANGED,
            old_urls=stored,
            new_urls=current,
            manifest=manifest,
        )

    async def _compare_hashes(
        self,
        source: SourceConfig,
        manifest: SourceManifest,
        current_list: List[str],
        stored: Set[str],
    ) -> ChangeRecord:
        """URL sets match, so fall back to content hashes"""
        source_id = source.source_id
        current = set(current_list)

        try:
            current_hashes = await self._compute(source, current_list)
        except Exception as e:
            # Unknown content state is reprocessed
            self.logger.warning(f"[{source_id}] Hashing failed, assuming changed: {e}")
            return ChangeRecord(
                source=source_id,
                classification=ChangeClassification.UPDATED,
                old_urls=stored,
                new_urls=current,
                changed_refs=set(current),
                changes=[f"Content hashing failed: {e}"],
                manifest=manifest,
            )

        stored_hashes = self.registry.stored_hashes(source_id)
        differing = {
            url for url in current
            if not current_hashes.get(url)
            or not stored_hashes.get(url)
            or current_hashes[url] != stored_hashes[url]
        }

        if differing:
            self.logger.info(f"[{source_id}] Content hash difference for {len(differing)} document(s)")
            return ChangeRecord(
                source=source_id,
                classification=ChangeClassification.UPDATED,
                old_urls=stored,
                new_urls=current,
                changed_refs=differing,
                changes=[f"Document content changed: {len(differing)} document(s)"],
                hashes=current_hashes,
                manifest=manifest,
            )

        self.logger.info(f"[{source_id}] URLs and content hashes unchanged")
        return ChangeRecord(
            source=source_id,
            classification=ChangeClassification.UNCHANGED,
            old_urls=stored,
            new_urls=current,
            hashes=current_hashes,
            manifest=manifest,
        )

    async def _compute(self, source: SourceConfig, urls: List[str]) -> Dict[str, str]:
        if self.hasher is None:
            raise RuntimeError("hash detection requested but no content hasher configured")
        return await asyncio.wait_for(self.hasher.compute_hashes(source, urls), self.hash_timeout)

    async def _hashes_for(self, source: SourceConfig, urls: List[str]) -> Dict[str, str]:
        """Hashes to persist alongside a URL change; failures just mean none are stored"""
        try:
            return await self._compute(source, urls)
        except Exception as e:
            self.logger.warning(f"[{source.source_id}] Could not compute hashes: {e}")
            return {}

    @staticmethod
    def summarize(records: Sequence[ChangeRecord]) -> Dict:
        """Totals across a detection pass"""
        total = len(records)
        with_changes = sum(1 for r in records if r.needs_processing)
        unchanged = sum(1 for r in records if r.classification == ChangeClassification.UNCHANGED)
        errors = sum(1 for r in records if r.classification == ChangeClassification.ERROR)

        return {
            'total': total,
            'with_changes': with_changes,
            'unchanged': unchanged,
            'errors': errors,
            'change_rate': (with_changes / total) * 100 if total > 0 else 0.0,
        }
