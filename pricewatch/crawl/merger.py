"""
Identity-keyed reconciliation of fresh units with a stored dataset
"""

import logging
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

from .exceptions import MergeError
from .models import (
    ConsolidatedDataset,
    ExtractedUnit,
    LastUpdate,
    UpdateMode,
    derive_identity_key,
    utc_now,
)

logger = logging.getLogger(__name__)


class DatasetMerger:
    """Replace updated units, keep untouched ones"""

    def reconcile(
        self,
        fresh_units: Sequence[ExtractedUnit],
        existing: Optional[ConsolidatedDataset],
        mode: UpdateMode,
        source: str,
        crawled_at: Optional[str] = None,
        preserve_keys: Iterable[str] = (),
    ) -> ConsolidatedDataset:
        """preserve_keys names stored identities kept even in full mode"""
        fresh = list(fresh_units)
        fresh_keys = self._fresh_keys(fresh, source)
        keep = set(preserve_keys) - fresh_keys

        if existing is None:
            units = fresh
        elif mode == UpdateMode.FULL:
            units = fresh
            if keep:
                units = fresh + [
                    unit for unit in self._dedupe_existing(existing, source)
                    if unit.identity_key in keep
                ]
        else:
            preserved = [
                unit for unit in self._dedupe_existing(existing, source)
                if unit.identity_key not in fresh_keys
            ]
            units = fresh + preserved
            logger.info(
                f"[{source}] Merged {len(fresh)} fresh unit(s) with "
                f"{len(preserved)} preserved unit(s)"
            )

        return ConsolidatedDataset(
            source=source,
            crawled_at=crawled_at or utc_now(),
            units=units,
            last_update=LastUpdate(
                updated_count=len(fresh),
                updated_urls=[unit.source_url for unit in fresh],
                mode=mode,
            ),
        )

    def _fresh_keys(self, fresh: List[ExtractedUnit], source: str) -> set:
        keys = set()
        for unit in fresh:
            if not unit.identity_key:
                raise MergeError("fresh unit without identity key", source=source)
            if unit.identity_key in keys:
                raise MergeError(f"identity collision on '{unit.identity_key}'", source=source)
            keys.add(unit.identity_key)
        return keys

    def _dedupe_existing(self, existing: ConsolidatedDataset, source: str) -> List[ExtractedUnit]:
        """Existing units in order, first occurrence of each key wins"""
        if not isinstance(existing.units, list):
            raise MergeError("existing dataset units is not a list", source=source)

        seen = set()
        result = []
        for unit in existing.units:
            key = unit.identity_key or derive_identity_key(unit.document_type, unit.title, unit.source_url)
            if not key:
                raise MergeError("existing unit without derivable identity", source=source)
            if key in seen:
                logger.warning(f"[{source}] Duplicate stored unit '{key}', keeping first")
                continue
            seen.add(key)
            if key != unit.identity_key:
                unit = replace(unit, identity_key=key)
            result.append(unit)
        return result
