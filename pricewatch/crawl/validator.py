"""
Sanity checks on extracted units before they are persisted
"""

from typing import List, Optional, Tuple

from .config import CrawlConfig
from .exceptions import ValidationError
from .models import ExtractedUnit


class UnitValidator:
    """Rejects empty, truncated or oversized text payloads"""

    def __init__(self, config: Optional[CrawlConfig] = None):
        self.config = config or CrawlConfig()

    def validate(self, unit: ExtractedUnit, source: Optional[str] = None):
        """Raise ValidationError if a successful unit is not fit to store"""
        if not unit.ok:
            return

        if unit.payload is None:
            raise ValidationError(f"{unit.source_url}: no payload", source=source)

        text = unit.payload.get('text') if isinstance(unit.payload, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise ValidationError(f"{unit.source_url}: no text content", source=source)

        length = len(text.strip())
        if length < self.config.min_content_chars:
            raise ValidationError(
                f"{unit.source_url}: only {length} characters extracted "
                f"(minimum {self.config.min_content_chars})",
                source=source,
            )
        if length > self.config.max_content_chars:
            raise ValidationError(
                f"{unit.source_url}: {length} characters exceeds maximum "
                f"{self.config.max_content_chars}",
                source=source,
            )

    def partition(self, units: List[ExtractedUnit], source: Optional[str] = None) -> Tuple[List[ExtractedUnit], List[ValidationError]]:
        """Split units into (valid, errors) without raising"""
        valid = []
        errors = []
        for unit in units:
            try:
                self.validate(unit, source)
            except ValidationError as e:
                errors.append(e)
                continue
            valid.append(unit)
        return valid, errors
