"""
Tests for extracted unit sanity checks
"""

import pytest

from pricewatch.crawl.config import CrawlConfig
from pricewatch.crawl.exceptions import ValidationError
from pricewatch.crawl.models import DocumentReference, ExtractedUnit
from pricewatch.crawl.validator import UnitValidator


def text_unit(text):
    return ExtractedUnit.create("https://x.test/a.pdf", {'text': text}, document_type="Tariffs")


class TestUnitValidator:
    def setup_method(self):
        self.validator = UnitValidator(CrawlConfig(min_content_chars=10, max_content_chars=50))

    def test_accepts_text_within_bounds(self):
        self.validator.validate(text_unit("Monthly fee 10 EUR"))

    @pytest.mark.parametrize("payload", [None, {}, {'text': "   "}, {'text': 42}, "raw string"])
    def test_rejects_missing_text(self, payload):
        unit = ExtractedUnit.create("https://x.test/a.pdf", payload, document_type="Tariffs")

        with pytest.raises(ValidationError):
            self.validator.validate(unit, "acme")

    def test_rejects_truncated_text(self):
        with pytest.raises(ValidationError) as exc_info:
            self.validator.validate(text_unit("   short    "), "acme")

        assert "only 5 characters" in exc_info.value.message
        assert exc_info.value.source == "acme"

    def test_rejects_oversized_text(self):
        with pytest.raises(ValidationError):
            self.validator.validate(text_unit("x" * 51))

    def test_failed_units_are_not_validated(self):
        unit = ExtractedUnit.failed(DocumentReference(url="https://x.test/a.pdf"), "HTTP 404")

        self.validator.validate(unit)

    def test_partition(self):
        good = text_unit("Monthly fee 10 EUR")
        bad = text_unit("tiny")

        valid, errors = self.validator.partition([bad, good], "acme")

        assert valid == [good]
        assert len(errors) == 1
        assert isinstance(errors[0], ValidationError)
