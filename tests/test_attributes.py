import math

import pytest

from biometa.engine.attributes import AttributeKind, AttributesNormalizer, AttributeValue, attributes_to_python
from biometa.utils.error_codes import ErrorCode


class TestAttributesNormalizer:
    """Normalization of open attribute maps into AttributeValue variants."""

    def setup_method(self):
        self.normalizer = AttributesNormalizer()

    def test_scalars(self):
        normalized, issues = self.normalizer.normalize({"tissue": "liver", "volume": 2.5, "count": 3, "fasted": True})
        assert issues == []
        assert normalized["tissue"] == AttributeValue(AttributeKind.TEXT, "liver")
        assert normalized["volume"] == AttributeValue(AttributeKind.NUMBER, 2.5)
        assert normalized["count"] == AttributeValue(AttributeKind.NUMBER, 3)
        assert normalized["fasted"].kind is AttributeKind.BOOLEAN

    def test_bool_is_not_a_number(self):
        normalized, _ = self.normalizer.normalize({"flag": False})
        assert normalized["flag"] == AttributeValue(AttributeKind.BOOLEAN, False)

    def test_text_is_kept_verbatim(self):
        normalized, _ = self.normalizer.normalize({"note": "  spaced \t"})
        assert normalized["note"].value == "  spaced \t"

    def test_nested_values(self):
        raw = {"labs": [{"name": "glucose", "value": 5.4, "unit": "mmol/L"}, {"name": "hba1c", "value": 41}]}
        normalized, issues = self.normalizer.normalize(raw)
        assert issues == []
        labs = normalized["labs"]
        assert labs.kind is AttributeKind.LIST
        assert labs.value[0].kind is AttributeKind.MAPPING
        assert attributes_to_python(normalized) == raw

    def test_unsupported_values_report_their_path(self):
        raw = {"labs": [{"unit": "mg"}, {"unit": None}], "blob": b"\x00", "ok": "yes"}
        normalized, issues = self.normalizer.normalize(raw, "S1")
        assert {issue.field_path for issue in issues} == {"attributes.labs[1].unit", "attributes.blob"}
        assert all(issue.error_code == ErrorCode.UNSUPPORTED_ATTRIBUTE_VALUE for issue in issues)
        assert all(issue.record_id == "S1" for issue in issues)
        assert "ok" in normalized

    @pytest.mark.parametrize("value", [math.nan, math.inf, object(), {1, 2}])
    def test_other_shapes_are_rejected(self, value):
        normalized, issues = self.normalizer.normalize({"x": value})
        assert normalized == {}
        assert len(issues) == 1

    def test_keys_must_be_non_empty_text(self):
        _, issues = self.normalizer.normalize({"": "a", 3: "b", "nested": {"": 1}})
        assert len(issues) == 3
        assert {issue.field_path for issue in issues} == {"attributes", "attributes.nested"}

    def test_idempotent(self):
        raw = {"labs": [{"value": 5.4}], "tissue": "liver", "flags": [True, "x"]}
        once, _ = self.normalizer.normalize(raw)
        twice, issues = self.normalizer.normalize(once)
        assert issues == []
        assert twice == once

    def test_empty(self):
        assert self.normalizer.normalize({}) == ({}, [])
