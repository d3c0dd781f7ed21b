"""Tests for the schema validation gate."""

import pytest

from patent_ops.core.errors import ValidationError
from patent_ops.core.schemas import (
    BibliographicData,
    ClassificationOptionsSchema,
    ClassificationResponse,
    Claims,
    FamilyMemberList,
    PatentReferenceSchema,
    SearchOptionsSchema,
)
from patent_ops.core.types import ClassificationOptions, PatentReference, SearchOptions
from patent_ops.core.validation import validate_input, validate_output


class TestValidateInput:
    def test_valid_reference(self):
        reference = PatentReference(kind="application", format="docdb", number="EP1000000")

        valid = validate_input(PatentReferenceSchema, reference)

        assert valid.kind == "application"
        assert valid.number == "EP1000000"

    def test_invalid_kind_names_the_field(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_input(
                PatentReferenceSchema,
                {"kind": "invalid-kind", "format": "docdb", "number": "EP1000000"},
            )

        assert exc_info.value.fields == ["kind"]
        assert exc_info.value.details["kind"] == "invalid-kind"

    def test_all_violations_are_collected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_input(
                PatentReferenceSchema, {"kind": "nope", "format": "isbn", "number": ""}
            )

        assert sorted(exc_info.value.fields) == ["format", "kind", "number"]

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_input(SearchOptionsSchema, {"range": "1-25", "sort": "date"})

        assert exc_info.value.fields == ["sort"]

    def test_options_default_to_empty(self):
        assert validate_input(SearchOptionsSchema, None).model_dump() == {
            "range": None,
            "constituent": None,
        }

    def test_option_dataclasses(self):
        search = validate_input(SearchOptionsSchema, SearchOptions(range="1-25", constituent="biblio"))
        classification = validate_input(
            ClassificationOptionsSchema, ClassificationOptions(ancestors=True, depth="all")
        )

        assert search.constituent == "biblio"
        assert classification.depth == "all"

    def test_depth_enum_enforced(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_input(ClassificationOptionsSchema, {"depth": "5"})

        assert exc_info.value.fields == ["depth"]


class TestValidateOutput:
    def test_strict_types(self):
        """Records are not coerced: a number where text is declared fails."""
        candidate = {"independent": [1], "dependent": []}

        with pytest.raises(ValidationError) as exc_info:
            validate_output(Claims, candidate)

        assert exc_info.value.fields == ["independent.0"]
        assert exc_info.value.details is candidate
        assert exc_info.value.message == "Upstream response does not match Claims"

    def test_missing_field(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_output(BibliographicData, {"title": "x"})

        assert "abstract" in exc_info.value.fields

    def test_class_alias(self):
        record = validate_output(
            ClassificationResponse,
            {
                "status": 200,
                "data": {"class": "H04W", "title": "t", "description": "", "subclasses": []},
            },
        )

        assert record.data.class_ == "H04W"
        assert record.model_dump(by_alias=True)["data"]["class"] == "H04W"

    def test_record_list(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_output(FamilyMemberList, [{"publication_number": "EP1A1"}])

        assert exc_info.value.message == "Upstream response does not match record list"
        assert all(field.startswith("0.") for field in exc_info.value.fields)
