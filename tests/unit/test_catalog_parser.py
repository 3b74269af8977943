"""
Unit tests for the catalog spreadsheet parser.

Run: pytest tests/unit/test_catalog_parser.py -v
"""

from io import BytesIO
from unittest.mock import MagicMock, patch
import pytest

from parsers.catalog_parser import (
    parse_catalog_excel,
    parse_uint,
    parse_bool,
    has_duplicates,
    CatalogParseResult,
)
from models.catalog import CandidateUpdate, ProductRecord, RowError
from models.product import RowErrorResponse
from exceptions import (
    FailedToReadError,
    EmptyDocumentError,
    EmptySheetError,
    InvalidOfferIDsError,
    DuplicateOfferIDsError,
)

from tests.factories import build_catalog_sheet


# ===================
# VALID SHEETS
# ===================

class TestParseValidSheet:
    """Tests for sheets without problems."""

    def test_parses_all_rows(self):
        """Should return one candidate per row and no errors."""
        # Arrange
        file = build_catalog_sheet([
            [1, "head", 10, 1, "true"],
            [2, "tail", 20, 0, "false"],
            [3, "body", 30, 5, "1"],
        ])

        # Act
        result = parse_catalog_excel(file)

        # Assert
        assert isinstance(result, CatalogParseResult)
        assert result.errors is None
        assert result.success
        assert result.candidates == [
            CandidateUpdate(ProductRecord(offer_id=1, name="head", price=10, quantity=1), True),
            CandidateUpdate(ProductRecord(offer_id=2, name="tail", price=20, quantity=0), False),
            CandidateUpdate(ProductRecord(offer_id=3, name="body", price=30, quantity=5), True),
        ]

    def test_name_is_trimmed(self):
        """Should strip surrounding whitespace from names."""
        file = build_catalog_sheet([[1, "  head  ", 10, 1, "true"]])

        result = parse_catalog_excel(file)

        assert result.candidates[0].product.name == "head"

    def test_only_first_sheet_is_read(self):
        """Should ignore sheets after the first one."""
        file = build_catalog_sheet(
            [[1, "head", 10, 1, "true"]],
            extra_sheets={"Other": [["junk", "x", "y", "z", "w"]]},
        )

        result = parse_catalog_excel(file)

        assert len(result.candidates) == 1
        assert result.errors is None

    def test_name_of_100_characters_is_accepted(self):
        """Should accept names at the length limit, counted in characters."""
        file = build_catalog_sheet([[1, "é" * 100, 10, 1, "true"]])

        result = parse_catalog_excel(file)

        assert result.errors is None
        assert result.candidates[0].product.name == "é" * 100

    def test_typed_cells_are_parsed(self):
        """Should accept numeric and boolean cells, not only text."""
        file = build_catalog_sheet([[1, "head", 10, 1, True]], as_text=False)

        result = parse_catalog_excel(file)

        assert result.errors is None
        assert result.candidates == [
            CandidateUpdate(ProductRecord(offer_id=1, name="head", price=10, quantity=1), True)
        ]


# ===================
# FATAL ERRORS
# ===================

class TestParseFatalErrors:
    """Tests for errors that reject the whole sheet."""

    def test_unreadable_file_raises(self):
        """Should raise FailedToReadError for non-spreadsheet bytes."""
        with pytest.raises(FailedToReadError) as exc_info:
            parse_catalog_excel(BytesIO(b"this is not a spreadsheet"))

        assert exc_info.value.message == "cannot read document"
        assert exc_info.value.status_code == 400

    def test_workbook_without_sheets_raises(self):
        """Should raise EmptyDocumentError when the workbook has no sheets."""
        with patch(
            "parsers.catalog_parser.pd.ExcelFile",
            return_value=MagicMock(sheet_names=[])
        ):
            with pytest.raises(EmptyDocumentError) as exc_info:
                parse_catalog_excel(BytesIO(b"workbook"))

        assert exc_info.value.status_code == 400
        assert exc_info.value.code == "EMPTY_DOC"

    def test_empty_sheet_raises(self):
        """Should raise EmptySheetError when the first sheet has no rows."""
        file = build_catalog_sheet([])

        with pytest.raises(EmptySheetError):
            parse_catalog_excel(file)

    def test_non_numeric_offer_id_raises(self):
        """Should reject the sheet when any offer_id is not a number."""
        file = build_catalog_sheet([
            [1, "head", 10, 1, "true"],
            ["abc", "tail", 20, 1, "true"],
        ])

        with pytest.raises(InvalidOfferIDsError) as exc_info:
            parse_catalog_excel(file)

        assert exc_info.value.message == "offer_id column has invalid value(s)"

    def test_negative_offer_id_raises(self):
        """Should reject signed offer IDs."""
        file = build_catalog_sheet([["-1", "head", 10, 1, "true"]])

        with pytest.raises(InvalidOfferIDsError):
            parse_catalog_excel(file)

    def test_duplicate_offer_ids_raise(self):
        """Should reject the sheet when an offer_id repeats."""
        file = build_catalog_sheet([
            [7, "head", 10, 1, "true"],
            [8, "tail", 20, 1, "true"],
            [7, "body", 30, 1, "false"],
        ])

        with pytest.raises(DuplicateOfferIDsError) as exc_info:
            parse_catalog_excel(file)

        assert exc_info.value.status_code == 409

    def test_duplicates_checked_before_row_errors(self):
        """Should reject duplicates even when the duplicate rows are otherwise invalid."""
        file = build_catalog_sheet([
            [7, "head", "bad", 1, "true"],
            [7, "tail", 20, "bad", "true"],
        ])

        with pytest.raises(DuplicateOfferIDsError):
            parse_catalog_excel(file)

    def test_invalid_ids_checked_before_duplicates(self):
        """Should report invalid IDs when the column has both problems."""
        file = build_catalog_sheet([
            [7, "head", 10, 1, "true"],
            [7, "tail", 20, 1, "true"],
            ["x", "body", 30, 1, "true"],
        ])

        with pytest.raises(InvalidOfferIDsError):
            parse_catalog_excel(file)


# ===================
# ROW ERRORS
# ===================

class TestParseRowErrors:
    """Tests for per-row errors that do not abort parsing."""

    def test_one_error_per_bad_field(self):
        """Should report every bad field of a row, in column order."""
        # Arrange
        file = build_catalog_sheet([
            [1, "head", 10, 1, "true"],
            [2, "tail", "0-40", "-666", "maybe"],
        ])

        # Act
        result = parse_catalog_excel(file)

        # Assert
        assert [c.product.offer_id for c in result.candidates] == [1]
        assert result.errors == [
            RowError(row=2, field="price", message='parsing "0-40": invalid syntax'),
            RowError(row=2, field="quantity", message='parsing "-666": invalid syntax'),
            RowError(row=2, field="available", message='parsing "maybe": invalid syntax'),
        ]

    def test_too_long_name_reported(self):
        """Should reject names over 100 characters with a row error."""
        file = build_catalog_sheet([[1, "x" * 101, 10, 1, "true"]])

        result = parse_catalog_excel(file)

        assert result.candidates == []
        assert result.errors == [RowError(row=1, field="name", message="too long name")]
        assert not result.has_data

    def test_rows_are_numbered_from_one(self):
        """Should number rows the way a spreadsheet does."""
        file = build_catalog_sheet([
            [1, "head", 10, 1, "true"],
            [2, "tail", 20, 1, "true"],
            [3, "body", "abc", 1, "true"],
        ])

        result = parse_catalog_excel(file)

        assert result.errors[0].row == 3

    def test_error_dict_format(self):
        """Should serialize row errors with the API field names."""
        file = build_catalog_sheet([[1, "head", 10, 1, "yes"]])

        result = parse_catalog_excel(file)

        wire = [
            RowErrorResponse.from_row_error(e).model_dump(by_alias=True, exclude_none=True)
            for e in result.errors
        ]
        assert wire == [
            {"row": 1, "field": "available", "errMsg": 'parsing "yes": invalid syntax'}
        ]


# ===================
# HELPER FUNCTIONS
# ===================

class TestParseUint:
    """Tests for parse_uint()."""

    @pytest.mark.parametrize("value,expected", [
        ("0", 0),
        ("42", 42),
        ("007", 7),
        ("18446744073709551615", 2**64 - 1),
    ])
    def test_valid_values(self, value, expected):
        assert parse_uint(value) == expected

    @pytest.mark.parametrize("value", ["", "-1", "+1", " 1", "1.5", "1e3", "abc", "١٢"])
    def test_invalid_syntax(self, value):
        with pytest.raises(ValueError, match="invalid syntax"):
            parse_uint(value)

    def test_out_of_range(self):
        with pytest.raises(ValueError, match="value out of range"):
            parse_uint("18446744073709551616")


class TestParseBool:
    """Tests for parse_bool()."""

    @pytest.mark.parametrize("value", ["1", "t", "T", "TRUE", "true", "True"])
    def test_true_values(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", ["0", "f", "F", "FALSE", "false", "False"])
    def test_false_values(self, value):
        assert parse_bool(value) is False

    @pytest.mark.parametrize("value", ["", "yes", "no", "tRuE", " true"])
    def test_invalid_values(self, value):
        with pytest.raises(ValueError):
            parse_bool(value)


class TestHasDuplicates:
    """Tests for has_duplicates()."""

    def test_empty(self):
        assert has_duplicates([]) is False

    def test_unique(self):
        assert has_duplicates([3, 1, 2]) is False

    def test_repeated(self):
        assert has_duplicates([3, 1, 3]) is True
