"""
tests/unit/test_schema_validator.py

All-or-nothing batch validation and API body validation.
"""
import pytest

from oews_collector.bls.schemas import DataRow, NaicsRow, SocRow, TimeseriesResponse
from oews_collector.bls.schema_validator import validate_batch, validate_model
from oews_collector.exceptions import ResponseValidationError, ValidationError


def _data_row(**overrides):
    row = {"series_id": "S1", "year": 2023, "period": "A01", "value": 85000.0, "footnote_codes": None}
    row.update(overrides)
    return row


class TestValidateBatch:

    def test_valid_batch_is_returned_unchanged(self):
        rows = [_data_row(), _data_row(year=2022)]
        assert validate_batch(rows, DataRow) is rows

    def test_every_violation_is_reported(self):
        rows = [_data_row(), _data_row(period="Z99"), _data_row(year=1800, series_id="")]
        with pytest.raises(ValidationError) as exc_info:
            validate_batch(rows, DataRow, context="oe.data batch 1")

        err = exc_info.value
        assert len(err.errors) == 3
        assert any(e.startswith("[1].period") for e in err.errors)
        assert any(e.startswith("[2].year") for e in err.errors)
        assert any(e.startswith("[2].series_id") for e in err.errors)
        assert err.context == "oe.data batch 1"
        assert "oe.data batch 1" in str(err)

    def test_unknown_fields_are_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_batch([_data_row(extra="x")], DataRow)
        assert "extra" in exc_info.value.errors[0]

    def test_strings_are_not_coerced(self):
        with pytest.raises(ValidationError):
            validate_batch([_data_row(year="2023")], DataRow)

    def test_missing_value_is_allowed(self):
        validate_batch([_data_row(value=None)], DataRow)

    @pytest.mark.parametrize("code", ["11-1011", "00-0000"])
    def test_soc_code_accepts_dashed_form(self, code):
        validate_batch([{"soc_code": code, "title": "x"}], SocRow)

    @pytest.mark.parametrize("code", ["111011", "11-101", "ab-cdef"])
    def test_soc_code_rejects_other_forms(self, code):
        with pytest.raises(ValidationError):
            validate_batch([{"soc_code": code, "title": "x"}], SocRow)

    def test_naics_level_is_bounded(self):
        with pytest.raises(ValidationError):
            validate_batch([{"naics_code": "1111111", "title": "x", "level": 7, "parent_code": "111111"}], NaicsRow)


class TestValidateModel:

    def test_successful_response_requires_results(self):
        with pytest.raises(ResponseValidationError):
            validate_model(
                {"status": "REQUEST_SUCCEEDED", "message": []},
                TimeseriesResponse,
                "timeseries",
                error_cls=ResponseValidationError,
            )

    def test_failed_response_without_results_is_valid(self):
        response = validate_model(
            {"status": "REQUEST_FAILED", "message": ["Invalid key"]}, TimeseriesResponse
        )
        assert response.Results is None

    def test_unknown_status_is_rejected(self):
        with pytest.raises(ValidationError):
            validate_model({"status": "MAYBE"}, TimeseriesResponse)
