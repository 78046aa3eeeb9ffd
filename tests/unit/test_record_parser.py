"""
tests/unit/test_record_parser.py

Line-level parsing of OE flat files: tab and fixed-width layouts, typed
conversion, missing-value tokens and the structural failures that abort a load.
"""
import pytest

from oews_collector.bls import record_parser as rp
from oews_collector.bls.record_parser import FieldLayout, ParseFailure, parse_line
from oews_collector.exceptions import StructuralParseError


def _fixed_width_series_line(title: str = "Annual mean wage for Chief Executives") -> str:
    prefix = (
        "OEUN000000000000011101103".ljust(30)
        + "U" + "N" + "000000" + "111011" + "03" + "00" + "0000000" + "000000"
    )
    suffix = "".ljust(10) + "2019" + "A01" + "2023" + "A01"
    return prefix + title + suffix


class TestTabLayout:

    def test_data_line_is_typed(self):
        record = parse_line("OEUN000000000000011101103\t2023\tA01\t  246440\t\n", rp.DATA_SHAPE)
        assert record == {
            "series_id": "OEUN000000000000011101103",
            "year": 2023,
            "period": "A01",
            "value": 246440.0,
            "footnote_codes": None,
        }

    def test_dash_value_is_missing(self):
        record = parse_line("S1\t2023\tA01\t-\t5", rp.DATA_SHAPE)
        assert record["value"] is None
        assert record["footnote_codes"] == "5"

    def test_trailing_optional_field_may_be_absent(self):
        record = parse_line("S1\t2023\tA01\t85000", rp.DATA_SHAPE)
        assert record["footnote_codes"] is None

    def test_carriage_return_is_stripped(self):
        record = parse_line("11\tManagement\t2\tT\t1\r\n", rp.INDUSTRY_SHAPE)
        assert record["sort_sequence"] == 1
        assert record["selectable"] is True

    def test_too_few_fields_raises(self):
        with pytest.raises(StructuralParseError):
            parse_line("S1\t2023", rp.DATA_SHAPE)

    def test_non_integer_year_is_a_parse_failure(self):
        result = parse_line("S1\t20x3\tA01\t1", rp.DATA_SHAPE)
        assert isinstance(result, ParseFailure)
        assert result.field == "year"
        assert result.value == "20x3"

    @pytest.mark.parametrize("year", ["--2023", "2023²", "+2023", "2 023"])
    def test_malformed_integer_year_is_a_parse_failure(self, year):
        result = parse_line(f"S1\t{year}\tA01\t1\t", rp.DATA_SHAPE)
        assert isinstance(result, ParseFailure)
        assert result.field == "year"
        assert result.reason == "is not an integer"

    @pytest.mark.parametrize("value", ["nan", "NaN", "inf", "-Infinity"])
    def test_non_finite_value_is_a_parse_failure(self, value):
        result = parse_line(f"S1\t2023\tA01\t{value}\t", rp.DATA_SHAPE)
        assert isinstance(result, ParseFailure)
        assert result.field == "value"
        assert result.reason == "is not a finite number"

    def test_non_numeric_value_is_a_parse_failure(self):
        result = parse_line("S1\t2023\tA01\tabc", rp.DATA_SHAPE)
        assert isinstance(result, ParseFailure)
        assert result.field == "value"

    def test_boolean_flag_accepts_only_t_and_f(self):
        result = parse_line("11\tManagement\t2\tY\t1", rp.INDUSTRY_SHAPE)
        assert isinstance(result, ParseFailure)
        assert result.field == "selectable"

    def test_non_empty_extra_fields_are_a_parse_failure(self):
        result = parse_line("S1\t2023\tA01\t1\t\tsurprise", rp.DATA_SHAPE)
        assert isinstance(result, ParseFailure)
        assert result.field == "<extra>"

    def test_empty_extra_fields_are_ignored(self):
        record = parse_line("S1\t2023\tA01\t1\t\t\t", rp.DATA_SHAPE)
        assert record["value"] == 1.0

    def test_empty_optional_string_becomes_none(self):
        record = parse_line("111011\tChief Executives\t\t3\tT\t10", rp.OCCUPATION_SHAPE)
        assert record["occupation_description"] is None


class TestFixedWidthLayout:

    def test_series_line_is_split_by_offsets(self):
        record = parse_line(_fixed_width_series_line(), rp.SERIES_SHAPE, FieldLayout.FIXED_WIDTH)
        assert record["series_id"] == "OEUN000000000000011101103"
        assert record["occupation_code"] == "111011"
        assert record["area_code"] == "0000000"
        assert record["series_title"] == "Annual mean wage for Chief Executives"
        assert record["footnote_codes"] is None
        assert record["begin_year"] == 2019
        assert record["end_period"] == "A01"

    def test_title_width_is_free(self):
        short = parse_line(_fixed_width_series_line("X"), rp.SERIES_SHAPE, FieldLayout.FIXED_WIDTH)
        assert short["series_title"] == "X"
        assert short["end_year"] == 2023

    def test_short_line_raises(self):
        with pytest.raises(StructuralParseError):
            parse_line("OEUN0000", rp.SERIES_SHAPE, FieldLayout.FIXED_WIDTH)

    def test_shape_without_fixed_width_layout_raises(self):
        with pytest.raises(StructuralParseError):
            parse_line("S1 2023 A01 1", rp.DATA_SHAPE, FieldLayout.FIXED_WIDTH)


class TestHeader:

    def test_tab_header_selects_tab_layout(self):
        header = "series_id\tyear\tperiod\tvalue\tfootnote_codes\n"
        assert rp.detect_layout(header) is FieldLayout.TAB
        assert rp.split_header(header, FieldLayout.TAB) == ["series_id", "year", "period", "value", "footnote_codes"]

    def test_space_header_selects_fixed_width(self):
        header = "series_id       seasonal areatype_code industry_code"
        assert rp.detect_layout(header) is FieldLayout.FIXED_WIDTH
        assert rp.split_header(header, FieldLayout.FIXED_WIDTH)[:2] == ["series_id", "seasonal"]
