"""
Unit tests for type inference, the widening lattice and schema detection.
"""
import io
import itertools
from unittest.mock import Mock

import pytest

from csv2parquet.core.constants import DATE_PATTERNS
from csv2parquet.core.services.conversion.inference import (
    detect_file_schema,
    detect_schema,
    infer_type,
    is_date_like,
    normalize_header,
    try_parse_bool,
    try_parse_float,
    try_parse_int,
    widen_type,
)
from csv2parquet.core.services.conversion.models import FieldType, SchemaDetectionError

S, I, F, B = FieldType.STRING, FieldType.INT64, FieldType.FLOAT64, FieldType.BOOL


def sample_column(values, start=FieldType.INT64):
    """Fold cell values into a column type the way the detector does."""
    current = start
    for value in values:
        if value.strip():
            current = widen_type(current, infer_type(value))
    return current


class TestWidening:

    @pytest.mark.parametrize("a,b", list(itertools.product(list(FieldType), repeat=2)))
    def test_commutative(self, a, b):
        assert widen_type(a, b) == widen_type(b, a)

    @pytest.mark.parametrize("a", list(FieldType))
    def test_idempotent(self, a):
        assert widen_type(a, a) == a

    @pytest.mark.parametrize("current,new,expected", [
        (I, F, F),
        (F, F, F),
        (I, B, S),
        (F, B, S),
        (B, B, B),
        (S, I, S),
        (S, B, S),
        (F, S, S),
    ])
    def test_join_table(self, current, new, expected):
        assert widen_type(current, new) == expected

    def test_string_is_top(self):
        for t in FieldType:
            assert widen_type(S, t) == S

    def test_result_independent_of_sample_order(self):
        values = ["1", "2.5", "3", "-4"]
        outcomes = {sample_column(list(order)) for order in itertools.permutations(values)}
        assert outcomes == {F}

        values = ["true", "1", "false"]
        outcomes = {sample_column(list(order)) for order in itertools.permutations(values)}
        assert outcomes == {S}


class TestParsers:

    @pytest.mark.parametrize("value,expected", [
        ("true", (True, True)),
        ("FALSE", (True, False)),
        ("True", (True, True)),
        ("yes", (False, None)),
        ("1", (False, None)),
    ])
    def test_try_parse_bool(self, value, expected):
        assert try_parse_bool(value) == expected

    @pytest.mark.parametrize("value,expected", [
        ("42", (True, 42)),
        ("-7", (True, -7)),
        ("+3", (True, 3)),
        ("9223372036854775807", (True, 9223372036854775807)),
        ("9223372036854775808", (False, None)),
        ("1_000", (False, None)),
        ("1.0", (False, None)),
        ("abc", (False, None)),
        ("", (False, None)),
    ])
    def test_try_parse_int(self, value, expected):
        assert try_parse_int(value) == expected

    @pytest.mark.parametrize("value,expected", [
        ("1.5", 1.5),
        ("-0.25", -0.25),
        (".5", 0.5),
        ("3.", 3.0),
        ("1e3", 1000.0),
        ("2.5E-2", 0.025),
    ])
    def test_try_parse_float(self, value, expected):
        ok, parsed = try_parse_float(value)
        assert ok is True
        assert parsed == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["abc", "1.2.3", "1e", "1,5", "1e999", ""])
    def test_try_parse_float_rejects(self, value):
        assert try_parse_float(value) == (False, None)

    def test_try_parse_float_special_tokens(self):
        assert try_parse_float("inf")[0] is True
        assert try_parse_float("-Infinity")[0] is True
        assert try_parse_float("NaN")[0] is True


class TestInferType:

    @pytest.mark.parametrize("value,expected", [
        ("true", B),
        ("False", B),
        ("12", I),
        (" 12 ", I),
        ("-3", I),
        ("1.25", F),
        ("1e5", F),
        ("99999999999999999999", F),
        ("hello", S),
        ("1,000", S),
    ])
    def test_atomic_classification(self, value, expected):
        assert infer_type(value) == expected

    @pytest.mark.parametrize("value", [
        "2024-01-31",
        "31/01/2024",
        "01/31/2024",
        "2024-01-31T10:20:30",
        "2024-01-31 10:20:30",
        "2024-01-31T10:20:30Z",
        "2024-01-31T10:20:30.123+02:00",
    ])
    def test_dates_are_recognised_but_stay_text(self, value):
        assert is_date_like(value)
        assert infer_type(value) == S

    def test_not_date_like(self):
        assert not is_date_like("2024/01/31 noon")
        assert not is_date_like("13/13/2024")
        assert not is_date_like("00/05/2024")

    @pytest.mark.parametrize("value,expected", [
        ("31/01/2024", ["day_month_year"]),
        ("01/31/2024", ["month_day_year"]),
        ("05/06/2024", ["day_month_year", "month_day_year"]),
    ])
    def test_slash_dates_tell_day_and_month_apart(self, value, expected):
        assert [name for name, pattern in DATE_PATTERNS if pattern.match(value)] == expected


class TestNormalizeHeader:

    def test_spaces_and_dots_replaced_and_trimmed(self):
        assert normalize_header(" Name.", 0) == "Name_"
        assert normalize_header("first name", 1) == "first_name"
        assert normalize_header("a.b c", 0) == "a_b_c"

    def test_empty_header_gets_positional_placeholder(self):
        assert normalize_header("", 2) == "column_2"
        assert normalize_header("   ", 0) == "column_0"

    def test_byte_order_mark_stripped(self):
        assert normalize_header("\ufeffid", 0) == "id"
        assert normalize_header("\xef\xbb\xbfid", 0) == "id"

    def test_deterministic(self):
        assert normalize_header("x y", 4) == normalize_header("x y", 4)


class TestDetectSchema:

    def test_basic_schema(self):
        handle = io.StringIO("a,b\n1,foo\n2,bar\n,baz\n")
        schema = detect_schema(handle, ",", sample_rows=3)

        assert schema.names == ["a", "b"]
        assert schema.types == [I, S]

    def test_empty_cells_give_no_evidence(self):
        with_blank = detect_schema(io.StringIO("x\n1\n\"\"\n2\n"), ",", 10)
        without_blank = detect_schema(io.StringIO("x\n1\n2\n"), ",", 10)

        assert with_blank.types == without_blank.types == [I]

    def test_whitespace_only_cells_give_no_evidence(self):
        schema = detect_schema(io.StringIO("x,y\n1,a\n   ,b\n"), ",", 10)
        assert schema.types == [I, S]

    def test_never_sampled_column_stays_int(self):
        schema = detect_schema(io.StringIO("x,y\n,1\n,2\n"), ",", 10)
        assert schema.types == [I, I]

    def test_mixed_int_float(self):
        schema = detect_schema(io.StringIO("v\n1\n2.5\n3\n"), ",", 10)
        assert schema.types == [F]

    def test_bool_and_int_collide_to_string(self):
        schema = detect_schema(io.StringIO("x\ntrue\n1\n"), ",", 10)
        assert schema.types == [S]

    def test_two_booleans_stay_bool(self):
        schema = detect_schema(io.StringIO("flag\ntrue\nFALSE\n"), ",", 10)
        assert schema.types == [B]

    def test_sampling_stops_after_sample_rows(self):
        schema = detect_schema(io.StringIO("v\n1\n2\nnot-a-number\n"), ",", sample_rows=2)
        assert schema.types == [I]

    def test_sampling_stops_at_end_of_input(self):
        schema = detect_schema(io.StringIO("v\n1.5\n"), ",", sample_rows=100)
        assert schema.types == [F]

    def test_header_only_file(self):
        schema = detect_schema(io.StringIO("a,b\n"), ",", 10)
        assert schema.names == ["a", "b"]
        assert schema.types == [I, I]

    def test_short_and_long_rows(self):
        schema = detect_schema(io.StringIO("a,b\n1\n2,x,extra,cells\n"), ",", 10)
        assert schema.types == [I, S]
        assert len(schema) == 2

    def test_custom_delimiter(self):
        schema = detect_schema(io.StringIO("a;b\n1;2,5\n"), ";", 10)
        assert schema.types == [I, S]

    def test_lenient_quotes(self):
        schema = detect_schema(io.StringIO('a,b\n1,say "hi"\n2,"quoted, value"\n'), ",", 10)
        assert schema.types == [I, S]

    def test_bom_header(self):
        schema = detect_schema(io.StringIO("\ufeffid,full name\n1,x\n"), ",", 10)
        assert schema.names == ["id", "full_name"]

    def test_empty_input_raises(self):
        with pytest.raises(SchemaDetectionError):
            detect_schema(io.StringIO(""), ",", 10)

    def test_malformed_row_consumes_sampling_attempt(self, small_field_limit):
        # The first data row breaks the field size limit; it still counts,
        # so only "1" is sampled and "foo" is never seen.
        long_value = "9" * (small_field_limit + 5)
        handle = io.StringIO(f"v\n{long_value}\n1\nfoo\n")
        log = Mock()

        schema = detect_schema(handle, ",", sample_rows=2, log=log)

        assert schema.types == [I]
        assert any("malformed" in str(call) for call in log.debug.call_args_list)

    def test_long_text_cell_counts_as_evidence(self):
        handle = io.StringIO("id,body\n1," + "y" * 200_000 + "\n")

        schema = detect_schema(handle, ",", sample_rows=10)

        assert schema.types == [I, S]

    def test_duplicate_normalized_names_are_not_deduplicated(self):
        # "a b" and "a.b" both normalize to "a_b"; detection keeps both as-is.
        schema = detect_schema(io.StringIO("a b,a.b\n1,x\n"), ",", 10)
        assert schema.names == ["a_b", "a_b"]
        assert schema.duplicate_names() == ["a_b"]

    def test_detect_file_schema(self, csv_file_factory):
        path = csv_file_factory("people.csv", ["id,score,active", "1,2.5,true", "2,3,false"])

        schema = detect_file_schema(path, ",", 100)

        assert schema.describe() == "id:INT64, score:DOUBLE, active:BOOLEAN"

    def test_detect_file_schema_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            detect_file_schema(tmp_path / "missing.csv", ",", 10)
