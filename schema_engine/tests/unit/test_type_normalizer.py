"""Unit tests for schema_engine.converter.type_normalizer."""

from __future__ import annotations

import pytest

from schema_engine.converter.type_normalizer import normalize_type
from schema_engine.models.schema import DataType


class TestSynonyms:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("int", DataType.INTEGER),
            ("INT4", DataType.INTEGER),
            ("bigint", DataType.BIGINT),
            ("bool", DataType.BOOLEAN),
            ("character varying", DataType.VARCHAR),
            ("double precision", DataType.DOUBLE_PRECISION),
            ("float8", DataType.DOUBLE_PRECISION),
            ("timestamptz", DataType.TIMESTAMPTZ),
            ("TIMESTAMP WITH TIME ZONE", DataType.TIMESTAMPTZ),
            ("timestamp without time zone", DataType.TIMESTAMP),
            ("datetime", DataType.TIMESTAMP),
            ("blob", DataType.BYTEA),
            ("jsonb", DataType.JSONB),
            ("uuid", DataType.UUID),
            ("serial8", DataType.BIGSERIAL),
        ],
    )
    def test_maps_vendor_spelling(self, raw: str, expected: DataType):
        resolution = normalize_type(raw)
        assert resolution.data_type == expected
        assert resolution.recognized is True

    def test_whitespace_collapsed(self):
        assert normalize_type("  double    precision ").data_type == DataType.DOUBLE_PRECISION

    def test_trailing_modifiers_ignored(self):
        resolution = normalize_type("INTEGER AUTO_INCREMENT")
        assert resolution.data_type == DataType.INTEGER
        assert resolution.recognized is True


class TestParameters:
    def test_varchar_length_kept(self):
        resolution = normalize_type("VARCHAR(255)")
        assert resolution.data_type == DataType.VARCHAR
        assert resolution.parameters == "255"

    def test_decimal_precision_and_scale(self):
        assert normalize_type("decimal(10, 2)").parameters == "10, 2"

    def test_multiword_type_with_parameters(self):
        resolution = normalize_type("character varying(40)")
        assert resolution.data_type == DataType.VARCHAR
        assert resolution.parameters == "40"

    def test_enum_values_keep_case(self):
        resolution = normalize_type("ENUM('Draft', 'Live')")
        assert resolution.data_type == DataType.ENUM
        assert resolution.parameters == "'Draft', 'Live'"

    def test_parameters_dropped_for_unparameterized_types(self):
        resolution = normalize_type("INT(11)")
        assert resolution.data_type == DataType.INTEGER
        assert resolution.parameters is None


class TestArrays:
    def test_bracket_suffix(self):
        resolution = normalize_type("TEXT[]")
        assert resolution.data_type == DataType.ARRAY
        assert resolution.parameters == "TEXT"

    def test_element_normalized(self):
        assert normalize_type("int[]").parameters == "INTEGER"

    def test_element_with_parameters(self):
        assert normalize_type("varchar(20)[]").parameters == "VARCHAR(20)"

    def test_array_keyword_suffix(self):
        resolution = normalize_type("integer ARRAY")
        assert resolution.data_type == DataType.ARRAY
        assert resolution.parameters == "INTEGER"

    def test_bare_array(self):
        resolution = normalize_type("ARRAY")
        assert resolution.data_type == DataType.ARRAY
        assert resolution.parameters is None

    def test_unknown_element_kept_as_written_but_unrecognized(self):
        resolution = normalize_type("mood[]")
        assert resolution.data_type == DataType.ARRAY
        assert resolution.parameters == "MOOD"
        assert resolution.recognized is False


class TestUnknown:
    def test_unknown_falls_back_to_text(self):
        resolution = normalize_type("FOOBAR")
        assert resolution.data_type == DataType.TEXT
        assert resolution.parameters is None
        assert resolution.recognized is False

    def test_empty_is_text_unrecognized(self):
        resolution = normalize_type("")
        assert resolution.data_type == DataType.TEXT
        assert resolution.recognized is False
