"""Unit tests for schema weights and scoring statistics."""

import math

import pytest

from docsite_search.search.schema import Schema, TextField, create_default_schema
from docsite_search.search.stats import (
    MAX_LENGTH_RATIO,
    FieldLengthStats,
    calculate_idf,
    compute_field_length_stats,
    saturated_tf,
)


pytestmark = pytest.mark.unit


def test_default_schema_weights_title_ten_times_body() -> None:
    schema = create_default_schema()

    assert schema.field_names == ("title", "description", "body")
    assert schema.get_boost("title") == 10.0
    assert schema.get_boost("description") == 2.0
    assert schema.get_boost("body") == 1.0
    assert schema.get_boost("title") / schema.get_boost("body") == 10.0


def test_default_schema_accepts_custom_weights() -> None:
    schema = create_default_schema(title_weight=3.0, description_weight=0.0, body_weight=1.5)

    assert [f.boost for f in schema] == [3.0, 0.0, 1.5]


def test_unknown_field_has_zero_boost() -> None:
    assert create_default_schema().get_boost("section") == 0.0
    assert "section" not in create_default_schema()


def test_schema_round_trips_through_dict() -> None:
    schema = Schema(fields=(TextField("title", boost=4.0), TextField("body")))

    assert Schema.from_dict(schema.to_dict()) == schema


def test_schema_rejects_duplicates_and_negative_boosts() -> None:
    with pytest.raises(ValueError, match="Duplicate"):
        Schema(fields=(TextField("body"), TextField("body")))
    with pytest.raises(ValueError, match="boost"):
        TextField("body", boost=-1.0)
    with pytest.raises(ValueError, match="at least one"):
        Schema(fields=())


def test_field_length_stats_average() -> None:
    stats = compute_field_length_stats({"body": {0: 3, 1: 5}, "title": {}})

    assert stats["body"] == FieldLengthStats(field="body", total_terms=8, document_count=2)
    assert stats["body"].average_length == 4.0
    assert stats["title"].average_length == 0.0


def test_idf_is_positive_even_for_common_terms() -> None:
    rare = calculate_idf(1, 10)
    common = calculate_idf(10, 10)

    assert rare > common > 0
    assert calculate_idf(1, 0) == 0.0


def test_idf_matches_shifted_bm25_formula() -> None:
    expected = math.log((10 - 2 + 0.5) / (2 + 0.5) + 1e-6) + 1.0

    assert calculate_idf(2, 10) == pytest.approx(expected)


def test_saturated_tf_grows_sublinearly() -> None:
    one = saturated_tf(1, 10, 10.0)
    two = saturated_tf(2, 10, 10.0)
    ten = saturated_tf(10, 10, 10.0)

    assert 0 < one < two < ten < 1.2 + 1
    assert two < 2 * one
    assert saturated_tf(0, 10, 10.0) == 0.0


def test_saturated_tf_penalizes_long_fields_up_to_cap() -> None:
    short = saturated_tf(1, 5, 10.0)
    long = saturated_tf(1, 40, 10.0)
    very_long = saturated_tf(1, 4000, 10.0)

    assert short > long
    assert very_long == pytest.approx(saturated_tf(1, int(10 * MAX_LENGTH_RATIO), 10.0))
