"""Tests for cache key serialization."""

import pytest

from reqcache import make_cache_key, parse_cache_key
from reqcache.keys import arg_matches


class TestMakeCacheKey:
    """Tests for make_cache_key function."""

    def test_compact_json(self) -> None:
        assert make_cache_key((7,)) == "[7]"
        assert make_cache_key((1, "x")) == '[1,"x"]'
        assert make_cache_key(()) == "[]"
        assert make_cache_key((None, True, 1.5)) == "[null,true,1.5]"

    def test_tuples_and_lists_are_equal(self) -> None:
        assert make_cache_key(((1, 2),)) == make_cache_key(([1, 2],))

    def test_mapping_order_is_irrelevant(self) -> None:
        assert make_cache_key(({"b": 1, "a": {"d": 2, "c": 3}},)) == make_cache_key(
            ({"a": {"c": 3, "d": 2}, "b": 1},)
        )

    def test_sequence_order_matters(self) -> None:
        assert make_cache_key((1, 2)) != make_cache_key((2, 1))

    def test_unicode_kept(self) -> None:
        assert make_cache_key(("пост",)) == '["пост"]'

    def test_unserializable_values(self) -> None:
        with pytest.raises(TypeError):
            make_cache_key((print,))

        with pytest.raises(TypeError):
            make_cache_key(({1, 2},))

    def test_cyclic_values(self) -> None:
        cyclic: dict = {}
        cyclic["self"] = cyclic
        with pytest.raises(ValueError):
            make_cache_key((cyclic,))

    def test_non_string_mapping_keys_rejected(self) -> None:
        """Keys that JSON would coerce to strings are refused."""
        with pytest.raises(TypeError, match="Mapping keys must be str"):
            make_cache_key(({1: "x"},))

        with pytest.raises(TypeError, match="Mapping keys must be str"):
            make_cache_key(([{"nested": {(1, 2): "x"}}],))

        with pytest.raises(TypeError, match="Mapping keys must be str"):
            make_cache_key(({1: "a", "b": 2},))

        assert make_cache_key(({"1": "x"},)) == '[{"1":"x"}]'

    def test_shared_values_are_not_cycles(self) -> None:
        shared = {"a": 1}
        assert make_cache_key((shared, [shared])) == '[{"a":1},[{"a":1}]]'

    def test_non_finite_numbers(self) -> None:
        with pytest.raises(ValueError):
            make_cache_key((float("nan"),))


class TestParseCacheKey:
    """Tests for parse_cache_key function."""

    def test_decodes_arguments(self) -> None:
        assert parse_cache_key('[1,"x",{"a":[2]}]') == [1, "x", {"a": [2]}]

    def test_rejects_non_list(self) -> None:
        with pytest.raises(ValueError, match="Not a cache key"):
            parse_cache_key('{"a":1}')


class TestArgMatches:
    """Tests for arg_matches function."""

    def test_none_index_matches_all(self) -> None:
        assert arg_matches("[1]", None, "anything")

    def test_matches_by_position(self) -> None:
        key = make_cache_key((1, "x"))
        assert arg_matches(key, 1, "x")
        assert arg_matches(key, 0, 1)
        assert not arg_matches(key, 1, "y")

    def test_structural_match(self) -> None:
        key = make_cache_key(({"a": 1, "b": [1, 2]},))
        assert arg_matches(key, 0, {"b": (1, 2), "a": 1})

    def test_type_sensitive(self) -> None:
        key = make_cache_key((1,))
        assert not arg_matches(key, 0, "1")

    def test_out_of_range(self) -> None:
        assert not arg_matches("[1]", 1, None)
        assert not arg_matches("[]", 0, None)
