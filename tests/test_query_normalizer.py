"""Tests for request parameter normalization and search term sanitizing."""

from __future__ import annotations

import re

import pydantic
import pytest

from app.services.query_normalizer import (
    MAX_SEARCH_LENGTH,
    MAX_SEARCH_TOKENS,
    NormalizedQuery,
    SortMode,
    build_fts_query,
    normalize_query,
    optional_filter,
    parse_clamped,
    parse_sort_mode,
    parse_user_id,
    tokenize_search_term,
)

SAFE_TOKEN_RE = re.compile(r"^[\w-]+\*$")


# ── parse_clamped ────────────────────────────────────────────


class TestParseClamped:
    @pytest.mark.parametrize("value,expected", [
        ("0", 1),
        ("-5", 1),
        ("101", 100),
        ("100000", 100),
        (250, 100),
        ("1", 1),
        ("42", 42),
        ("12.9", 12),
        (" 7 ", 7),
        ("1e3", 100),
        ("+5", 5),
        (".5", 1),
    ])
    def test_limit_is_clamped(self, value, expected):
        assert parse_clamped(value, 1, 100, 20) == expected

    @pytest.mark.parametrize("value", [
        None, "", "   ", "abc", "12abc", "NaN", "inf", "-Infinity",
        float("nan"), float("inf"), True, [], {"limit": 5},
        "1_0", "१२", "١٢",
    ])
    def test_non_numeric_falls_back_to_default(self, value):
        assert parse_clamped(value, 1, 100, 20) == 20

    @pytest.mark.parametrize("value,expected", [
        ("-1", 0),
        ("10001", 10000),
        ("9999", 9999),
        ("oops", 0),
    ])
    def test_offset_is_clamped(self, value, expected):
        assert parse_clamped(value, 0, 10000, 0) == expected

    def test_always_returns_int(self):
        assert isinstance(parse_clamped(3.7, 1, 100, 20), int)


# ── simple fields ────────────────────────────────────────────


class TestSimpleFields:
    @pytest.mark.parametrize("value,expected", [
        ("new", SortMode.NEW),
        ("popular", SortMode.POPULAR),
        ("relevance", SortMode.RELEVANCE),
        (SortMode.POPULAR, SortMode.POPULAR),
        ("POPULAR", SortMode.NEW),
        ("rank", SortMode.NEW),
        ("", SortMode.NEW),
        (None, SortMode.NEW),
    ])
    def test_sort_mode(self, value, expected):
        assert parse_sort_mode(value) == expected

    def test_empty_filter_means_no_filter(self):
        assert optional_filter("") is None
        assert optional_filter(None) is None

    def test_filter_truncated_to_100_chars(self):
        assert optional_filter("м" * 150) == "м" * 100

    @pytest.mark.parametrize("value,expected", [
        (7, 7),
        ("7", 7),
        (" 12 ", 12),
        (True, None),
        ("abc", None),
        ("-3", None),
        ("²", None),
        ("१२", None),
        ("1_0", None),
        (None, None),
    ])
    def test_user_id(self, value, expected):
        assert parse_user_id(value) == expected


# ── search term sanitizing ───────────────────────────────────


class TestSearchTerm:
    def test_single_token_gets_wildcard(self):
        assert build_fts_query("osm") == "osm*"

    def test_tokens_joined_with_single_space(self):
        assert build_fts_query("  Osmosis \t\n lecture  ") == "Osmosis* lecture*"

    def test_hyphen_and_underscore_kept(self):
        assert build_fts_query("e-learning snake_case") == "e-learning* snake_case*"

    def test_unicode_letters_kept(self):
        assert build_fts_query("Фотосинтез қазақ") == "Фотосинтез* қазақ*"

    def test_nfc_composition(self):
        decomposed = "cafe\u0301"
        assert build_fts_query(decomposed) == "caf\u00e9*"

    def test_control_characters_removed(self):
        assert build_fts_query("bio\x00logy\x07") == "biology*"

    @pytest.mark.parametrize("term", [
        '"; DROP TABLE materials; --',
        "NEAR(osmosis lecture)",
        'title:"unbalanced',
        "a OR b AND NOT c",
        "^start (x* + y)",
        "{title description}: cell",
    ])
    def test_special_syntax_is_neutralized(self, term):
        query = build_fts_query(term)
        assert query
        for token in query.split(" "):
            assert SAFE_TOKEN_RE.match(token), token

    def test_only_punctuation_disables_text_search(self):
        assert build_fts_query('"(*)": ;') == ""
        assert build_fts_query("") == ""
        assert build_fts_query(None) == ""

    def test_at_most_six_tokens(self):
        tokens = tokenize_search_term("one two three four five six seven eight")
        assert len(tokens) == MAX_SEARCH_TOKENS
        assert tokens == ("one", "two", "three", "four", "five", "six")

    def test_empty_tokens_do_not_count_towards_limit(self):
        tokens = tokenize_search_term("! one ? two ... three four five six seven")
        assert tokens == ("one", "two", "three", "four", "five", "six")

    def test_truncated_before_tokenizing(self):
        term = "a" * (MAX_SEARCH_LENGTH - 2) + " bcdef"
        assert tokenize_search_term(term) == ("a" * (MAX_SEARCH_LENGTH - 2), "b")


# ── normalize_query ──────────────────────────────────────────


class TestNormalizeQuery:
    def test_defaults(self):
        query = normalize_query()
        assert query == NormalizedQuery(
            search_term="",
            fts_query="",
            subject=None,
            grade=None,
            type=None,
            limit=20,
            offset=0,
            sort_mode=SortMode.NEW,
            favorite_of_user_id=None,
        )

    def test_full_request(self):
        query = normalize_query(
            q="osmosis lecture",
            subject="Биология",
            grade="7",
            type="Конспект",
            limit="50",
            offset="40",
            sort="relevance",
            favorite_of_user_id="3",
        )
        assert query.fts_query == "osmosis* lecture*"
        assert query.search_term == "osmosis lecture"
        assert (query.subject, query.grade, query.type) == ("Биология", "7", "Конспект")
        assert (query.limit, query.offset) == (50, 40)
        assert query.sort_mode == SortMode.RELEVANCE
        assert query.favorite_of_user_id == 3

    def test_garbage_never_raises(self):
        query = normalize_query(
            q=12345, subject=object(), grade=["x"], type=3.5,
            limit="many", offset="-10", sort=42, favorite_of_user_id="me",
        )
        assert query.limit == 20
        assert query.offset == 0
        assert query.sort_mode == SortMode.NEW
        assert query.favorite_of_user_id is None
        assert query.fts_query == "12345*"

    def test_search_term_truncated(self):
        query = normalize_query(q="x" * 500)
        assert len(query.search_term) == MAX_SEARCH_LENGTH

    def test_is_immutable(self):
        query = normalize_query(q="osm")
        with pytest.raises(pydantic.ValidationError):
            query.limit = 99
