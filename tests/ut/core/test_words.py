"""数据库命名单元测试"""

from __future__ import annotations

import pytest

from scaffolder.core.words import (
    ADJECTIVES,
    DEFAULT_MAX_LENGTH,
    NOUNS,
    build_database_name,
    extract_suffix,
    generate_database_name,
    generate_suffix,
    sanitize_site_name,
)


class TestSanitize:
    @pytest.mark.parametrize("raw,expected", [
        ("My-Test_App 123!", "my_test_app_123"),
        ("simple", "simple"),
        ("--a--b--", "a_b"),
        ("Ünïcode", "n_code"),
        ("!!!", ""),
    ])
    def test_sanitize(self, raw: str, expected: str) -> None:
        assert sanitize_site_name(raw) == expected


class TestWordLists:
    def test_lists_sizeable_and_unique(self) -> None:
        assert len(ADJECTIVES) >= 50
        assert len(NOUNS) >= 50
        assert len(set(ADJECTIVES)) == len(ADJECTIVES)
        assert len(set(NOUNS)) == len(NOUNS)

    def test_words_have_no_separator(self) -> None:
        for word in ADJECTIVES + NOUNS:
            assert word.isalpha() and word.islower()


class TestGenerate:
    def test_suffix_shape(self) -> None:
        for _ in range(50):
            adj, noun = generate_suffix().split("_")
            assert adj in ADJECTIVES
            assert noun in NOUNS

    def test_suffix_is_random(self) -> None:
        assert len({generate_suffix() for _ in range(50)}) > 1

    def test_database_name(self) -> None:
        name = generate_database_name("My App")
        assert name.startswith("my_app_")
        assert len(name.split("_")) == 4


class TestBuild:
    def test_basic(self) -> None:
        assert build_database_name("myapp", "swift_runner") == "myapp_swift_runner"

    def test_prefix_sanitized(self) -> None:
        assert build_database_name("My-App", "bold_fox") == "my_app_bold_fox"

    def test_truncates_prefix_only(self) -> None:
        name = build_database_name("a" * 100, "bold_fox")
        assert len(name) == DEFAULT_MAX_LENGTH
        assert name.endswith("_bold_fox")

    def test_custom_max_length(self) -> None:
        assert build_database_name("abcdefgh", "bold_fox", max_length=12) == "abc_bold_fox"

    def test_no_trailing_underscore_after_truncation(self) -> None:
        assert build_database_name("ab_cd", "bold_fox", max_length=12) == "ab_bold_fox"

    def test_no_room_returns_suffix(self) -> None:
        assert build_database_name("myapp", "bold_fox", max_length=8) == "bold_fox"

    def test_empty_prefix(self) -> None:
        assert build_database_name("", "bold_fox") == "bold_fox"
        assert build_database_name("!!!", "bold_fox") == "bold_fox"


class TestExtract:
    @pytest.mark.parametrize("name,expected", [
        ("myapp_swift_runner", "swift_runner"),
        ("my_app_bold_fox", "bold_fox"),
        ("bold_fox", "bold_fox"),
        ("single", ""),
    ])
    def test_extract(self, name: str, expected: str) -> None:
        assert extract_suffix(name) == expected
