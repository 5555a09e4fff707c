from __future__ import annotations

import pytest

from polytrans.utils.string_utils import StringUtils


@pytest.mark.parametrize(("value", "expected"), [(None, ""), (12, "12"), ("  text ", "  text ")])
def test_ensure_str(value: object, expected: str) -> None:
    assert StringUtils.ensure_str(value) == expected  # type: ignore[arg-type]


def test_compress_blanks() -> None:
    assert StringUtils.compress_blanks("  Hello \n\t world  ") == "Hello world"


@pytest.mark.parametrize(("value", "expected"), [("", True), ("  \n", True), (None, True), ("a", False)])
def test_is_blank(value: str | None, expected: bool) -> None:
    assert StringUtils.is_blank(value) is expected


def test_normalize_text_composes_characters() -> None:
    assert StringUtils.normalize_text("Cafe\u0301") == "Caf\u00e9"


def test_generate_hash_key_depends_on_part_order() -> None:
    first: str = StringUtils.generate_hash_key("a", "b")

    assert first == StringUtils.generate_hash_key("a", "b")
    assert first != StringUtils.generate_hash_key("b", "a")
    assert len(first) == 64


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("short", "short"),
        ("a" * 20, "a" * 20),
        ("0123456789" + "x" * 5 + "abcdefghij", "012345678925abcdefghij"),
    ],
)
def test_truncate_middle(text: str, expected: str) -> None:
    assert StringUtils.truncate_middle(text) == expected


def test_preview_shortens_long_text() -> None:
    assert StringUtils.preview("word " * 20, length=10) == "word wo..."
    assert StringUtils.preview("short\ntext") == "short text"
