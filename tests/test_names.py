from __future__ import annotations

import pytest

from familytree.names import _initials, names_match, normalize_name


def test_normalize_lowercases_and_collapses_whitespace() -> None:
    assert normalize_name("  Priya   SHARMA\t") == "priya sharma"


@pytest.mark.parametrize("raw", ["Jane Doe", "  jane\n\ndoe ", "", "ÉLODIE  Dupont", "a  b   c"])
def test_normalize_is_idempotent(raw: str) -> None:
    once = normalize_name(raw)
    assert normalize_name(once) == once


def test_normalize_none_is_empty() -> None:
    assert normalize_name(None) == ""


def test_names_match_ignores_case_and_spacing() -> None:
    assert names_match("Ravi  Kumar", "ravi kumar")
    assert not names_match("Ravi Kumar", "Ravi Kumaar")


def test_blank_names_never_match() -> None:
    assert not names_match("", "  ")
    assert not names_match(None, None)


def test_initials_take_first_two_tokens() -> None:
    assert _initials("ravi kumar sharma") == "RK"
    assert _initials("  ") == ""
