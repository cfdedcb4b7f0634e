from __future__ import annotations

from pathlib import Path

import pytest

from bulk_sms.errors import NumbersFileError
from bulk_sms.phone import (
    InvalidLine,
    check_number,
    format_number,
    load_numbers,
    normalize_number,
    parse_numbers,
    validate_number,
)


@pytest.mark.parametrize("raw", ["", "   ", "abc", "+", "(--)", "phone: n/a"])
def test_inputs_without_digits_normalize_to_empty_and_are_rejected(raw: str) -> None:
    assert normalize_number(raw) == ""
    assert validate_number(normalize_number(raw)) is False
    assert check_number(raw) is None


def test_mixed_punctuation_is_stripped() -> None:
    assert normalize_number("+55 (11) 99999-9999") == "+5511999999999"
    # 13 digits plus "+" is 14 characters, inside the 10..15 window
    assert check_number("+55 (11) 99999-9999") == "+5511999999999"


@pytest.mark.parametrize("digits", range(9, 15))
def test_accepts_every_length_inside_window(digits: int) -> None:
    number = "+" + "1" + "2" * (digits - 1)
    assert 10 <= len(number) <= 15
    assert validate_number(number) is True


@pytest.mark.parametrize("digits", [1, 5, 8, 15, 16, 20])
def test_rejects_lengths_outside_window(digits: int) -> None:
    number = "+" + "9" * digits
    assert validate_number(number) is False


def test_leading_zero_country_code_is_rejected() -> None:
    assert normalize_number("0123456789") == "+0123456789"
    assert check_number("0123456789") is None
    assert check_number("+00 44 20 7946 0958") is None


def test_length_check_ignores_punctuation_in_raw_input() -> None:
    raw = "+1 (415) 555-2671 -- ext"
    assert len(raw) > 15
    assert check_number(raw) == "+14155552671"


@pytest.mark.parametrize(
    "raw", ["5511999999999", "+1 415 555 2671", "0123", "x", "+44 (0)20 7946 0958"]
)
def test_normalize_is_idempotent(raw: str) -> None:
    once = normalize_number(raw)
    assert normalize_number(once) == once


def test_non_ascii_digits_are_dropped() -> None:
    # Only 0-9 count as digits; superscripts and other scripts are noise.
    assert normalize_number("+1²34") == "+134"
    assert normalize_number("٣٣٣") == ""


def test_format_number_groups_long_numbers() -> None:
    assert format_number("+5511999999999") == "+55 11 9999 99999"
    assert format_number("+14155552671") == "+14 15 5552 671"
    assert format_number("+4420794609") == "+4420794609"


def test_parse_numbers_tracks_physical_line_numbers() -> None:
    lines = [
        "5511999999999",
        "",
        "   ",
        "+1 415 555 2671",
        "12345",
        "0123456789",
        "\t+55 11 88888 8888 ",
    ]
    result = parse_numbers(lines)

    assert result.valid == ["+5511999999999", "+14155552671", "+5511888888888"]
    assert result.invalid == [
        InvalidLine(line_number=5, raw="12345"),
        InvalidLine(line_number=6, raw="0123456789"),
    ]


def test_parse_numbers_keeps_duplicates() -> None:
    result = parse_numbers(["5511999999999", "+55 11 99999 9999"])
    assert result.valid == ["+5511999999999", "+5511999999999"]


def test_load_numbers_reads_file(tmp_path: Path) -> None:
    path = tmp_path / "numbers.txt"
    path.write_text("5511999999999\n\nnot a number\n", encoding="utf-8")

    result = load_numbers(path)

    assert result.valid == ["+5511999999999"]
    assert result.invalid == [InvalidLine(line_number=3, raw="notanumber")]


def test_load_numbers_missing_file(tmp_path: Path) -> None:
    with pytest.raises(NumbersFileError):
        load_numbers(tmp_path / "missing.txt")


def test_load_numbers_survives_bytes_that_are_not_utf8(tmp_path: Path) -> None:
    path = tmp_path / "numbers.txt"
    path.write_bytes(b"5511999999999\nTel\xe9: 5511888888888\n\xff\xfe\n+1 415 555 2671\n")

    result = load_numbers(path)

    assert result.valid == ["+5511999999999", "+5511888888888", "+14155552671"]
    assert [invalid.line_number for invalid in result.invalid] == [3]
