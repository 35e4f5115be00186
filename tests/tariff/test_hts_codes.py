import pytest

from htsresolver.codes import (
    extract_code_tokens,
    format_code,
    is_code_cell,
    is_hierarchical_parent_of,
    is_multiline,
    normalize,
)


@pytest.mark.parametrize(
    "raw, digits, dotted",
    [
        ("4302.11.00", "43021100", "4302.11.00"),
        ("430211.00", "43021100", "4302.11.00"),
        (" 4302 11 00 ", "43021100", "4302.11.00"),
        ("8539.22.8000", "8539228000", "8539.22.8000"),
        ("4302.11", "430211", "4302.11"),
        ("4302", "4302", "4302"),
        ("HS: 43-02", "4302", "4302"),
        ("", "", ""),
        ("n/a", "", ""),
    ],
)
def test_normalize_degrades_gracefully(raw, digits, dotted):
    code = normalize(raw)
    assert code.digits == digits
    assert code.dotted == dotted


def test_normalize_never_pads():
    assert normalize("43").dotted == "43"
    assert normalize("4").digits == "4"


@pytest.mark.parametrize("raw", ["4302.11.00", "8539.22.80", "0101.21.0010", "9903.88.15"])
def test_normalize_is_idempotent_on_formatted_codes(raw):
    code = normalize(raw)
    assert normalize(format_code(code)) == code
    assert normalize(format_code(code)).dotted == code.dotted


def test_code_equality_is_digit_equality():
    assert normalize("4302.11.00") == normalize("4302 1100")
    assert normalize("4302.11.00") != normalize("4302.11.01")
    assert len({normalize("4302.11.00"), normalize("430211.00")}) == 1


def test_code_segments():
    code = normalize("4302.11.0010")
    assert code.chapter == "43"
    assert code.heading == "02"
    assert code.subheading == "11"
    assert code.statistical_suffix == "00"
    assert code.chapter_number == 43
    assert normalize("7").chapter_number == 0
    assert normalize("").is_empty


def test_hierarchical_parent_is_not_symmetric():
    parent = normalize("4302")
    child = normalize("4302.11.00")
    assert is_hierarchical_parent_of(parent, child) is True
    assert is_hierarchical_parent_of(child, parent) is False


def test_hierarchical_parent_requires_heading_and_strict_prefix():
    child = normalize("4302.11.00")
    assert is_hierarchical_parent_of(normalize("43"), child) is False
    assert is_hierarchical_parent_of(normalize("4302.11.00"), child) is False
    assert is_hierarchical_parent_of(normalize("4303"), child) is False
    assert is_hierarchical_parent_of(normalize("4302.11"), child) is True


def test_extract_code_tokens_from_multiline_cell():
    tokens = extract_code_tokens("4302\r\n4302.11.00")
    assert [token.dotted for token in tokens] == ["4302", "4302.11.00"]


def test_extract_code_tokens_ignores_short_numbers():
    tokens = extract_code_tokens("Of a weight of 15 kg\n8539.22.8000 other")
    assert [token.digits for token in tokens] == ["8539228000"]


def test_multiline_and_code_cell_detection():
    assert is_multiline("4302\n4302.11.00")
    assert not is_multiline("4302.11.00\n")
    assert is_code_cell("4302.11.00")
    assert is_code_cell("8539 22 80")
    assert not is_code_cell("00")
    assert not is_code_cell("Of mink 4302")
