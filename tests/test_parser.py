import pytest

from remote_csv_display_v1.errors import MalformedCsvError
from remote_csv_display_v1.parser import MAX_ROWS, parse_csv_text, parse_number


def test_rows_with_wrong_width_are_dropped() -> None:
    dataset = parse_csv_text("a,b,c\n1,2,3\n4,5\n6,7,8,9\n10,11,12\n")

    assert dataset.header == ["a", "b", "c"]
    assert dataset.rows == [["1", "2", "3"], ["10", "11", "12"]]
    assert all(len(row) == 3 for row in dataset.rows)


def test_quoted_fields_keep_commas_and_escaped_quotes() -> None:
    dataset = parse_csv_text('name,"note, with comma"\n"Smith, J","said ""hi"""\n')

    assert dataset.header == ["name", "note, with comma"]
    assert dataset.rows == [["Smith, J", 'said "hi"']]


def test_blank_lines_and_crlf_are_ignored() -> None:
    dataset = parse_csv_text("\r\n\r\nDate,Price\r\n\r\n2024-01-01,100\r\n   \r\n2024-01-02,110\r\n")

    assert dataset.header == ["Date", "Price"]
    assert dataset.rows == [["2024-01-01", "100"], ["2024-01-02", "110"]]


def test_keeps_only_the_most_recent_rows() -> None:
    lines = ["id,value"] + [f"{i},{i * 10}" for i in range(1600)]
    dataset = parse_csv_text("\n".join(lines))

    assert len(dataset.rows) == MAX_ROWS == 1500
    assert dataset.rows[0] == ["100", "1000"]
    assert dataset.rows[-1] == ["1599", "15990"]


def test_custom_row_cap() -> None:
    dataset = parse_csv_text("id\n1\n2\n3\n4\n", max_rows=2)

    assert dataset.rows == [["3"], ["4"]]


def test_header_only_is_malformed() -> None:
    with pytest.raises(MalformedCsvError):
        parse_csv_text("a,b,c\n")


def test_no_matching_rows_is_malformed() -> None:
    with pytest.raises(MalformedCsvError):
        parse_csv_text("a,b,c\n1,2\n3,4,5,6\n")


def test_blank_header_is_malformed() -> None:
    with pytest.raises(MalformedCsvError):
        parse_csv_text(",,\n1,2,3\n")


def test_empty_body_is_malformed() -> None:
    with pytest.raises(MalformedCsvError):
        parse_csv_text("   \n\n")


def test_parse_number() -> None:
    assert parse_number("10500") == 10500.0
    assert parse_number(" 2.5 ") == 2.5
    assert parse_number("-3e2") == -300.0
    assert parse_number("1_000") is None
    assert parse_number("n/a") is None
    assert parse_number("") is None
    assert parse_number("inf") is None
    assert parse_number("nan") is None
