"""Tests for the CSV tokenizer and header split."""

import pytest

from catalog_import.io import CsvStructureError, parse_csv, read_rows, split_header


class TestParseCsv:
    """Quoting, escaping and row termination."""

    def test_quoted_comma_stays_in_field(self):
        assert parse_csv('a,"b,c",d\n') == [["a", "b,c", "d"]]

    def test_doubled_quote_decodes_to_one(self):
        assert parse_csv('"he said ""hi"""\n') == [['he said "hi"']]

    def test_crlf_and_lf_give_same_rows(self):
        lf = parse_csv("h1,h2\n1,2\n3,4\n")
        crlf = parse_csv("h1,h2\r\n1,2\r\n3,4\r\n")
        assert lf == crlf
        assert len(lf) == 3

    def test_newline_inside_quotes_is_literal(self):
        rows = parse_csv('name,desc\nRing,"line one\r\nline two"\n')
        assert rows[1] == ["Ring", "line one\r\nline two"]

    def test_bare_cr_inside_quotes_is_kept(self):
        assert parse_csv('"a\rb",c\n') == [["a\rb", "c"]]

    def test_empty_rows_are_dropped(self):
        rows = parse_csv("a,b\n,\n\n1,2\n,,")
        assert rows == [["a", "b"], ["1", "2"]]

    def test_last_row_without_newline(self):
        assert parse_csv("a,b\n1,2") == [["a", "b"], ["1", "2"]]

    def test_trailing_empty_field_is_kept(self):
        assert parse_csv("a,b,\n") == [["a", "b", ""]]


class TestSplitHeader:
    def test_splits_header_from_data(self):
        headers, data = split_header([["h"], ["1"], ["2"]])
        assert headers == ["h"]
        assert data == [["1"], ["2"]]

    @pytest.mark.parametrize("text", ["", "only,header\n", "\n\n,,\n"])
    def test_fewer_than_two_rows_is_rejected(self, text):
        with pytest.raises(CsvStructureError):
            split_header(parse_csv(text))


def test_read_rows_strips_bom(tmp_path):
    p = tmp_path / "export.csv"
    p.write_bytes("\ufeffHandle,Title\nx,y\n".encode("utf-8"))
    assert read_rows(p)[0] == ["Handle", "Title"]
