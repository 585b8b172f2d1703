"""Tests for text rendering and markdown export."""

import pytest

from kiodb import Database
from kiodb.dump import export_markdown, format_value, render_table, to_markdown


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "dump.kiod")
    database.add_column("name").add_column("age", "number", default=0, unique=False)
    database.insert({"name": "Ada", "age": 36})
    database.insert({"name": "Bob"})
    return database


class TestFormatValue:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, "null"),
            (True, "true"),
            (False, "false"),
            (3, "3"),
            (0.1 + 0.2, "0.3"),
            ("text", "text"),
            ([1, "a"], '[1, "a"]'),
            ({"k": None}, '{"k": null}'),
        ],
    )
    def test_format(self, value, expected):
        assert format_value(value) == expected

    def test_truncation(self):
        assert format_value("x" * 50, max_width=10) == "xxxxxxx..."
        assert format_value("x" * 50, max_width=0) == "x" * 50


class TestRenderTable:
    def test_aligned_markdown(self):
        text = render_table(["a", "long"], [[1, "x"], ["wide", None]])
        assert text == (
            "| a    | long |\n"
            "|------|------|\n"
            "| 1    | x    |\n"
            "| wide | null |\n"
        )

    def test_skips_ragged_rows(self):
        text = render_table(["a", "b"], [[1], [1, 2], [1, 2, 3]])
        assert text.count("\n") == 3


class TestToMarkdown:
    """Tests for to_markdown and export_markdown."""

    def test_schema_and_records(self, db):
        text = to_markdown(db)
        schema, records = text.split("\n\n")
        assert schema.splitlines()[0] == "| Name | Type   | Default | Unique |"
        assert "| age  | number | 0       | false  |" in schema
        assert records.splitlines()[0] == "| name | age |"
        assert "| Bob  | 0   |" in records

    def test_count_limits_records(self, db):
        text = to_markdown(db, count=1)
        assert "Ada" in text
        assert "Bob" not in text

    def test_empty_schema(self, tmp_path):
        text = to_markdown(Database(tmp_path / "empty.kiod"))
        assert text.splitlines() == ["| Name | Type | Default | Unique |", "|------|------|---------|--------|"]

    @pytest.mark.parametrize("count", ["3", 1.5, True, None])
    def test_count_must_be_an_integer(self, db, count):
        with pytest.raises(TypeError):
            to_markdown(db, count=count)

    def test_export_adds_suffix(self, db, tmp_path):
        written = export_markdown(db, tmp_path / "report")
        assert written == tmp_path / "report.md"
        assert written.read_text() == to_markdown(db)

    def test_export_always_appends_suffix(self, db, tmp_path):
        written = export_markdown(db, str(tmp_path / "report.md"))
        assert written == tmp_path / "report.md.md"
        assert not (tmp_path / "report.md").exists()
