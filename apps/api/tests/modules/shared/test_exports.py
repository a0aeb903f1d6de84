"""
Unit tests for CSV export.
"""

import enum
from datetime import UTC, date, datetime

from coop_portal.modules.shared.exports import csv_response, to_csv


class _Status(str, enum.Enum):
    SUBMITTED = "SUBMITTED"


class TestToCsv:
    """Tests for CSV rendering."""

    def test_every_cell_is_quoted(self):
        content = to_csv(["Name", "Members"], [["Umoja SACCO", 25]])
        assert content == '"Name","Members"\n"Umoja SACCO","25"\n'

    def test_embedded_quotes_are_doubled(self):
        content = to_csv(["Name"], [['The "Best" Dairy']])
        assert content.splitlines()[1] == '"The ""Best"" Dairy"'

    def test_booleans_render_as_yes_no(self):
        content = to_csv(["Active", "Verified"], [[True, False]])
        assert content.splitlines()[1] == '"Yes","No"'

    def test_dates_enums_and_nulls(self):
        row = [datetime(2025, 3, 4, 15, 30, tzinfo=UTC), date(2025, 1, 2), _Status.SUBMITTED, None]
        content = to_csv(["A", "B", "C", "D"], [row])
        assert content.splitlines()[1] == '"2025-03-04","2025-01-02","SUBMITTED",""'

    def test_headers_only_when_no_rows(self):
        assert to_csv(["Name"], []) == '"Name"\n'


def test_csv_response_sets_attachment_headers():
    response = csv_response('"Name"\n', "applications.csv")

    assert response.media_type == "text/csv"
    assert response.headers["content-disposition"] == 'attachment; filename="applications.csv"'
