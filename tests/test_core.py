"""
Tests for event parsing, loading and helpers.
"""

import logging
from datetime import date, datetime

import pandas as pd
import pytest

from timeline_calendar import PartialDate
from timeline_core import (
    TimelineEvent,
    build_type_colors,
    domain_from_events,
    filter_events,
    parse_partial_date,
    read_events,
    read_events_from_table,
    sorted_events,
    split_dated,
    truncate,
)


class TestParsePartialDate:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("2005", PartialDate(2005)),
            ("2005-03", PartialDate(2005, 3)),
            ("2005-03-04", PartialDate(2005, 3, 4)),
            ("2005-03-04 09", PartialDate(2005, 3, 4, 9)),
            ("2005-03-04 09:15", PartialDate(2005, 3, 4, 9, 15)),
            ("2005-03-04T09:15", PartialDate(2005, 3, 4, 9, 15)),
            (" -44-03-15 ", PartialDate(-44, 3, 15)),
            (2005, PartialDate(2005)),
            (2005.0, PartialDate(2005)),
        ],
    )
    def test_accepted_forms(self, raw, expected):
        assert parse_partial_date(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "garbage", "2005/03/04", 2005.5, float("nan"), float("inf")])
    def test_rejected_forms(self, raw):
        assert parse_partial_date(raw) is None

    def test_datetime_cells(self):
        assert parse_partial_date(pd.Timestamp("2020-05-03")) == PartialDate(2020, 5, 3)
        assert parse_partial_date(datetime(2020, 5, 3, 9, 7)) == PartialDate(2020, 5, 3, 9, 7)
        assert parse_partial_date(date(2020, 5, 3)) == PartialDate(2020, 5, 3)


class TestLoading:
    def test_read_from_table(self):
        df = pd.DataFrame(
            {
                "id": ["a", ""],
                "title": ["Founding", "Merger"],
                "start": ["1998-09", "2004"],
                "end": ["", "2005-06-30"],
                "type": ["company", ""],
                "body": ["First office", ""],
            }
        )
        events = read_events_from_table(df)
        assert [event.event_id for event in events] == ["a", "1"]
        assert events[0].start == PartialDate(1998, 9)
        assert events[0].end is None
        assert events[0].type == "company"
        assert events[1].type == "other"
        assert events[1].end == PartialDate(2005, 6, 30)

    def test_missing_columns(self):
        with pytest.raises(ValueError, match="start"):
            read_events_from_table(pd.DataFrame({"title": ["x"]}))

    def test_unparseable_start_is_logged(self, caplog):
        df = pd.DataFrame({"title": ["Mystery"], "start": ["sometime"]})
        with caplog.at_level(logging.WARNING, logger="timeline_core"):
            events = read_events_from_table(df)
        assert events[0].start is None
        assert "sometime" in caplog.text

    def test_read_csv(self, tmp_path):
        path = tmp_path / "events.csv"
        path.write_text("title,start,type\nLaunch,2019-07-16 13:32,mission\nLanding,,mission\n", encoding="utf-8")
        events = read_events(path)
        assert len(events) == 2
        assert events[0].start == PartialDate(2019, 7, 16, 13, 32)
        assert events[1].start is None

    def test_read_excel(self, tmp_path):
        path = tmp_path / "events.xlsx"
        pd.DataFrame({"title": ["Launch"], "start": ["1969-07-16"]}).to_excel(path, index=False)
        events = read_events(path)
        assert events[0].start == PartialDate(1969, 7, 16)

    def test_unsupported_suffix(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported"):
            read_events(tmp_path / "events.txt")


class TestHelpers:
    def _events(self):
        return [
            TimelineEvent("1", "Later", type="b", start=PartialDate(2010)),
            TimelineEvent("2", "Undated", type="a"),
            TimelineEvent("3", "Early", body="with details", type="a", start=PartialDate(2000)),
        ]

    def test_sorted_puts_undated_last(self):
        assert [event.event_id for event in sorted_events(self._events())] == ["3", "1", "2"]

    def test_split_dated(self):
        dated, undated = split_dated(self._events())
        assert [event.event_id for event in dated] == ["1", "3"]
        assert [event.event_id for event in undated] == ["2"]

    def test_filter_by_type_and_search(self):
        assert [event.event_id for event in filter_events(self._events(), types=["a"])] == ["2", "3"]
        assert [event.event_id for event in filter_events(self._events(), search="DETAILS")] == ["3"]

    def test_domain_from_events(self):
        assert domain_from_events(self._events()) == (1999.0, 2011.0)

    def test_domain_includes_end_dates(self):
        events = [TimelineEvent("1", "War", start=PartialDate(1939), end=PartialDate(1945, 5, 8))]
        lo, hi = domain_from_events(events)
        assert lo < 1939 and hi > 1945

    def test_domain_floors_negative_years(self):
        events = [
            TimelineEvent("1", "Late 501 BCE", start=PartialDate(-501, 7)),
            TimelineEvent("2", "Later", start=PartialDate(-490)),
        ]
        assert domain_from_events(events) == (-502.0, -489.0)

    def test_domain_default(self):
        assert domain_from_events([], default=(1990.0, 2030.0)) == (1990.0, 2030.0)

    def test_truncate(self):
        assert truncate("short") == "short"
        assert truncate("x" * 10, 5) == "xxxx..."

    def test_type_colors_are_stable(self):
        colors = build_type_colors(["war", "Treaty", "war"])
        assert list(colors) == ["Treaty", "war"]
        assert colors == build_type_colors(["Treaty", "war"])
