"""
Tests for event positioning, timestamp grouping, overflow and clustering.
"""

import pytest

from timeline_calendar import PartialDate
from timeline_config import EventLayoutConfig
from timeline_core import TimelineEvent
from timeline_events import ABOVE, BELOW, position_events
from timeline_viewport import Viewport

DOMAIN = (2000.0, 2010.0)


def _event(event_id, start, end=None, event_type="other"):
    return TimelineEvent(event_id=str(event_id), title=f"Event {event_id}", type=event_type, start=start, end=end)


class TestPositioning:
    def test_midpoint_event(self):
        layout = position_events([_event(1, PartialDate(2005))], DOMAIN, Viewport())
        assert layout.rendered[0].screen_fraction == pytest.approx(0.5)

    def test_zoomed_and_panned(self):
        layout = position_events([_event(1, PartialDate(2005))], DOMAIN, Viewport(2.0, 0.25))
        assert layout.rendered[0].screen_fraction == pytest.approx(0.75)

    def test_mapping_input_is_accepted(self):
        layout = position_events([_event(1, {"year": 2005})], DOMAIN, Viewport())
        assert layout.rendered[0].yf == 2005.0

    def test_sorted_by_start_then_input_order(self):
        events = [
            _event("late", PartialDate(2008)),
            _event("a", PartialDate(2002)),
            _event("b", PartialDate(2002)),
        ]
        layout = position_events(events, DOMAIN, Viewport())
        assert [item.event.event_id for item in layout.rendered] == ["a", "b", "late"]

    def test_undated_events_are_listed_separately(self):
        events = [_event(1, PartialDate(2005)), _event(2, None), _event(3, PartialDate(month=4))]
        layout = position_events(events, DOMAIN, Viewport())
        assert [event.event_id for event in layout.undated] == ["2", "3"]
        assert len(layout.rendered) == 1

    def test_out_of_domain_is_flagged_and_clamped(self):
        layout = position_events([_event(1, PartialDate(2020))], DOMAIN, Viewport())
        item = layout.rendered[0]
        assert item.out_of_domain
        assert not item.in_view
        assert item.screen_fraction == 1.0

    def test_range_end_position(self):
        layout = position_events([_event(1, PartialDate(2002), PartialDate(2004))], DOMAIN, Viewport())
        item = layout.rendered[0]
        assert item.end_yf == 2004.0
        assert item.end_screen_fraction == pytest.approx(0.4)

    def test_inactive_types_are_marked(self):
        events = [_event(1, PartialDate(2002), event_type="war"), _event(2, PartialDate(2006), event_type="treaty")]
        layout = position_events(events, DOMAIN, Viewport(), active_types=["treaty"])
        assert [item.active for item in layout.rendered] == [False, True]


class TestTimestampGroups:
    def test_shared_timestamp_alternates_sides(self):
        events = [_event(i, PartialDate(2005, 1, 1)) for i in range(2)]
        layout = position_events(events, DOMAIN, Viewport())
        first, second = layout.rendered
        assert first.group_key == second.group_key == "2005|1|1|0|0"
        assert (first.side, second.side) == (ABOVE, BELOW)
        assert first.level == second.level == 0

    def test_levels_step_every_two_members(self):
        events = [_event(i, PartialDate(2005)) for i in range(4)]
        layout = position_events(events, DOMAIN, Viewport())
        assert [item.level for item in layout.rendered] == [0, 0, 1, 1]

    def test_overflow_beyond_four(self):
        events = [_event(i, PartialDate(2005)) for i in range(5)]
        layout = position_events(events, DOMAIN, Viewport())
        assert len(layout.rendered) == 4
        assert len(layout.overflows) == 1
        overflow = layout.overflows[0]
        assert overflow.overflow_count == 1
        assert [event.event_id for event in overflow.events] == ["4"]
        assert layout.rendered[-1].overflow_count == 1
        assert layout.accounted_count() == 5

    def test_nearby_events_share_a_group(self):
        # 0.1% of a ten year domain apart
        events = [_event(1, PartialDate(2005, 1, 1)), _event(2, PartialDate(2005, 1, 4))]
        layout = position_events(events, DOMAIN, Viewport())
        assert len(layout.groups) == 1
        assert layout.groups[0].key == "2005|1|1|0|0"

    def test_distant_events_form_separate_groups(self):
        events = [_event(1, PartialDate(2003)), _event(2, PartialDate(2007))]
        layout = position_events(events, DOMAIN, Viewport())
        assert len(layout.groups) == 2
        assert all(item.side == ABOVE for item in layout.rendered)

    def test_custom_group_size(self):
        cfg = EventLayoutConfig(max_per_group=2)
        events = [_event(i, PartialDate(2005)) for i in range(5)]
        layout = position_events(events, DOMAIN, Viewport(), cfg)
        assert len(layout.rendered) == 2
        assert layout.overflows[0].overflow_count == 3


class TestClustering:
    def _events(self):
        crowded = [_event(f"c{i}", PartialDate(2005)) for i in range(26)]
        spread = [_event(f"s{year}", PartialDate(year)) for year in (2001, 2003, 2007, 2009)]
        return crowded + spread

    def test_dense_overview_is_clustered(self):
        layout = position_events(self._events(), DOMAIN, Viewport())
        assert len(layout.clusters) == 1
        cluster = layout.clusters[0]
        assert cluster.count == 26
        assert cluster.screen_fraction == pytest.approx(0.5, abs=0.01)
        assert all(item.clustered for item in cluster.items)
        assert len(layout.rendered) == 4

    def test_conservation_with_clusters(self):
        layout = position_events(self._events(), DOMAIN, Viewport())
        assert layout.accounted_count() == 30

    def test_no_clustering_when_zoomed_in(self):
        layout = position_events(self._events(), DOMAIN, Viewport(2.0, 0.0))
        assert layout.clusters == ()
        assert len(layout.rendered) == 8
        assert sum(overflow.overflow_count for overflow in layout.overflows) == 22
        assert layout.accounted_count() == 30

    def test_no_clustering_for_small_sets(self):
        events = [_event(i, PartialDate(2005)) for i in range(10)]
        layout = position_events(events, DOMAIN, Viewport())
        assert layout.clusters == ()
        assert layout.accounted_count() == 10

    def test_undated_not_counted(self):
        events = self._events() + [_event("u", None)]
        layout = position_events(events, DOMAIN, Viewport())
        assert layout.accounted_count() == 30
        assert len(layout.undated) == 1
