"""Unit tests for the NavigationState helper."""

from __future__ import annotations

import pytest

from logvision.models import NavigationMode
from logvision.utils.navigation_state import HOUR_MS, NavigationState, ZoomDomain

from conftest import BASE_MS


class TestNavigationState:
    """Mode, range, paging and zoom transitions."""

    @pytest.fixture
    def state(self) -> NavigationState:
        return NavigationState()

    @pytest.fixture
    def loaded_state(self, state: NavigationState, minute_records) -> NavigationState:
        # 600 records, one per minute, spanning ten hours
        state.set_data_range(minute_records[0].timestamp_ms, minute_records[-1].timestamp_ms, len(minute_records))
        return state

    @pytest.fixture
    def emissions(self, state: NavigationState) -> dict[str, list]:
        seen: dict[str, list] = {"changed": [], "zoom": [], "mode": []}
        state.changed.connect(lambda: seen["changed"].append(True))
        state.zoom_changed.connect(lambda zoom: seen["zoom"].append(zoom))
        state.mode_changed.connect(lambda mode: seen["mode"].append(mode))
        return seen

    def test_initial_state(self, state: NavigationState):
        assert state.mode == NavigationMode.PRESET
        assert state.preset == "all"
        assert state.data_range is None
        assert state.max_display_points == NavigationState.DEFAULT_DISPLAY_POINTS
        assert state.segment_duration_minutes == 30
        assert state.current_page == 1
        assert not state.is_zoomed
        assert state.time_range() == (None, None)

    def test_set_data_range_rejects_inverted(self, state: NavigationState):
        with pytest.raises(ValueError):
            state.set_data_range(10, 5, 2)

    # ---------- Budget ----------
    @pytest.mark.parametrize("requested, expected", [(10, 1000), (2500, 2500), (10**6, 50_000)])
    def test_budget_is_clamped(self, state: NavigationState, requested, expected):
        state.set_max_display_points(requested)
        assert state.max_display_points == expected

    def test_budget_change_clamps_page(self, state: NavigationState):
        state.set_data_range(BASE_MS, BASE_MS + 10_000, 10_000)
        state.set_max_display_points(1000)
        assert state.total_pages == 10
        assert state.set_page(10)

        state.set_max_display_points(5000)
        assert state.total_pages == 2
        assert state.current_page == 2

    def test_zoom_budget(self, state: NavigationState):
        assert state.zoom_budget(0.25) == 1250
        state.set_max_display_points(1000)
        assert state.zoom_budget(0.25) == 250
        assert state.zoom_budget(0.0001) == 1

    # ---------- Presets ----------
    def test_unknown_preset_raises(self, state: NavigationState):
        with pytest.raises(ValueError):
            state.set_time_range_preset("2w")

    def test_pseudo_presets_switch_mode(self, state: NavigationState, emissions):
        state.set_time_range_preset("pagination")
        assert state.mode == NavigationMode.PAGINATION
        state.set_time_range_preset("window")
        assert state.mode == NavigationMode.WINDOW
        assert emissions["mode"] == [NavigationMode.PAGINATION, NavigationMode.WINDOW]

    def test_trailing_preset(self, loaded_state: NavigationState):
        loaded_state.set_time_range_preset("1h")
        start, end = loaded_state.time_range()
        data_start, data_end = loaded_state.data_range
        assert end == data_end
        assert end - start == HOUR_MS

    def test_navigate_time_shifts_by_width(self, loaded_state: NavigationState):
        loaded_state.set_time_range_preset("6h")
        start, end = loaded_state.time_range()

        assert loaded_state.navigate_time("backward")
        assert loaded_state.time_range() == (start - 6 * HOUR_MS, end - 6 * HOUR_MS)

        # Ten hours of data: a second step back leaves the range entirely
        assert not loaded_state.navigate_time("backward")
        assert loaded_state.navigate_time("forward")
        assert loaded_state.time_range() == (start, end)

    def test_navigate_time_needs_bounded_range(self, loaded_state: NavigationState):
        assert not loaded_state.navigate_time("forward")

    def test_custom_range_orders_bounds(self, loaded_state: NavigationState):
        loaded_state.set_custom_range(BASE_MS + 500, BASE_MS + 100)
        assert loaded_state.time_range() == (BASE_MS + 100, BASE_MS + 500)

    # ---------- Sliding window ----------
    def test_window_starts_at_first_record(self, loaded_state: NavigationState):
        loaded_state.set_mode(NavigationMode.WINDOW)
        assert loaded_state.time_range() == (BASE_MS, BASE_MS + HOUR_MS - 1)

    def test_window_navigation_is_clamped(self, loaded_state: NavigationState):
        loaded_state.set_mode(NavigationMode.WINDOW)
        loaded_state.set_window_size(4)

        assert loaded_state.navigate_window("forward")
        assert loaded_state.window_start == BASE_MS + 4 * HOUR_MS

        data_end = loaded_state.data_range[1]
        assert loaded_state.navigate_window("forward")
        assert loaded_state.window_start == data_end - 4 * HOUR_MS + 1
        assert not loaded_state.navigate_window("forward")

        assert loaded_state.navigate_window("backward")
        assert loaded_state.navigate_window("backward")
        assert loaded_state.window_start == BASE_MS
        assert not loaded_state.navigate_window("backward")

    def test_window_size_must_be_positive(self, state: NavigationState):
        with pytest.raises(ValueError):
            state.set_window_size(0)

    # ---------- Pagination ----------
    def test_page_navigation(self, state: NavigationState):
        state.set_data_range(BASE_MS, BASE_MS + 2500, 2500)
        state.set_max_display_points(1000)

        assert state.total_pages == 3
        assert not state.prev_page()
        assert state.next_page() and state.next_page()
        assert state.current_page == 3
        assert not state.next_page()
        assert not state.set_page(99)
        assert state.set_page(-5)
        assert state.current_page == 1

    # ---------- Segmentation ----------
    def test_segment_duration(self, state: NavigationState):
        state.set_segment_duration(15)
        assert state.segment_duration_ms == 15 * 60 * 1000
        with pytest.raises(ValueError):
            state.set_segment_duration(0)

    # ---------- Zoom ----------
    def test_brush_over_two_records_zooms(self, state: NavigationState, make_records, emissions):
        candidates = make_records([100, 200, 300, 400])
        assert state.apply_brush(150, 300, candidates)

        assert state.is_zoomed
        assert state.zoom == ZoomDomain(150, 300)
        assert emissions["zoom"] == [ZoomDomain(150, 300)]

    @pytest.mark.parametrize("start, end", [
        (300, 300),  # empty range
        (400, 100),  # inverted
        (150, 250),  # one record
        (410, 900),  # no records
    ])
    def test_rejected_brush_keeps_state(self, state: NavigationState, make_records, start, end):
        candidates = make_records([100, 200, 300, 400])
        state.apply_brush(100, 200, candidates)

        assert not state.apply_brush(start, end, candidates)
        assert state.zoom == ZoomDomain(100, 200)

    def test_brush_indices(self, state: NavigationState, make_records):
        displayed = make_records([100, 200, 300, 400])
        assert not state.apply_brush_indices(2, 2, displayed)
        assert not state.apply_brush_indices(0, 1, [])

        assert state.apply_brush_indices(1, 3, displayed)
        assert state.zoom == ZoomDomain(200, 400)

    def test_brush_indices_validate_against_candidates(self, state: NavigationState, make_records):
        displayed = make_records([100, 400])
        candidates = make_records([100, 200, 300, 400])
        assert state.apply_brush_indices(0, 1, displayed, candidates)
        assert state.zoom == ZoomDomain(100, 400)

    @pytest.mark.parametrize("change", [
        lambda s: s.set_mode(NavigationMode.SEGMENTED),
        lambda s: s.set_max_display_points(2000),
        lambda s: s.set_segment_duration(5),
        lambda s: s.set_window_size(2),
        lambda s: s.set_time_range_preset("24h"),
        lambda s: s.reset_zoom(),
    ])
    def test_changes_clear_zoom(self, loaded_state: NavigationState, minute_records, change):
        assert loaded_state.apply_brush(BASE_MS, BASE_MS + 10 * 60_000, minute_records)
        change(loaded_state)
        assert not loaded_state.is_zoomed

    def test_reset_zoom_when_idle_is_silent(self, state: NavigationState, emissions):
        state.reset_zoom()
        assert emissions["changed"] == []
        assert emissions["zoom"] == []
