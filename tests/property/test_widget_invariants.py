"""Property-based tests for selection, aggregation and geometry invariants."""

from __future__ import annotations

import asyncio

from hypothesis import given, settings, strategies as st

from relay_pulse.core.availability import aggregate, recent_window
from relay_pulse.core.geometry import WindowGeometryStore
from relay_pulse.core.selection import SelectionModel, SelectionState
from relay_pulse.types.models import CurrentStatus, GeometrySlot, StatusRecord, TimelineSample
from tests.fixtures.widget_fakes import InMemoryStore, RecordingWindow

names = st.sampled_from(["88code", "acme", "cc", "cx", "gm", "main", "backup", "edge"])


@st.composite
def timeline_samples(draw: st.DrawFn) -> TimelineSample:
    """Generate a single timeline sample."""
    return TimelineSample(
        time=draw(st.text(min_size=1, max_size=5)),
        status=draw(st.sampled_from([0, 1])),
        latency_ms=draw(st.floats(min_value=0, max_value=10_000)),
        availability_pct=draw(st.floats(min_value=0, max_value=100)),
    )


@st.composite
def status_records(draw: st.DrawFn) -> StatusRecord:
    """Generate a status record from a small vocabulary so triples collide."""
    return StatusRecord(
        provider=draw(names),
        service=draw(names),
        channel=draw(names),
        current_status=CurrentStatus(status=draw(st.sampled_from([0, 1])), latency_ms=1.0),
    )


models = st.sampled_from([SelectionModel.list_filter(), SelectionModel.bubble_target()])
states = st.builds(SelectionState, names, names, names)


class TestSelectionInvariants:
    """Cascade and filter properties."""

    @given(models, states, names)
    def test_set_provider_blanks_lower_levels(self, model: SelectionModel, state: SelectionState, value: str) -> None:
        """Property: changing the provider always blanks service and channel."""
        result = model.set_provider(state, value)
        assert result.provider == value
        assert result.service == model.unfiltered
        assert result.channel == model.unfiltered

    @given(models, states, names)
    def test_set_service_blanks_channel_only(self, model: SelectionModel, state: SelectionState, value: str) -> None:
        """Property: changing the service keeps the provider and blanks the channel."""
        result = model.set_service(state, value)
        assert result.provider == state.provider
        assert result.service == value
        assert result.channel == model.unfiltered

    @given(st.lists(status_records(), max_size=30), states)
    def test_filter_is_ordered_subset(self, records: list[StatusRecord], state: SelectionState) -> None:
        """Property: the filtered list is a subsequence of the input."""
        model = SelectionModel.list_filter()
        filtered = model.filter(records, state)

        remaining = iter(records)
        assert all(any(item is candidate for candidate in remaining) for item in filtered)
        assert all(model.matches(record, state) for record in filtered)

    @given(st.lists(status_records(), max_size=30))
    def test_unfiltered_selection_keeps_everything(self, records: list[StatusRecord]) -> None:
        """Property: an all-unfiltered list selection returns every record."""
        model = SelectionModel.list_filter()
        assert model.filter(records, model.initial()) == records

    @given(st.lists(status_records(), max_size=30), states)
    def test_options_are_sorted_and_distinct(self, records: list[StatusRecord], state: SelectionState) -> None:
        """Property: every option list is sorted ascending without duplicates."""
        options = SelectionModel.list_filter().options(records, state)
        for values in (options.providers, options.services, options.channels):
            assert list(values) == sorted(set(values))


class TestAvailabilityInvariants:
    """Aggregation bounds."""

    @given(st.lists(timeline_samples(), max_size=50))
    def test_aggregate_within_bounds(self, timeline: list[TimelineSample]) -> None:
        """Property: the mean availability lies in [0, 100]."""
        value = aggregate(timeline)
        assert 0.0 <= value <= 100.0 + 1e-9

    @given(st.lists(timeline_samples(), min_size=1, max_size=25), st.lists(timeline_samples(), min_size=1, max_size=25))
    def test_concatenated_mean_between_parts(self, first: list[TimelineSample], second: list[TimelineSample]) -> None:
        """Property: the mean of a concatenation lies between the two sub-means."""
        low, high = sorted((aggregate(first), aggregate(second)))
        combined = aggregate(first + second)
        assert low - 1e-9 <= combined <= high + 1e-9

    @given(st.lists(timeline_samples(), max_size=50), st.integers(min_value=0, max_value=60))
    def test_recent_window_is_suffix(self, timeline: list[TimelineSample], n: int) -> None:
        """Property: the recent window is the last min(n, len) samples in order."""
        window = recent_window(timeline, n)
        assert len(window) == min(n, len(timeline))
        if window:
            assert list(window) == timeline[-len(window):]


class TestGeometryInvariants:
    """Scale-independent geometry round trips."""

    @settings(max_examples=50)
    @given(
        x=st.integers(min_value=-2_000, max_value=4_000),
        y=st.integers(min_value=-2_000, max_value=4_000),
        width=st.integers(min_value=200, max_value=2_000),
        height=st.integers(min_value=100, max_value=1_500),
        save_scale=st.sampled_from([1.0, 1.25, 1.5, 2.0]),
        restore_scale=st.sampled_from([1.0, 1.25, 1.5, 2.0]),
    )
    def test_card_geometry_survives_scale_change(
        self,
        x: int,
        y: int,
        width: int,
        height: int,
        save_scale: float,
        restore_scale: float,
    ) -> None:
        """Property: restoring a saved card slot reproduces its logical geometry."""

        async def scenario() -> tuple[int, int, int, int]:
            window = RecordingWindow(x=x, y=y, width=width, height=height, scale_factor=save_scale)
            geometry = WindowGeometryStore(InMemoryStore(), window)
            _ = await geometry.save_current(GeometrySlot.CARD)
            window.move_to_monitor(restore_scale)
            await window.set_size(120, 120)
            await window.set_position(0, 0)
            _ = await geometry.restore_card()
            return (
                window.calls[-1][1],
                window.calls[-1][2],
                window.calls[-2][1],
                window.calls[-2][2],
            )

        assert asyncio.run(scenario()) == (x, y, width, height)
