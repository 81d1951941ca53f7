"""Unit tests for the view mode controller."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

import pytest

from relay_pulse.core.geometry import CARD_DEFAULT_SIZE, WindowGeometryStore
from relay_pulse.core.selection import SelectionState
from relay_pulse.core.settings import SettingsRepository
from relay_pulse.core.view_mode import ViewModeController, resolve_view_mode
from relay_pulse.types.models import BubbleConfig, ViewMode
from tests.fixtures.widget_fakes import (
    BrokenWindow,
    FailingStore,
    InMemoryStore,
    RecordingWindow,
    sample_status_set,
)


def build_controller(
    *,
    store: InMemoryStore | None = None,
    window: RecordingWindow | None = None,
    bubble: BubbleConfig | None = None,
    with_settings: bool = True,
) -> tuple[ViewModeController, InMemoryStore, RecordingWindow]:
    store = store if store is not None else InMemoryStore()
    window = window if window is not None else RecordingWindow(x=100, y=50, width=520, height=320, scale_factor=2.0)
    bubble = bubble if bubble is not None else BubbleConfig(provider="88code", service="cc", channel="main", size=120)
    settings = SettingsRepository(store, default_bubble=bubble) if with_settings else None
    controller = ViewModeController(WindowGeometryStore(store, window), bubble=bubble, settings=settings)
    return controller, store, window


class TestResolveViewMode:
    """Precedence of the derived view."""

    @pytest.mark.parametrize(
        ("bubble_enabled", "show_settings", "expected"),
        [
            (False, False, ViewMode.CARD),
            (False, True, ViewMode.SETTINGS),
            (True, False, ViewMode.BUBBLE),
            (True, True, ViewMode.BUBBLE),
        ],
    )
    def test_precedence(self, bubble_enabled: bool, show_settings: bool, expected: ViewMode) -> None:
        assert resolve_view_mode(bubble_enabled=bubble_enabled, show_settings=show_settings) is expected


class TestSettingsOverlay:
    """Card ⇄ Settings has no geometry side effects."""

    def test_open_and_close_settings(self) -> None:
        controller, store, window = build_controller()
        _ = controller.mount()

        assert controller.open_settings() is True
        assert controller.view_mode is ViewMode.SETTINGS
        controller.close_settings()
        assert controller.view_mode is ViewMode.CARD
        assert window.calls == []
        assert store.operations == []

    @pytest.mark.asyncio
    async def test_settings_unreachable_from_bubble(self) -> None:
        controller, _, _ = build_controller()
        _ = controller.mount()
        _ = await controller.set_bubble_enabled(True)

        assert controller.open_settings() is False
        assert controller.view_mode is ViewMode.BUBBLE
        assert controller.show_settings is False

    @pytest.mark.asyncio
    async def test_enabling_bubble_closes_settings(self) -> None:
        controller, _, _ = build_controller()
        _ = controller.mount()
        _ = controller.open_settings()

        mode = await controller.set_bubble_enabled(True)

        assert mode is ViewMode.BUBBLE
        assert controller.show_settings is False
        _ = await controller.expand_from_bubble()
        assert controller.view_mode is ViewMode.CARD


class TestMount:
    """Initial render behaviour."""

    def test_mount_has_no_side_effects(self) -> None:
        controller, store, window = build_controller(bubble=BubbleConfig(enabled=True, size=100))

        assert controller.mount() is ViewMode.BUBBLE
        assert controller.is_mounted
        assert controller.has_transitioned is False
        assert window.calls == []
        assert store.operations == []

    @pytest.mark.asyncio
    async def test_switch_before_mount_does_not_touch_geometry(self) -> None:
        controller, _, window = build_controller()

        _ = await controller.set_bubble_enabled(True)

        assert controller.view_mode is ViewMode.BUBBLE
        assert controller.is_mounted
        assert controller.has_transitioned is False
        assert window.calls == []


class TestBubbleTransitions:
    """Geometry save/restore on Card ⇄ Bubble."""

    @pytest.mark.asyncio
    async def test_card_bubble_card_restores_card_geometry(self) -> None:
        controller, store, window = build_controller()
        _ = controller.mount()

        _ = await controller.set_bubble_enabled(True)
        assert await window.logical() == (100, 50, 120, 120)
        assert store.data["cardWindowState"] == {"x": 100, "y": 50, "width": 520, "height": 320}

        await window.set_position(800, 40)
        _ = await controller.set_bubble_enabled(False)

        assert controller.view_mode is ViewMode.CARD
        assert controller.has_transitioned is True
        assert await window.logical() == (100, 50, 520, 320)
        assert store.data["bubbleWindowState"] == {"x": 800, "y": 40}

    @pytest.mark.asyncio
    async def test_first_bubble_without_stored_position_keeps_position(self) -> None:
        controller, _, window = build_controller()
        _ = controller.mount()

        _ = await controller.set_bubble_enabled(True)

        assert window.calls == [("set_size", 120, 120)]
        x, y, _, _ = await window.logical()
        assert (x, y) == (100, 50)

    @pytest.mark.asyncio
    async def test_bubble_position_reused_on_next_entry(self) -> None:
        controller, _, window = build_controller()
        _ = controller.mount()

        _ = await controller.set_bubble_enabled(True)
        await window.set_position(900, 10)
        _ = await controller.set_bubble_enabled(False)
        _ = await controller.set_bubble_enabled(True)

        assert await window.logical() == (900, 10, 120, 120)

    @pytest.mark.asyncio
    async def test_leave_bubble_without_card_record_uses_default_size(self) -> None:
        controller, _, window = build_controller(
            bubble=BubbleConfig(enabled=True, size=100),
            window=RecordingWindow(x=30, y=40, width=100, height=100),
        )
        _ = controller.mount()

        _ = await controller.set_bubble_enabled(False)

        assert await window.logical() == (30, 40, *CARD_DEFAULT_SIZE)

    @pytest.mark.asyncio
    async def test_same_state_request_is_noop(self) -> None:
        controller, store, window = build_controller()
        _ = controller.mount()

        assert await controller.set_bubble_enabled(False) is ViewMode.CARD
        assert window.calls == []
        assert store.operations == []

    @pytest.mark.asyncio
    async def test_rapid_toggles_run_in_request_order(self) -> None:
        controller, store, window = build_controller()
        _ = controller.mount()

        _ = await asyncio.gather(controller.toggle_bubble(), controller.toggle_bubble())

        assert controller.view_mode is ViewMode.CARD
        assert await window.logical() == (100, 50, 520, 320)
        assert "cardWindowState" in store.data
        assert "bubbleWindowState" in store.data
        sizes = [call for call in window.calls if call[0] == "set_size"]
        assert sizes == [("set_size", 120, 120), ("set_size", 520, 320)]

    @pytest.mark.asyncio
    async def test_enabled_flag_is_persisted(self) -> None:
        controller, store, _ = build_controller()
        _ = controller.mount()

        _ = await controller.set_bubble_enabled(True)

        assert store.data["bubbleConfig"] == {
            "enabled": True,
            "provider": "88code",
            "service": "cc",
            "channel": "main",
            "size": 120,
        }


class TestFailureTolerance:
    """Geometry or store failures never block the mode switch."""

    @pytest.mark.asyncio
    async def test_host_failure_still_switches_mode(self, caplog: pytest.LogCaptureFixture) -> None:
        controller, _, window = build_controller(window=BrokenWindow())
        _ = controller.mount()

        with caplog.at_level(logging.ERROR):
            mode = await controller.set_bubble_enabled(True)

        assert mode is ViewMode.BUBBLE
        assert ("set_size", 120, 120) in window.calls
        assert "Could not save card geometry" in caplog.text

    @pytest.mark.asyncio
    async def test_store_failure_still_switches_mode(self, caplog: pytest.LogCaptureFixture) -> None:
        window = RecordingWindow(x=10, y=10)
        controller, _, _ = build_controller(store=FailingStore(), window=window)
        _ = controller.mount()

        with caplog.at_level(logging.ERROR):
            _ = await controller.set_bubble_enabled(True)
            _ = await controller.set_bubble_enabled(False)

        assert controller.view_mode is ViewMode.CARD
        assert await window.logical() == (10, 10, *CARD_DEFAULT_SIZE)
        assert "Failed to persist bubble config" in caplog.text


class TestSelections:
    """List filter and bubble target setters."""

    def test_list_filter_setters_cascade(self) -> None:
        controller, _, _ = build_controller()
        controller.publish(sample_status_set())

        _ = controller.set_list_provider("88code")
        _ = controller.set_list_service("cc")
        assert [r.channel for r in controller.filtered_records()] == ["main", "backup"]

        assert controller.set_list_provider("acme") == SelectionState("acme", "all", "all")
        assert controller.list_options().services == ("cc", "gm")

    @pytest.mark.asyncio
    async def test_bubble_setters_cascade_and_persist(self) -> None:
        controller, store, _ = build_controller()

        bubble = await controller.set_bubble_provider("acme")
        assert (bubble.provider, bubble.service, bubble.channel) == ("acme", "", "")

        _ = await controller.set_bubble_service("gm")
        bubble = await controller.set_bubble_channel("primary")

        assert (bubble.provider, bubble.service, bubble.channel) == ("acme", "gm", "primary")
        assert store.data["bubbleConfig"]["channel"] == "primary"  # pyright: ignore[reportIndexIssue, reportUnknownMemberType]

    @pytest.mark.asyncio
    async def test_bubble_target_resolution(self) -> None:
        controller, _, _ = build_controller(bubble=BubbleConfig(enabled=True, provider="88code", service="cc", channel="backup"))
        _ = controller.mount()
        controller.publish(sample_status_set())

        target = controller.bubble_target()
        assert target is not None
        assert target.channel == "backup"

        controller.publish(())
        assert controller.bubble_target() is None
        assert controller.bubble.channel == "backup"

    def test_bubble_target_none_outside_bubble(self) -> None:
        controller, _, _ = build_controller()
        controller.publish(sample_status_set())
        assert controller.bubble_target() is None

    def test_bubble_options_follow_bubble_target(self) -> None:
        controller, _, _ = build_controller()
        controller.publish(sample_status_set())

        options = controller.bubble_options()

        assert options.providers == ("88code", "acme")
        assert options.services == ("cc", "cx")
        assert options.channels == ("backup", "main")

    @pytest.mark.asyncio
    async def test_bubble_size_steps_are_clamped(self) -> None:
        controller, _, _ = build_controller()

        assert (await controller.step_bubble_size(20)).size == 200
        assert (await controller.step_bubble_size(-1)).size == 190
        assert (await controller.step_bubble_size(-50)).size == 80

    @pytest.mark.asyncio
    async def test_bubble_size_fixed_while_shown(self) -> None:
        controller, _, _ = build_controller()
        _ = controller.mount()
        _ = await controller.set_bubble_enabled(True)

        assert (await controller.step_bubble_size(2)).size == 120

    @pytest.mark.asyncio
    async def test_without_settings_repository_nothing_is_persisted(self) -> None:
        controller, store, _ = build_controller(with_settings=False)
        _ = controller.mount()

        _ = await controller.set_bubble_provider("acme")
        _ = await controller.set_bubble_enabled(True)

        assert "bubbleConfig" not in store.data


class TestApplyStoredBubble:
    """Adopting bubble configuration edited outside the controller."""

    @pytest.mark.asyncio
    async def test_external_enable_runs_transition_without_write_back(self) -> None:
        controller, store, window = build_controller()
        _ = controller.mount()
        _ = controller.open_settings()
        stored = BubbleConfig(enabled=True, provider="acme", service="gm", channel="primary", size=150)

        mode = await controller.apply_stored_bubble(stored)

        assert mode is ViewMode.BUBBLE
        assert controller.bubble == stored
        assert controller.show_settings is False
        assert controller.has_transitioned is True
        assert store.data["cardWindowState"] == {"x": 100, "y": 50, "width": 520, "height": 320}
        assert await window.logical() == (100, 50, 150, 150)
        assert "bubbleConfig" not in store.data

    @pytest.mark.asyncio
    async def test_external_disable_restores_card(self) -> None:
        controller, store, window = build_controller()
        _ = controller.mount()
        _ = await controller.set_bubble_enabled(True)
        await window.set_position(700, 20)

        _ = await controller.apply_stored_bubble(replace(controller.bubble, enabled=False))

        assert controller.view_mode is ViewMode.CARD
        assert store.data["bubbleWindowState"] == {"x": 700, "y": 20}
        assert await window.logical() == (100, 50, 520, 320)

    @pytest.mark.asyncio
    async def test_size_kept_while_bubble_stays_shown(self) -> None:
        controller, _, window = build_controller()
        _ = controller.mount()
        _ = await controller.set_bubble_enabled(True)
        calls_before = list(window.calls)

        _ = await controller.apply_stored_bubble(replace(controller.bubble, size=200, channel="backup"))

        assert controller.bubble.size == 120
        assert controller.bubble.channel == "backup"
        assert window.calls == calls_before

    @pytest.mark.asyncio
    async def test_unchanged_config_is_noop(self) -> None:
        controller, store, window = build_controller()
        _ = controller.mount()

        _ = await controller.apply_stored_bubble(controller.bubble)

        assert window.calls == []
        assert store.operations == []
