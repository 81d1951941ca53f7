"""Tests for the application runner wiring."""

from __future__ import annotations

import pytest

from relay_pulse.app.runner import ApplicationRunner
from relay_pulse.core.config import MainConfig
from relay_pulse.core.exceptions import FetchError
from relay_pulse.types.models import ViewMode
from tests.fixtures.widget_fakes import FakeSource, InMemoryStore, RecordingWindow, sample_status_set


def build_runner(
    *,
    source: FakeSource,
    store: InMemoryStore | None = None,
    run_once: bool = True,
    config: MainConfig | None = None,
) -> tuple[ApplicationRunner, list[str], RecordingWindow]:
    outputs: list[str] = []
    window = RecordingWindow()
    runner = ApplicationRunner(
        config or MainConfig(),
        run_once=run_once,
        output=outputs.append,
        source=source,
        store=store if store is not None else InMemoryStore(),
        host=window,
    )
    return runner, outputs, window


class TestRunOnce:
    """Single fetch-and-render runs."""

    @pytest.mark.asyncio
    async def test_card_view_uses_configured_filter(self) -> None:
        runner, outputs, window = build_runner(source=FakeSource([sample_status_set()]))

        await runner.run_async()

        assert len(outputs) == 1
        lines = outputs[0].splitlines()
        assert len(lines) == 3
        assert all("88code" in line for line in lines)
        assert runner.controller is not None
        assert runner.controller.view_mode is ViewMode.CARD
        assert window.calls == []

    @pytest.mark.asyncio
    async def test_bubble_view_from_persisted_config(self) -> None:
        store = InMemoryStore(
            {
                "bubbleConfig": {
                    "enabled": True,
                    "provider": "88code",
                    "service": "cc",
                    "channel": "backup",
                    "size": 100,
                }
            }
        )
        runner, outputs, window = build_runner(source=FakeSource([sample_status_set()]), store=store)

        await runner.run_async()

        assert outputs == ["(88code 25% backup down)"]
        assert window.calls == []

    @pytest.mark.asyncio
    async def test_unknown_bubble_target(self) -> None:
        store = InMemoryStore(
            {"bubbleConfig": {"enabled": True, "provider": "gone", "service": "cc", "channel": "x", "size": 100}}
        )
        runner, outputs, _ = build_runner(source=FakeSource([sample_status_set()]), store=store)

        await runner.run_async()

        assert outputs == ["(?)"]

    @pytest.mark.asyncio
    async def test_empty_filter_result(self) -> None:
        config = MainConfig.model_validate({"filters": {"provider": "nobody"}})
        runner, outputs, _ = build_runner(source=FakeSource([sample_status_set()]), config=config)

        await runner.run_async()

        assert outputs == ["No matching targets"]

    @pytest.mark.asyncio
    async def test_fetch_failure_raises(self) -> None:
        runner, outputs, _ = build_runner(source=FakeSource([FetchError("refused")]))

        with pytest.raises(RuntimeError, match="Could not fetch status"):
            await runner.run_async()

        assert outputs == []

    @pytest.mark.asyncio
    async def test_stored_interval_is_used(self) -> None:
        store = InMemoryStore({"intervalMs": 12_000})
        runner, _, _ = build_runner(source=FakeSource([sample_status_set()]), store=store)

        await runner.run_async()

        assert runner.poller is not None
        assert runner.poller.cycles == 1


class TestLoop:
    """Continuous polling until shutdown."""

    @pytest.mark.asyncio
    async def test_loop_renders_until_shutdown(self) -> None:
        source = FakeSource([sample_status_set()])
        outputs: list[str] = []
        runner = ApplicationRunner(
            MainConfig(),
            output=outputs.append,
            source=source,
            store=InMemoryStore(),
            host=RecordingWindow(),
        )

        def stop_after_first_render(text: str) -> None:
            outputs.append(text)
            assert runner.poller is not None
            runner.poller.request_shutdown()

        runner._output = stop_after_first_render  # pyright: ignore[reportPrivateUsage]  # testing internal state

        await runner.run_async()

        assert len(outputs) == 1
        assert runner.poller is not None
        assert runner.poller.cycles == 1
        assert source.calls == 1


class TestRender:
    """Rendering guards."""

    def test_render_before_start_raises(self) -> None:
        runner, _, _ = build_runner(source=FakeSource())
        with pytest.raises(RuntimeError, match="not been started"):
            _ = runner.render()

    @pytest.mark.asyncio
    async def test_settings_view_render(self) -> None:
        runner, _, _ = build_runner(source=FakeSource([sample_status_set()]))
        await runner.run_async()
        assert runner.controller is not None

        _ = runner.controller.open_settings()

        assert runner.render().splitlines() == [
            "Settings",
            "  poll interval: 5s",
            "  bubble size:   120",
            "  bubble provider: 88code [88code, acme]",
            "  bubble service:  cc [CC, CX]",
            "  bubble channel:  - [backup, main]",
        ]


class TestSettingsSync:
    """Settings edited in the store while the widget runs."""

    @pytest.mark.asyncio
    async def test_external_interval_change_is_applied(self) -> None:
        store = InMemoryStore()
        runner, _, _ = build_runner(source=FakeSource([sample_status_set()]), store=store)
        await runner.run_async()
        assert runner.interval is not None

        store.data["intervalMs"] = 30_000
        await runner.sync_settings()

        assert runner.interval.get_interval() == 30_000

    @pytest.mark.asyncio
    async def test_external_bubble_enable_switches_view_on_next_publish(self) -> None:
        store = InMemoryStore()
        runner, outputs, window = build_runner(source=FakeSource([sample_status_set()]), store=store)
        await runner.run_async()
        assert runner.controller is not None
        assert runner.controller.view_mode is ViewMode.CARD

        store.data["bubbleConfig"] = {
            "enabled": True,
            "provider": "88code",
            "service": "cc",
            "channel": "backup",
            "size": 100,
        }
        await runner._on_status(sample_status_set())  # pyright: ignore[reportPrivateUsage]  # testing internal state

        assert runner.controller.view_mode is ViewMode.BUBBLE
        assert outputs[-1] == "(88code 25% backup down)"
        assert ("set_size", 100, 100) in window.calls
        assert store.data["cardWindowState"] == {"x": 0, "y": 0, "width": 520, "height": 320}

    @pytest.mark.asyncio
    async def test_unchanged_store_leaves_state_alone(self) -> None:
        store = InMemoryStore()
        runner, _, window = build_runner(source=FakeSource([sample_status_set()]), store=store)
        await runner.run_async()

        await runner.sync_settings()

        assert window.calls == []
        assert "bubbleConfig" not in store.data
