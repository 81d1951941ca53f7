"""Application runner wiring the widget components together."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from collections.abc import Callable

from relay_pulse.core.config import MainConfig
from relay_pulse.core.geometry import WindowGeometryStore
from relay_pulse.core.poller import StatusPoller
from relay_pulse.core.presenter import (
    bubble_target_options,
    build_bubble_view,
    build_card_rows,
    render_bubble_text,
    render_card_text,
    render_settings_text,
)
from relay_pulse.core.selection import SelectionState
from relay_pulse.core.settings import IntervalSetting, SettingsRepository
from relay_pulse.core.view_mode import ViewModeController
from relay_pulse.host.virtual_window import VirtualWindow
from relay_pulse.sources.http_source import HttpStatusSource
from relay_pulse.storage.json_store import JsonFileStore
from relay_pulse.types.aliases import StatusSet
from relay_pulse.types.models import ViewMode
from relay_pulse.types.protocols import HostWindow, KeyValueStore, StatusSource

__all__ = ["ApplicationRunner"]

logger = logging.getLogger(__name__)


class ApplicationRunner:
    """Build the widget from configuration and run it headless.

    Collaborators default to the HTTP source, the JSON settings file and an
    in-process window; any of them can be injected.
    """

    def __init__(
        self,
        config: MainConfig,
        *,
        run_once: bool = False,
        output: Callable[[str], None] = print,
        source: StatusSource | None = None,
        store: KeyValueStore | None = None,
        host: HostWindow | None = None,
    ) -> None:
        self.config: MainConfig = config
        self.run_once: bool = run_once
        self._output: Callable[[str], None] = output
        self._source: StatusSource | None = source
        self._store: KeyValueStore = store or JsonFileStore(config.store.path)
        self._host: HostWindow = host or VirtualWindow(
            width=config.window.card_width,
            height=config.window.card_height,
        )
        self.controller: ViewModeController | None = None
        self.settings: SettingsRepository | None = None
        self.interval: IntervalSetting | None = None
        self.poller: StatusPoller | None = None

    def run(self) -> None:
        """Run the widget until interrupted (or once with ``run_once``)."""
        asyncio.run(self.run_async())

    def render(self) -> str:
        """Render the active view as text."""
        controller = self.controller
        if controller is None or self.interval is None:
            msg = "Runner has not been started"
            raise RuntimeError(msg)

        match controller.view_mode:
            case ViewMode.BUBBLE:
                return render_bubble_text(build_bubble_view(controller.bubble_target(), size=controller.bubble.size))
            case ViewMode.SETTINGS:
                return render_settings_text(
                    interval_ms=self.interval.get_interval(),
                    bubble=controller.bubble,
                    options=bubble_target_options(controller.bubble_options()),
                )
            case ViewMode.CARD:
                rows = build_card_rows(
                    controller.filtered_records(),
                    recent_samples=self.config.window.recent_samples,
                )
                return render_card_text(rows)

    async def _build(self) -> IntervalSetting:
        settings = SettingsRepository(
            self._store,
            default_bubble=self.config.bubble.to_bubble_config(),
            default_interval_ms=self.config.polling.interval_ms,
        )
        bubble = await settings.load_bubble_config()
        interval = IntervalSetting(await settings.load_interval_ms())

        geometry = WindowGeometryStore(
            self._store,
            self._host,
            card_default_size=(self.config.window.card_width, self.config.window.card_height),
        )
        filters = self.config.filters
        controller = ViewModeController(
            geometry,
            bubble=bubble,
            list_filter=SelectionState(filters.provider, filters.service, filters.channel),
            settings=settings,
        )
        mode = controller.mount()
        logger.info(
            "Widget mounted",
            extra={"view_mode": mode.name, "interval_ms": interval.get_interval()},
        )
        self.settings = settings
        self.controller = controller
        self.interval = interval
        return interval

    async def sync_settings(self) -> None:
        """Apply interval and bubble changes made in the store by other processes.

        A changed bubble ``enabled`` flag runs a regular queued transition.
        """
        if self.settings is None or self.controller is None or self.interval is None:
            return

        interval_ms = await self.settings.load_interval_ms()
        if interval_ms != self.interval.get_interval():
            logger.info("Poll interval changed in store", extra={"interval_ms": interval_ms})
            self.interval.set_interval(interval_ms)

        _ = await self.controller.apply_stored_bubble(await self.settings.load_bubble_config())

    async def _on_status(self, records: StatusSet) -> None:
        if self.controller is None:
            return
        await self.sync_settings()
        self.controller.publish(records)
        self._output(self.render())

    async def run_async(self) -> None:
        """Async main implementing the widget lifecycle."""
        interval = await self._build()

        async with contextlib.AsyncExitStack() as stack:
            source = self._source
            if source is None:
                source = await stack.enter_async_context(
                    HttpStatusSource(
                        self.config.source.url,
                        timeout_seconds=self.config.source.timeout_seconds,
                    )
                )

            poller = StatusPoller(source, interval, listeners=[self._on_status])
            self.poller = poller

            if self.run_once:
                if not await poller.poll_once():
                    msg = "Could not fetch status"
                    raise RuntimeError(msg)
                return

            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                with contextlib.suppress(NotImplementedError):
                    loop.add_signal_handler(sig, poller.request_shutdown)
            try:
                await poller.loop()
            finally:
                for sig in (signal.SIGINT, signal.SIGTERM):
                    with contextlib.suppress(NotImplementedError):
                        _ = loop.remove_signal_handler(sig)
                logger.info("Widget shutdown complete")
