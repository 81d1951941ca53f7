"""View mode controller: Card ⇄ Settings, {Card, Settings} ⇄ Bubble.

The controller owns the widget's mutable state (bubble configuration, list
filter, settings overlay flag, latest status set) and is the only place it
changes. The active view is never stored; it is recomputed from the bubble
``enabled`` flag and the settings flag with an explicit precedence order.

Settings is a pure overlay on Card and has no geometry side effects. The
geometry-relevant transition is binary, Bubble ⇄ {Card, Settings}, and is
driven solely by ``BubbleConfig.enabled``:

{Card|Settings} → Bubble
    save ``cardWindowState``, close Settings, resize to the bubble size,
    restore ``bubbleWindowState`` if present

Bubble → Card
    save the bubble position to ``bubbleWindowState``, restore
    ``cardWindowState`` or apply the default card size

Transitions are serialized in request order and always run to completion.
Geometry failures are logged and never block the mode switch.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from relay_pulse.core.exceptions import HostQueryError, PersistenceError
from relay_pulse.core.geometry import WindowGeometryStore
from relay_pulse.core.selection import (
    SelectionModel,
    SelectionOptions,
    SelectionState,
    find_exact,
)
from relay_pulse.core.settings import SettingsRepository, step_bubble_size
from relay_pulse.types.aliases import StatusSet
from relay_pulse.types.models import BubbleConfig, GeometrySlot, StatusRecord, ViewMode
from relay_pulse.utils.logging import correlation_scope

__all__ = ["ViewModeController", "resolve_view_mode"]

logger = logging.getLogger(__name__)


def resolve_view_mode(*, bubble_enabled: bool, show_settings: bool) -> ViewMode:
    """Derive the active view from the two state flags.

    Precedence: Bubble, then Settings, then Card.
    """
    if bubble_enabled:
        return ViewMode.BUBBLE
    if show_settings:
        return ViewMode.SETTINGS
    return ViewMode.CARD


class ViewModeController:
    """Own view state and drive geometry save/restore on mode transitions."""

    def __init__(
        self,
        geometry: WindowGeometryStore,
        *,
        bubble: BubbleConfig,
        list_filter: SelectionState | None = None,
        settings: SettingsRepository | None = None,
    ) -> None:
        self._geometry: WindowGeometryStore = geometry
        self._settings: SettingsRepository | None = settings
        self._list_model: SelectionModel = SelectionModel.list_filter()
        self._bubble_model: SelectionModel = SelectionModel.bubble_target()

        self._bubble: BubbleConfig = bubble
        self._list_filter: SelectionState = list_filter or self._list_model.initial()
        self._show_settings: bool = False
        self._records: StatusSet = ()

        # Enabled flag whose geometry is currently applied; None until mounted
        self._applied_enabled: bool | None = None
        self._has_transitioned: bool = False
        self._transition_lock: asyncio.Lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def view_mode(self) -> ViewMode:
        """Active view derived from the bubble and settings flags."""
        return resolve_view_mode(bubble_enabled=self._bubble.enabled, show_settings=self._show_settings)

    @property
    def bubble(self) -> BubbleConfig:
        return self._bubble

    @property
    def list_filter(self) -> SelectionState:
        return self._list_filter

    @property
    def show_settings(self) -> bool:
        return self._show_settings

    @property
    def records(self) -> StatusSet:
        """Latest published status set."""
        return self._records

    @property
    def is_mounted(self) -> bool:
        return self._applied_enabled is not None

    @property
    def has_transitioned(self) -> bool:
        """True once a real geometry transition has run."""
        return self._has_transitioned

    def bubble_selection(self) -> SelectionState:
        """Bubble target as a selection state."""
        return SelectionState(self._bubble.provider, self._bubble.service, self._bubble.channel)

    def filtered_records(self) -> list[StatusRecord]:
        """Records shown by the card list under the current filter."""
        return self._list_model.filter(self._records, self._list_filter)

    def list_options(self) -> SelectionOptions:
        return self._list_model.options(self._records, self._list_filter)

    def bubble_options(self) -> SelectionOptions:
        return self._bubble_model.options(self._records, self.bubble_selection())

    def bubble_target(self) -> StatusRecord | None:
        """Record shown by the bubble, or None outside Bubble mode or when unknown."""
        if not self._bubble.enabled:
            return None
        return find_exact(self._records, self.bubble_selection())

    # ------------------------------------------------------------------
    # Status feed
    # ------------------------------------------------------------------

    def publish(self, records: StatusSet) -> None:
        """Replace the status set. Safe to call mid-transition."""
        self._records = tuple(records)

    # ------------------------------------------------------------------
    # List filter setters
    # ------------------------------------------------------------------

    def set_list_provider(self, value: str) -> SelectionState:
        self._list_filter = self._list_model.set_provider(self._list_filter, value)
        return self._list_filter

    def set_list_service(self, value: str) -> SelectionState:
        self._list_filter = self._list_model.set_service(self._list_filter, value)
        return self._list_filter

    def set_list_channel(self, value: str) -> SelectionState:
        self._list_filter = self._list_model.set_channel(self._list_filter, value)
        return self._list_filter

    # ------------------------------------------------------------------
    # Bubble config setters
    # ------------------------------------------------------------------

    def _apply_bubble_selection(self, selection: SelectionState) -> None:
        self._bubble = replace(
            self._bubble,
            provider=selection.provider,
            service=selection.service,
            channel=selection.channel,
        )

    async def set_bubble_provider(self, value: str) -> BubbleConfig:
        self._apply_bubble_selection(self._bubble_model.set_provider(self.bubble_selection(), value))
        await self._persist_bubble()
        return self._bubble

    async def set_bubble_service(self, value: str) -> BubbleConfig:
        self._apply_bubble_selection(self._bubble_model.set_service(self.bubble_selection(), value))
        await self._persist_bubble()
        return self._bubble

    async def set_bubble_channel(self, value: str) -> BubbleConfig:
        self._apply_bubble_selection(self._bubble_model.set_channel(self.bubble_selection(), value))
        await self._persist_bubble()
        return self._bubble

    async def step_bubble_size(self, steps: int) -> BubbleConfig:
        """Change the bubble size by whole steps of 10 within [80, 200].

        The size is only adjustable outside Bubble mode, where the window is
        not currently sized from it.
        """
        if self._bubble.enabled:
            logger.warning("Bubble size cannot change while the bubble is shown")
            return self._bubble
        self._bubble = replace(self._bubble, size=step_bubble_size(self._bubble.size, steps))
        await self._persist_bubble()
        return self._bubble

    async def _persist_bubble(self) -> None:
        if self._settings is None:
            return
        try:
            await self._settings.save_bubble_config(self._bubble)
        except PersistenceError as exc:
            logger.error("Failed to persist bubble config", extra={"error": str(exc)})

    # ------------------------------------------------------------------
    # Settings overlay
    # ------------------------------------------------------------------

    def open_settings(self) -> bool:
        """Show the settings overlay. Only reachable from Card.

        Returns:
            True if Settings is now the active view
        """
        if self.view_mode is not ViewMode.CARD:
            logger.debug("Settings requested outside card view, ignoring", extra={"view_mode": self.view_mode.name})
            return self.view_mode is ViewMode.SETTINGS
        self._show_settings = True
        return True

    def close_settings(self) -> None:
        """Hide the settings overlay, returning to Card."""
        self._show_settings = False

    # ------------------------------------------------------------------
    # Bubble transitions
    # ------------------------------------------------------------------

    def mount(self) -> ViewMode:
        """Record the initial render without touching geometry.

        No window geometry exists to save and no transition has occurred, so
        the first render only remembers the enabled flag it started with.
        """
        if self._applied_enabled is None:
            self._applied_enabled = self._bubble.enabled
            logger.debug("View mounted", extra={"view_mode": self.view_mode.name})
        return self.view_mode

    async def set_bubble_enabled(self, enabled: bool) -> ViewMode:
        """Switch between Bubble and Card.

        The mode switch itself is immediate; geometry side effects are queued
        behind any transition already in flight and run to completion.

        Returns:
            The view mode after the switch
        """
        if enabled == self._bubble.enabled:
            return self.view_mode

        self._set_enabled_flag(enabled)
        await self._reconcile_geometry(enabled)
        await self._persist_bubble()
        return self.view_mode

    async def apply_stored_bubble(self, stored: BubbleConfig) -> ViewMode:
        """Adopt a bubble configuration changed in the store by another process.

        The target is replaced as a whole and an ``enabled`` change runs the
        same queued geometry transition as :meth:`set_bubble_enabled`. While
        the bubble stays shown its size is kept. Nothing is written back.

        Returns:
            The view mode after applying the configuration
        """
        keep_size = self._bubble.enabled and stored.enabled
        adopted = replace(stored, size=self._bubble.size) if keep_size else stored
        if adopted == self._bubble:
            return self.view_mode

        logger.info(
            "Applying externally changed bubble config",
            extra={"enabled": stored.enabled, "provider": stored.provider, "channel": stored.channel},
        )
        was_enabled = self._bubble.enabled
        self._bubble = replace(adopted, enabled=was_enabled)
        if stored.enabled != was_enabled:
            self._set_enabled_flag(stored.enabled)
            await self._reconcile_geometry(stored.enabled)
        return self.view_mode

    def _set_enabled_flag(self, enabled: bool) -> None:
        self._bubble = replace(self._bubble, enabled=enabled)
        if enabled:
            # Bubble takes precedence; Settings must not stay reachable underneath
            self._show_settings = False

    async def toggle_bubble(self) -> ViewMode:
        return await self.set_bubble_enabled(not self._bubble.enabled)

    async def expand_from_bubble(self) -> ViewMode:
        """Leave the bubble for the card view (bubble click)."""
        return await self.set_bubble_enabled(False)

    async def _reconcile_geometry(self, enabled: bool) -> None:
        async with self._transition_lock:
            if self._applied_enabled is None:
                # Nothing rendered yet: the first render owns the geometry as-is
                self._applied_enabled = enabled
                logger.debug("Transition before mount treated as initial render")
                return
            if enabled == self._applied_enabled:
                return

            with correlation_scope("transition"):
                if enabled:
                    await self._enter_bubble()
                else:
                    await self._leave_bubble()

            self._applied_enabled = enabled
            self._has_transitioned = True

    async def _enter_bubble(self) -> None:
        logger.info("Switching to bubble view", extra={"size": self._bubble.size})
        try:
            _ = await self._geometry.save_current(GeometrySlot.CARD)
        except (HostQueryError, PersistenceError) as exc:
            logger.error("Could not save card geometry", extra={"error": str(exc)})

        try:
            _ = await self._geometry.restore_bubble(self._bubble.size)
        except HostQueryError as exc:
            logger.error("Could not apply bubble geometry", extra={"error": str(exc)})

    async def _leave_bubble(self) -> None:
        logger.info("Switching to card view")
        try:
            _ = await self._geometry.save_current(GeometrySlot.BUBBLE)
        except (HostQueryError, PersistenceError) as exc:
            logger.error("Could not save bubble position", extra={"error": str(exc)})

        try:
            _ = await self._geometry.restore_card()
        except HostQueryError as exc:
            logger.error("Could not apply card geometry", extra={"error": str(exc)})
