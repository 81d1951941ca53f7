"""Presentation models for the card list and the bubble.

Turns status records into the display-ready values the widget
renders: status text, formatted availability, latency, the recent bar strip
and the bubble fill level. Styling and layout are left to the renderer.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final

from relay_pulse.core.availability import DEFAULT_RECENT_SAMPLES, aggregate, recent_window
from relay_pulse.core.config import ALL
from relay_pulse.core.selection import SelectionOptions
from relay_pulse.types.models import BubbleConfig, StatusRecord

UNKNOWN_LABEL: Final[str] = "?"


@dataclass(slots=True, frozen=True)
class TimelineBar:
    """One bar of the recent-history strip."""

    is_up: bool
    tooltip: str


@dataclass(slots=True, frozen=True)
class CardRow:
    """Display values for one card-list row."""

    key: str
    provider: str
    service: str
    channel: str
    is_up: bool
    status_text: str
    availability_text: str
    latency_text: str
    bars: tuple[TimelineBar, ...]


@dataclass(slots=True, frozen=True)
class BubbleView:
    """Display values for the bubble overlay.

    ``known`` is False when the bubble target matches no record; the target
    is kept as-is and the bubble shows ``?``.
    """

    known: bool
    size: int
    provider: str = ""
    channel: str = ""
    is_up: bool = False
    availability_text: str = UNKNOWN_LABEL
    water_level: float = 0.0


@dataclass(slots=True, frozen=True)
class SelectOption:
    value: str
    label: str


def build_card_rows(
    records: Sequence[StatusRecord],
    *,
    recent_samples: int = DEFAULT_RECENT_SAMPLES,
) -> list[CardRow]:
    """Build card rows for the filtered records.

    The display key includes the list index because triples may repeat.
    """
    rows: list[CardRow] = []
    for index, record in enumerate(records):
        bars = tuple(
            TimelineBar(
                is_up=sample.status == 1,
                tooltip=f"{sample.time} - {sample.availability_pct:.0f}%",
            )
            for sample in recent_window(record.timeline, recent_samples)
        )
        rows.append(
            CardRow(
                key=f"{record.provider}-{record.channel}-{index}",
                provider=record.provider,
                service=record.service,
                channel=record.channel,
                is_up=record.is_up,
                status_text="up" if record.is_up else "down",
                availability_text=f"{aggregate(record.timeline):.1f}%",
                latency_text=f"{record.current_status.latency_ms:g}ms",
                bars=bars,
            )
        )
    return rows


def build_bubble_view(record: StatusRecord | None, *, size: int) -> BubbleView:
    """Build the bubble view for the target record (None = unknown target)."""
    if record is None:
        return BubbleView(known=False, size=size)

    availability = aggregate(record.timeline)
    return BubbleView(
        known=True,
        size=size,
        provider=record.provider,
        channel=record.channel,
        is_up=record.is_up,
        availability_text=f"{availability:.0f}%",
        water_level=availability,
    )


def list_filter_options(options: SelectionOptions) -> dict[str, list[SelectOption]]:
    """Card filter dropdowns, each led by an "all" entry."""
    return {
        "provider": [SelectOption(ALL, "All providers"), *(SelectOption(p, p) for p in options.providers)],
        "service": [SelectOption(ALL, "All services"), *(SelectOption(s, s.upper()) for s in options.services)],
        "channel": [SelectOption(ALL, "All channels"), *(SelectOption(c, c) for c in options.channels)],
    }


def bubble_target_options(options: SelectionOptions) -> dict[str, list[SelectOption]]:
    """Bubble target dropdowns. No "all" entry: the bubble needs an exact match."""
    return {
        "provider": [SelectOption(p, p) for p in options.providers],
        "service": [SelectOption(s, s.upper()) for s in options.services],
        "channel": [SelectOption(c, c) for c in options.channels],
    }


def render_card_text(rows: Sequence[CardRow]) -> str:
    """Render card rows as plain text lines for console output."""
    if not rows:
        return "No matching targets"
    lines: list[str] = []
    for row in rows:
        strip = "".join("█" if bar.is_up else "░" for bar in row.bars)
        lines.append(
            f"{'●' if row.is_up else '○'} {row.provider:<16} {row.channel:<20} {row.service:<8} "
            f"{row.status_text:<5} {row.availability_text:>7} {row.latency_text:>8}  {strip}"
        )
    return "\n".join(lines)


def render_bubble_text(view: BubbleView) -> str:
    """Render the bubble as a one-line console summary."""
    if not view.known:
        return f"({UNKNOWN_LABEL})"
    state = "up" if view.is_up else "down"
    return f"({view.provider} {view.availability_text} {view.channel} {state})"


def render_settings_text(
    *,
    interval_ms: int,
    bubble: BubbleConfig,
    options: dict[str, list[SelectOption]],
) -> str:
    """Render the settings overlay: poll interval and bubble target pickers.

    Each picker line shows the selected value (``-`` when unset) followed by
    the labels it can be switched to.
    """
    selected = {"provider": bubble.provider, "service": bubble.service, "channel": bubble.channel}
    lines = [
        "Settings",
        f"  poll interval: {interval_ms // 1000}s",
        f"  bubble size:   {bubble.size}",
    ]
    for level in ("provider", "service", "channel"):
        choices = ", ".join(option.label for option in options[level]) or "-"
        lines.append(f"  bubble {level + ':':<9} {selected[level] or '-'} [{choices}]")
    return "\n".join(lines)
