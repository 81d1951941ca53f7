"""Cascading provider → service → channel selection model.

The same model backs two independent selections:

- the card list filter, where the sentinel ``"all"`` means unfiltered
- the bubble target, where an empty string means unset and the final lookup
  requires an exact triple match

Changing a level blanks every level below it. A stale service or channel is
never auto-corrected to a valid value; it has to be re-selected explicitly.
An empty filtered set is a displayable "no matches" state, not an error.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Final

from relay_pulse.core.config import ALL
from relay_pulse.types.aliases import RecordSequence
from relay_pulse.types.models import StatusRecord

UNSET: Final[str] = ""


@dataclass(slots=True, frozen=True)
class SelectionState:
    """Immutable provider/service/channel selection."""

    provider: str
    service: str
    channel: str


@dataclass(slots=True, frozen=True)
class SelectionOptions:
    """Derived option lists, each deduplicated and sorted ascending."""

    providers: tuple[str, ...]
    services: tuple[str, ...]
    channels: tuple[str, ...]


def _distinct_sorted(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(sorted(set(values)))


class SelectionModel:
    """Cascading selection with a per-instance "unfiltered" value.

    Use :meth:`list_filter` for the card list and :meth:`bubble_target` for
    the bubble picker rather than choosing the sentinel by hand.
    """

    def __init__(self, unfiltered: str) -> None:
        self.unfiltered: str = unfiltered

    @classmethod
    def list_filter(cls) -> SelectionModel:
        """Selection model for the card list (``"all"`` = unfiltered)."""
        return cls(ALL)

    @classmethod
    def bubble_target(cls) -> SelectionModel:
        """Selection model for the bubble target (``""`` = unset)."""
        return cls(UNSET)

    def initial(self) -> SelectionState:
        """Return a fully unfiltered selection."""
        return SelectionState(self.unfiltered, self.unfiltered, self.unfiltered)

    def set_provider(self, state: SelectionState, value: str) -> SelectionState:
        """Select a provider, blanking service and channel."""
        return SelectionState(provider=value, service=self.unfiltered, channel=self.unfiltered)

    def set_service(self, state: SelectionState, value: str) -> SelectionState:
        """Select a service, blanking channel."""
        return replace(state, service=value, channel=self.unfiltered)

    def set_channel(self, state: SelectionState, value: str) -> SelectionState:
        """Select a channel. Leaf of the hierarchy, nothing cascades."""
        return replace(state, channel=value)

    def _level_matches(self, selected: str, actual: str) -> bool:
        return selected == self.unfiltered or selected == actual

    def matches(self, record: StatusRecord, state: SelectionState) -> bool:
        """Return True when record passes every set level of the selection."""
        return (
            self._level_matches(state.provider, record.provider)
            and self._level_matches(state.service, record.service)
            and self._level_matches(state.channel, record.channel)
        )

    def filter(self, records: RecordSequence, state: SelectionState) -> list[StatusRecord]:
        """Return records matching the selection, preserving source order."""
        return [record for record in records if self.matches(record, state)]

    def provider_options(self, records: RecordSequence) -> tuple[str, ...]:
        """Distinct providers across all records."""
        return _distinct_sorted(record.provider for record in records)

    def service_options(self, records: RecordSequence, state: SelectionState) -> tuple[str, ...]:
        """Distinct services among records matching the provider level."""
        return _distinct_sorted(
            record.service
            for record in records
            if self._level_matches(state.provider, record.provider)
        )

    def channel_options(self, records: RecordSequence, state: SelectionState) -> tuple[str, ...]:
        """Distinct channels among records matching provider and service levels."""
        return _distinct_sorted(
            record.channel
            for record in records
            if self._level_matches(state.provider, record.provider)
            and self._level_matches(state.service, record.service)
        )

    def options(self, records: RecordSequence, state: SelectionState) -> SelectionOptions:
        """Compute all three option lists for the current selection."""
        return SelectionOptions(
            providers=self.provider_options(records),
            services=self.service_options(records, state),
            channels=self.channel_options(records, state),
        )


def find_exact(records: RecordSequence, state: SelectionState) -> StatusRecord | None:
    """Return the first record whose triple equals the selection exactly.

    Used for the bubble target. A selection that no longer matches anything
    yields None (shown as "unknown"); it is not cleared.
    """
    for record in records:
        if (
            record.provider == state.provider
            and record.service == state.service
            and record.channel == state.channel
        ):
            return record
    return None
