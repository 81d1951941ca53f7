"""Type aliases using modern PEP 695 syntax."""

from collections.abc import Awaitable, Callable, Sequence

from relay_pulse.types.models import StatusRecord

# Immutable status set published by the poller each cycle
type StatusSet = tuple[StatusRecord, ...]

# Subscriber invoked with every successfully fetched status set
type StatusListener = Callable[[StatusSet], Awaitable[None] | None]

# Raw records accepted by filtering helpers
type RecordSequence = Sequence[StatusRecord]
