"""Application entry point for relay-pulse."""

from __future__ import annotations

from relay_pulse.app.cli import cli

__all__ = ["main"]


def main() -> None:
    """Run the relay-pulse command-line interface."""
    cli(prog_name="relay-pulse")


if __name__ == "__main__":
    main()
