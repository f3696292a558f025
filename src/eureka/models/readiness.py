"""Readiness pass results.

A ReadinessRecord is built fresh per readiness pass and never retained.
"""

from dataclasses import dataclass, field
from enum import Enum


class ReadinessOutcome(Enum):
    """Outcome of probing one module."""

    READY = "ready"
    TIMED_OUT = "timed-out"
    ERRORED = "errored"


@dataclass
class ReadinessEntry:
    """Probe outcome for one module on its exposed port."""

    port: int
    outcome: ReadinessOutcome
    attempts: int = 0
    error: str | None = None


@dataclass
class ReadinessRecord:
    """Module name -> probe outcome for one pass."""

    kind: str
    entries: dict[str, ReadinessEntry] = field(default_factory=dict)

    @property
    def all_ready(self) -> bool:
        return all(e.outcome is ReadinessOutcome.READY for e in self.entries.values())

    def unready(self) -> list[str]:
        return sorted(
            name for name, e in self.entries.items() if e.outcome is not ReadinessOutcome.READY
        )


__all__ = ["ReadinessEntry", "ReadinessOutcome", "ReadinessRecord"]
