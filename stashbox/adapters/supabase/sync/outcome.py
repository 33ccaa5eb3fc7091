"""Per-phase outcome collected by the syncers and folded into ``SyncResult``."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class PhaseOutcome:
    """What one phase pushed and which records failed.

    ``failures`` holds ``(message, retryable)`` pairs in the order the records
    were attempted.
    """

    synced: int = 0
    failures: list[tuple[str, bool]] = field(default_factory=list)

    @property
    def errors(self) -> list[str]:
        return [message for message, _ in self.failures]
