"""Error types raised while preparing a transcript."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from turnguard.session.turns import Violation


class TranscriptError(Exception):
    """Base class for transcript errors."""


class TranscriptFormatError(TranscriptError, ValueError):
    """A stored record could not be decoded into the message model."""


@dataclass(frozen=True)
class UnresolvedId:
    """A tool call id that repair could not bring into adjacency.

    ``displaced`` is True when the counterpart exists somewhere in the
    transcript but not in the neighbouring turn; False means the counterpart
    is missing from the transcript entirely.
    """

    tool_call_id: str
    kind: str
    turn_index: int
    displaced: bool = False


class StructuralError(TranscriptError):
    """Repair could not produce a transcript the provider would accept.

    ``str()`` carries internal tool call ids and belongs in logs only;
    show ``user_message`` to end users.
    """

    user_message = "This conversation could not be sent."

    def __init__(
        self,
        unresolved: list[UnresolvedId],
        violations: list["Violation"] | None = None,
    ):
        self.unresolved = list(unresolved)
        self.violations = list(violations or [])
        super().__init__(self._format())

    @property
    def tool_call_ids(self) -> list[str]:
        return [u.tool_call_id for u in self.unresolved]

    @property
    def kinds(self) -> set[str]:
        return {u.kind for u in self.unresolved}

    def _format(self) -> str:
        if not self.unresolved:
            return "Transcript is structurally invalid"
        items = ", ".join(
            f"{u.kind}:{u.tool_call_id}@{u.turn_index}"
            + (" (displaced)" if u.displaced else "")
            for u in self.unresolved
        )
        return f"Unrepairable transcript ({len(self.unresolved)} unresolved): {items}"
