"""Turn adjacency validation.

Providers that support tool use reject a transcript unless every turn
carrying tool calls is followed immediately by a turn carrying exactly the
matching tool results, and nothing else:

- a result must never share a turn with text, reasoning or a call
- a result must answer a call from the turn directly before it
- every call id is unique and gets exactly one result
- result-only turns use the result-carrier role
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from turnguard.session.messages import Conversation, Role, Turn


class ViolationKind(str, Enum):
    MIXED_RESULT_TURN = "mixed-result-turn"
    MISSING_OR_MISPLACED_RESULT = "missing-or-misplaced-result"
    ORPHAN_RESULT = "orphan-result"
    DUPLICATE_CALL_ID = "duplicate-call-id"
    MISASSIGNED_RESULT_ROLE = "misassigned-result-role"


@dataclass(frozen=True)
class Violation:
    turn_index: int
    kind: ViolationKind
    detail: str
    tool_call_id: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    violations: tuple[Violation, ...] = field(default_factory=tuple)

    @property
    def valid(self) -> bool:
        return not self.violations

    def of_kind(self, kind: ViolationKind) -> list[Violation]:
        return [v for v in self.violations if v.kind == kind]

    def ids(self, kind: ViolationKind | None = None) -> list[str]:
        """Tool call ids named by violations, optionally of one kind."""
        return [
            v.tool_call_id for v in self.violations
            if v.tool_call_id is not None and (kind is None or v.kind == kind)
        ]


def validate_turns(conversation: Conversation | Sequence[Turn]) -> ValidationResult:
    """Check a transcript against the adjacency invariant.

    Never raises and never modifies its input. Violations are ordered by
    turn index.
    """
    turns = conversation.turns if isinstance(conversation, Conversation) else tuple(conversation)
    violations: list[Violation] = []
    seen_calls: set[str] = set()
    pending: list[str] = []
    pending_turn = -1

    for index, t in enumerate(turns):
        results = t.tool_results
        if results and len(results) != len(t.parts):
            others = sorted({p.kind for p in t.parts if p.kind != "tool-result"})
            violations.append(Violation(
                turn_index=index,
                kind=ViolationKind.MIXED_RESULT_TURN,
                detail=f"tool results share the turn with: {', '.join(others)}",
            ))
        elif results and t.role != Role.TOOL:
            violations.append(Violation(
                turn_index=index,
                kind=ViolationKind.MISASSIGNED_RESULT_ROLE,
                detail=f"tool results carried by role '{t.role.value}' instead of '{Role.TOOL.value}'",
            ))

        answered: set[str] = set()
        for result in results:
            rid = result.tool_call_id
            if rid in answered:
                violations.append(Violation(
                    turn_index=index,
                    kind=ViolationKind.ORPHAN_RESULT,
                    detail="duplicate result for an already answered call",
                    tool_call_id=rid,
                ))
            elif rid in pending:
                answered.add(rid)
            else:
                violations.append(Violation(
                    turn_index=index,
                    kind=ViolationKind.ORPHAN_RESULT,
                    detail="no matching tool call in the previous turn",
                    tool_call_id=rid,
                ))

        for cid in pending:
            if cid not in answered:
                violations.append(Violation(
                    turn_index=pending_turn,
                    kind=ViolationKind.MISSING_OR_MISPLACED_RESULT,
                    detail=f"no result in the next turn ({index})",
                    tool_call_id=cid,
                ))

        pending = []
        for call in t.tool_calls:
            if call.id in seen_calls:
                violations.append(Violation(
                    turn_index=index,
                    kind=ViolationKind.DUPLICATE_CALL_ID,
                    detail=f"tool call id reused by '{call.name}'",
                    tool_call_id=call.id,
                ))
            seen_calls.add(call.id)
            if call.id not in pending:
                pending.append(call.id)
        pending_turn = index

    for cid in pending:
        violations.append(Violation(
            turn_index=pending_turn,
            kind=ViolationKind.MISSING_OR_MISPLACED_RESULT,
            detail="transcript ends before the result",
            tool_call_id=cid,
        ))

    violations.sort(key=lambda v: v.turn_index)
    return ValidationResult(violations=tuple(violations))


validate = validate_turns


def merge_adjacent_turns(turns: Sequence[Turn]) -> list[Turn]:
    """Merge neighbouring turns that share both role and kind.

    Result-only turns merge only with result-only turns and other turns only
    with other turns, so a merge never creates a mixed turn and never pulls a
    result away from the call turn in front of it.

    Args:
        turns: The turn list (not mutated).

    Returns:
        A new list of turns.
    """
    result: list[Turn] = []
    for t in turns:
        if not t.parts:
            continue
        if result and _mergeable(result[-1], t):
            prev = result[-1]
            result[-1] = Turn(role=prev.role, parts=prev.parts + t.parts)
        else:
            result.append(t)
    return result


def _mergeable(a: Turn, b: Turn) -> bool:
    return a.role == b.role and a.is_result_only == b.is_result_only
