"""Transcript repair: split and regroup turns until tool calls and results
sit in adjacent turns.

Stored conversations hold whatever arrived during one model turn, so a
single record can interleave text, reasoning, tool calls and tool results.
Repair rebuilds the turn sequence without dropping or inventing content:

1. flatten: split every turn into call-side and result-side runs; result runs
   move to the result-carrier role
2. merge: join neighbouring turns of the same role and kind
3. verify: re-validate; anything still broken raises ``StructuralError``

Only immediate adjacency is considered. A result separated from its call by
another turn in the source is not searched for.
"""

from __future__ import annotations

from typing import Callable, Sequence

from turnguard.session.diagnostics import describe
from turnguard.session.errors import StructuralError, UnresolvedId
from turnguard.session.messages import (
    ContentPart,
    Conversation,
    Role,
    ToolCall,
    ToolResult,
    Turn,
)
from turnguard.session.turns import (
    ValidationResult,
    ViolationKind,
    merge_adjacent_turns,
    validate_turns,
)

DiagnosticsSink = Callable[[str], None]


def flatten_turns(turns: Sequence[Turn]) -> list[Turn]:
    """Split each turn into runs that hold only results or no results."""
    flattened: list[Turn] = []
    for t in turns:
        flattened.extend(_split_turn(t))
    return flattened


def _split_turn(t: Turn) -> list[Turn]:
    segments: list[Turn] = []
    content: list[ContentPart] = []
    results: list[ContentPart] = []
    # Non-result parts seen while a result run is open; emitted after it
    deferred: list[ContentPart] = []

    for part in t.parts:
        if isinstance(part, ToolResult):
            if not results and content:
                segments.append(Turn(role=t.role, parts=tuple(content)))
                content = []
            results.append(part)
        elif results:
            if isinstance(part, ToolCall):
                segments.append(Turn(role=Role.TOOL, parts=tuple(results)))
                results = []
                content = deferred + [part]
                deferred = []
            else:
                deferred.append(part)
        else:
            content.append(part)

    if results:
        segments.append(Turn(role=Role.TOOL, parts=tuple(results)))
        content = deferred
    if content:
        segments.append(Turn(role=t.role, parts=tuple(content)))
    return segments


def repair_turns(
    conversation: Conversation,
    sink: DiagnosticsSink | None = None,
) -> Conversation:
    """Return a transcript that satisfies the adjacency invariant.

    A transcript that already validates is returned as is. Otherwise a new
    ``Conversation`` is built; the input is never modified.

    Args:
        conversation: The transcript to repair.
        sink: Optional callable receiving a structure dump before and after
            the repair attempt.

    Raises:
        StructuralError: When flattening and merging leave violations behind.
    """
    if validate_turns(conversation).valid:
        return conversation

    if sink is not None:
        sink(describe(conversation, "Before repair"))

    merged = merge_adjacent_turns(flatten_turns(conversation.turns))
    repaired = Conversation(turns=tuple(merged))

    if sink is not None:
        sink(describe(repaired, "After repair"))

    after = validate_turns(repaired)
    if after.valid:
        return repaired
    raise StructuralError(classify_unresolved(conversation, after), list(after.violations))


repair = repair_turns


def classify_unresolved(
    original: Conversation,
    remaining: ValidationResult,
) -> list[UnresolvedId]:
    """Describe every id still in violation after repair.

    An id is ``displaced`` when its counterpart does exist in the original
    transcript in the right direction (call before result) but too far away
    to be paired by adjacency alone. Surplus results for a call that is
    already answered are duplicates and never count as displaced.
    """
    call_positions: dict[str, list[int]] = {}
    result_positions: dict[str, list[int]] = {}
    for position, part in enumerate(original.parts()):
        if isinstance(part, ToolCall):
            call_positions.setdefault(part.id, []).append(position)
        elif isinstance(part, ToolResult):
            result_positions.setdefault(part.tool_call_id, []).append(position)

    unresolved: list[UnresolvedId] = []
    seen: set[tuple[str, str]] = set()
    for violation in remaining.violations:
        tid = violation.tool_call_id
        if tid is None or (tid, violation.kind.value) in seen:
            continue
        seen.add((tid, violation.kind.value))

        displaced = False
        calls = call_positions.get(tid, [])
        results = result_positions.get(tid, [])
        if violation.kind == ViolationKind.ORPHAN_RESULT:
            # More results than calls means a duplicate, not a placement problem
            displaced = (
                bool(calls)
                and len(results) <= len(calls)
                and min(calls) < max(results, default=-1)
            )
        elif violation.kind == ViolationKind.MISSING_OR_MISPLACED_RESULT:
            displaced = bool(results) and max(results) > min(calls, default=len(original.parts()))

        unresolved.append(UnresolvedId(
            tool_call_id=tid,
            kind=violation.kind.value,
            turn_index=violation.turn_index,
            displaced=displaced,
        ))
    return unresolved
