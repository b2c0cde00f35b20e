"""Plain-text structure dumps for logs and test assertions.

Nothing here writes anywhere; callers choose the sink.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from turnguard.session.messages import Conversation, Reasoning, Text, ToolCall, ToolResult

if TYPE_CHECKING:
    from turnguard.session.turns import ValidationResult


def describe(conversation: Conversation, label: str = "Conversation") -> str:
    """Role and part-kind sequence of every turn, one line each.

    Example::

        Before repair (1 turns):
          [0] assistant: [text, tool-call, tool-result, text]
    """
    lines = [f"{label} ({len(conversation.turns)} turns):"]
    for index, t in enumerate(conversation.turns):
        lines.append(f"  [{index}] {t.role.value}: [{', '.join(t.part_kinds())}]")
    return "\n".join(lines)


def describe_detailed(
    conversation: Conversation,
    label: str = "Conversation",
    preview_chars: int = 50,
) -> str:
    """Like ``describe`` but lists every part with ids and a short preview.

    Contains tool call ids and content; meant for internal logs only.
    """
    lines = [f"{label} ({len(conversation.turns)} turns):"]
    for index, t in enumerate(conversation.turns):
        lines.append(f"  [{index}] {t.role.value} ({len(t.parts)} parts)")
        for part in t.parts:
            lines.append(f"    - {_part_line(part, preview_chars)}")
    return "\n".join(lines)


def _part_line(part, preview_chars: int) -> str:
    if isinstance(part, ToolCall):
        return f"tool-call: {part.name or 'unknown'} (id: {part.id})"
    if isinstance(part, ToolResult):
        status = " error" if part.is_error else ""
        return f"tool-result{status}: {part.name or 'unknown'} (id: {part.tool_call_id})"
    if isinstance(part, (Text, Reasoning)):
        return f'{part.kind}: "{_preview(part.text, preview_chars)}"'
    return part.kind


def _preview(text: str, limit: int) -> str:
    text = (text or "").replace("\n", " ")
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def format_violations(result: "ValidationResult") -> str:
    """One line per violation, or ``"valid"``."""
    if result.valid:
        return "valid"
    return "\n".join(_violation_lines(result.violations))


def _violation_lines(violations: Iterable) -> Iterable[str]:
    for i, v in enumerate(violations, 1):
        target = f" id={v.tool_call_id}" if v.tool_call_id else ""
        yield f"{i}. turn {v.turn_index} {v.kind.value}{target}: {v.detail}"
