"""Decoding stored message records into the message model and back.

Stored records are the loose shape chat history is persisted in: one dict
per model turn with a ``role`` and either a ``parts`` list or a ``content``
string/list. Part dicts are tagged by ``type``; several spellings of the
tool part types are accepted because history written by different SDK
versions coexists in storage.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from turnguard.session.errors import TranscriptFormatError
from turnguard.session.messages import (
    ContentPart,
    Conversation,
    Reasoning,
    Role,
    Text,
    ToolCall,
    ToolResult,
    Turn,
)

TEXT_TYPES = {"text"}
REASONING_TYPES = {"reasoning", "reasoning-delta", "thinking", "redacted_thinking"}
TOOL_CALL_TYPES = {"tool-call", "tool-use", "tool_use"}
TOOL_RESULT_TYPES = {"tool-result", "tool_result"}

# Streaming markers and UI-only attachments; the provider never replays them
IGNORED_TYPES = {"step-start", "file", "source-url", "source-document"}
IGNORED_PREFIXES = ("data-",)

# AI SDK UI tool parts: "tool-<toolName>" (or "dynamic-tool") with a state
UI_TOOL_PREFIX = "tool-"
DYNAMIC_TOOL_TYPE = "dynamic-tool"
UI_TOOL_OUTPUT_STATES = {"output-available", "output-error"}


def parts_from_record(data: Mapping[str, Any]) -> list[ContentPart]:
    """Decode one stored part.

    Returns an empty list for ignored parts, and a call followed by its
    result for a UI tool part whose output already arrived.
    """
    if not isinstance(data, Mapping):
        raise TranscriptFormatError(f"Part must be a mapping, got {type(data).__name__}")

    ptype = data.get("type")
    if not isinstance(ptype, str):
        raise TranscriptFormatError(f"Part without a type: {dict(data)!r}")

    if ptype in TEXT_TYPES:
        return [Text(text=data.get("text") or "")]

    if ptype in REASONING_TYPES:
        text = data.get("text") or data.get("thinking") or data.get("delta") or data.get("data") or ""
        return [Reasoning(text=text, signature=data.get("signature"))]

    if ptype in TOOL_CALL_TYPES:
        call_id = data.get("toolCallId") or data.get("id")
        if not call_id:
            raise TranscriptFormatError(f"{ptype} part without an id")
        args = data.get("args", data.get("input", {}))
        return [ToolCall(id=call_id, name=data.get("toolName") or data.get("name") or "", arguments=args)]

    if ptype in TOOL_RESULT_TYPES:
        call_id = data.get("toolCallId") or data.get("tool_use_id") or data.get("id")
        if not call_id:
            raise TranscriptFormatError(f"{ptype} part without a toolCallId")
        if "result" in data:
            payload = data["result"]
        elif "output" in data:
            payload = data["output"]
        else:
            payload = data.get("content")
        return [ToolResult(
            tool_call_id=call_id,
            name=data.get("toolName") or data.get("name") or "",
            payload=payload,
            is_error=bool(data.get("isError", data.get("is_error", False))),
        )]

    if ptype in IGNORED_TYPES or ptype.startswith(IGNORED_PREFIXES):
        return []

    if ptype == DYNAMIC_TOOL_TYPE or ptype.startswith(UI_TOOL_PREFIX):
        return _ui_tool_parts(ptype, data)

    raise TranscriptFormatError(f"Unknown part type: {ptype!r}")


def _ui_tool_parts(ptype: str, data: Mapping[str, Any]) -> list[ContentPart]:
    call_id = data.get("toolCallId")
    if not call_id:
        raise TranscriptFormatError(f"{ptype} part without a toolCallId")
    if ptype == DYNAMIC_TOOL_TYPE:
        name = data.get("toolName") or ""
    else:
        name = data.get("toolName") or ptype[len(UI_TOOL_PREFIX):]

    parts: list[ContentPart] = [ToolCall(id=call_id, name=name, arguments=data.get("input", {}))]
    state = data.get("state")
    if state in UI_TOOL_OUTPUT_STATES:
        failed = state == "output-error"
        parts.append(ToolResult(
            tool_call_id=call_id,
            name=name,
            payload=data.get("errorText") if failed else data.get("output"),
            is_error=failed,
        ))
    return parts


def turn_from_record(record: Mapping[str, Any]) -> Turn:
    """Decode one stored message record."""
    if not isinstance(record, Mapping):
        raise TranscriptFormatError(f"Record must be a mapping, got {type(record).__name__}")

    try:
        role = Role(record.get("role"))
    except ValueError:
        raise TranscriptFormatError(f"Unknown role: {record.get('role')!r}") from None

    raw_parts = record.get("parts")
    if raw_parts is None:
        content = record.get("content")
        if isinstance(content, str):
            raw_parts = [{"type": "text", "text": content}] if content else []
        elif isinstance(content, list):
            raw_parts = content
        else:
            raw_parts = []
    elif not isinstance(raw_parts, list):
        raise TranscriptFormatError("'parts' must be a list")

    parts = [p for item in raw_parts for p in parts_from_record(item)]
    return Turn(role=role, parts=tuple(parts))


def conversation_from_records(records: Iterable[Mapping[str, Any]]) -> Conversation:
    """Decode stored records into a ``Conversation``.

    Raises:
        TranscriptFormatError: If a record or part cannot be decoded.
    """
    return Conversation(turns=tuple(turn_from_record(r) for r in records))


def part_to_record(part: ContentPart) -> dict[str, Any]:
    if isinstance(part, Text):
        return {"type": "text", "text": part.text}
    if isinstance(part, Reasoning):
        data: dict[str, Any] = {"type": "reasoning", "text": part.text}
        if part.signature is not None:
            data["signature"] = part.signature
        return data
    if isinstance(part, ToolCall):
        return {
            "type": "tool-call",
            "toolCallId": part.id,
            "toolName": part.name,
            "args": part.arguments,
        }
    if isinstance(part, ToolResult):
        return {
            "type": "tool-result",
            "toolCallId": part.tool_call_id,
            "toolName": part.name,
            "result": part.payload,
            "isError": part.is_error,
        }
    raise TypeError(f"Unsupported content part: {type(part).__name__}")


def conversation_to_records(conversation: Conversation) -> list[dict[str, Any]]:
    """Encode a conversation as plain record dicts for the provider client."""
    return [
        {"role": t.role.value, "parts": [part_to_record(p) for p in t.parts]}
        for t in conversation.turns
    ]
