"""Transcript model, validation and repair."""

from turnguard.session.diagnostics import describe, describe_detailed, format_violations
from turnguard.session.errors import (
    StructuralError,
    TranscriptError,
    TranscriptFormatError,
    UnresolvedId,
)
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
from turnguard.session.pipeline import PreparedConversation, prepare_conversation, prepare_records
from turnguard.session.repair import repair, repair_turns
from turnguard.session.turns import (
    ValidationResult,
    Violation,
    ViolationKind,
    validate,
    validate_turns,
)

__all__ = [
    "ContentPart",
    "Conversation",
    "PreparedConversation",
    "Reasoning",
    "Role",
    "StructuralError",
    "Text",
    "ToolCall",
    "ToolResult",
    "TranscriptError",
    "TranscriptFormatError",
    "Turn",
    "UnresolvedId",
    "ValidationResult",
    "Violation",
    "ViolationKind",
    "describe",
    "describe_detailed",
    "format_violations",
    "prepare_conversation",
    "prepare_records",
    "repair",
    "repair_turns",
    "validate",
    "validate_turns",
]
