"""Outbound transcript preparation.

Takes a conversation as loaded from storage and produces the one handed to
the provider client: validate, repair if needed, validate again, then apply
the configured provider-compatibility steps. The stored original is left
untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from loguru import logger

from turnguard.config.schema import Config
from turnguard.session.diagnostics import describe, describe_detailed, format_violations
from turnguard.session.errors import StructuralError
from turnguard.session.messages import Conversation
from turnguard.session.records import conversation_from_records
from turnguard.session.repair import DiagnosticsSink, repair_turns
from turnguard.session.thinking import ensure_reasoning_first
from turnguard.session.tool_call_id import sanitize_tool_call_ids
from turnguard.session.turns import ValidationResult, validate_turns


@dataclass(frozen=True)
class PreparedConversation:
    conversation: Conversation
    initial: ValidationResult
    final: ValidationResult
    repaired: bool = False


def _log_sink(message: str) -> None:
    logger.debug(message)


def prepare_conversation(
    conversation: Conversation,
    config: Config | None = None,
    sink: DiagnosticsSink | None = None,
) -> PreparedConversation:
    """Make a stored conversation safe to send.

    Args:
        conversation: Transcript loaded from storage.
        config: Settings; defaults are used when omitted.
        sink: Receives structure dumps. Defaults to the debug log when
            ``diagnostics.log_structure`` is on.

    Raises:
        StructuralError: When the transcript cannot be repaired. The error
            text is for logs; show ``StructuralError.user_message`` to users.
    """
    config = config or Config()
    if sink is None and config.diagnostics.log_structure:
        sink = _log_sink

    initial = validate_turns(conversation)
    result = conversation
    repaired = False

    if not initial.valid:
        logger.warning(
            f"Transcript failed validation ({len(initial.violations)} violations), repairing:\n"
            f"{format_violations(initial)}"
        )
        if sink is not None and config.diagnostics.detailed:
            sink(describe_detailed(conversation, "Stored transcript", config.diagnostics.preview_chars))
        try:
            result = repair_turns(conversation, sink=sink)
        except StructuralError as e:
            logger.error(f"Transcript repair failed: {e}")
            raise
        repaired = True

    result = _apply_compat_steps(result, config)
    final = validate_turns(result)

    if repaired:
        logger.info(f"Transcript repaired: {len(conversation)} -> {len(result)} turns")
    elif sink is not None and config.diagnostics.detailed:
        sink(describe(result, "Outbound transcript"))

    return PreparedConversation(conversation=result, initial=initial, final=final, repaired=repaired)


def prepare_records(
    records: Iterable[Mapping[str, Any]],
    config: Config | None = None,
    sink: DiagnosticsSink | None = None,
) -> PreparedConversation:
    """Decode stored records, then run ``prepare_conversation`` on them."""
    return prepare_conversation(conversation_from_records(records), config=config, sink=sink)


def _apply_compat_steps(conversation: Conversation, config: Config) -> Conversation:
    if config.repair.reasoning_first:
        conversation = ensure_reasoning_first(
            conversation, placeholder=config.repair.reasoning_placeholder,
        )
    if config.repair.tool_call_id_mode != "off":
        conversation = sanitize_tool_call_ids(conversation, mode=config.repair.tool_call_id_mode)
    return conversation
