"""Conversation state machine: prompts, state, commands, recovery and orchestration."""

from projectbot.conversation.orchestrator import CLI_CONVERSATION_ID, Orchestrator
from projectbot.conversation.prompts import (
    Confirmation,
    PendingPrompt,
    Prompt,
    PromptValidationError,
)
from projectbot.conversation.recovery import (
    Recovery,
    Strategy,
    recovery_for_error,
    retry_delay,
    should_retry,
)
from projectbot.conversation.retry import with_retry
from projectbot.conversation.state import ConversationRegistry, ConversationState, Step

__all__ = [
    "CLI_CONVERSATION_ID",
    "Orchestrator",
    "Confirmation",
    "PendingPrompt",
    "Prompt",
    "PromptValidationError",
    "Recovery",
    "Strategy",
    "recovery_for_error",
    "retry_delay",
    "should_retry",
    "with_retry",
    "ConversationRegistry",
    "ConversationState",
    "Step",
]
