"""Conversation orchestrator: the state machine behind the chat loop.

Given a conversation id and an inbound message, the orchestrator either
answers the pending prompt of that conversation or parses the message as a
command / natural-language intent, calls the backend through the retry
combinator and returns the next thing to say.
"""

from __future__ import annotations

import threading
from datetime import timedelta
from typing import Callable, TypeVar

from projectbot.backend.base import DEFAULT_ROLE, ROLE_TYPES, Project, ProjectBackend
from projectbot.conversation.commands import (
    HELP_MESSAGE,
    WELCOME_MESSAGE,
    Command,
    CommandRegistry,
    detect_intent,
    format_command_help,
    parse_command,
    unknown_input_message,
)
from projectbot.conversation.formatting import format_error, format_success, format_warning
from projectbot.conversation.prompts import (
    Confirmation,
    PendingPrompt,
    Prompt,
    PromptValidationError,
)
from projectbot.conversation.retry import SleepFn, with_retry
from projectbot.conversation.state import ConversationRegistry, ConversationState, Step
from projectbot.errors import BotError, InternalError, ValidationError
from projectbot.observability import metrics
from projectbot.observability.logging import conversation_id_var, get_logger

logger = get_logger(__name__)

T = TypeVar("T")

__all__ = ["Orchestrator", "CLI_CONVERSATION_ID"]

CLI_CONVERSATION_ID = "cli"

_GREETINGS = {"", "help", "start"}
_CANCEL_WORDS = {"/cancel", "/abort"}

StepHandler = Callable[[ConversationState, object], str]


class Orchestrator:
    """Drive project-creation and role-assignment conversations.

    Args:
        backend: Project/role backend (real Nobl9 client or in-memory fake).
        registry: Conversation registry; a fresh one is created when omitted.
        sleep: Sleep function used between retries (tests pass a no-op). When
            omitted, retries wait on ``cancel_event`` if given, else ``time.sleep``.
        cancel_event: When set, pending retry waits abort with a cancelled error.
    """

    def __init__(
        self,
        backend: ProjectBackend,
        *,
        registry: ConversationRegistry | None = None,
        sleep: SleepFn | None = None,
        cancel_event: threading.Event | None = None,
        conversation_ttl: timedelta | None = None,
    ):
        self.backend = backend
        self.registry = registry or ConversationRegistry(ttl=conversation_ttl)
        self._sleep = sleep
        self._cancel_event = cancel_event
        self.commands = self._build_commands()
        self._step_handlers: dict[Step, StepHandler] = {
            Step.PROJECT_NAME: self._on_project_name,
            Step.PROJECT_DESCRIPTION: self._on_project_description,
            Step.CONFIRM_CREATION: self._on_confirm_creation,
            Step.PROJECT_SELECTION: self._on_project_selection,
            Step.ROLE_USER: self._on_role_user,
            Step.ROLE_TYPE: self._on_role_type,
            Step.CONFIRM_ROLE: self._on_confirm_role,
        }

    def _build_commands(self) -> CommandRegistry:
        return CommandRegistry(
            [
                Command(
                    name="help",
                    aliases=("h", "?"),
                    description="Show available commands or help for a specific command",
                    usage="help [command]",
                    handler=self._cmd_help,
                ),
                Command(
                    name="create-project",
                    aliases=("create", "new"),
                    description="Create a new Nobl9 project",
                    usage="create-project [name]",
                    handler=self._cmd_create_project,
                ),
                Command(
                    name="assign-role",
                    aliases=("assign", "role"),
                    description="Assign a role to a user in a project",
                    usage="assign-role [project] [user]",
                    handler=self._cmd_assign_role,
                ),
                Command(
                    name="list-projects",
                    aliases=("list", "ls"),
                    description="List available projects",
                    usage="list-projects",
                    handler=self._cmd_list_projects,
                ),
            ]
        )

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def handle_message(self, conversation_id: str, message: str) -> str:
        """Process one message and return the response.

        Raises:
            BotError: when a backend call fails for good. The conversation is
                left in a state the user can continue from.
        """
        token = conversation_id_var.set(conversation_id)
        try:
            with self.registry.session(conversation_id) as (state, created):
                response = self._handle(state, created, message)
        except BotError as exc:
            metrics.MESSAGES_HANDLED.labels(outcome=exc.kind.value).inc()
            raise
        finally:
            conversation_id_var.reset(token)
        metrics.MESSAGES_HANDLED.labels(outcome="ok").inc()
        return response

    def reply(self, conversation_id: str, message: str) -> str:
        """Like :meth:`handle_message`, but failures come back as formatted text."""
        try:
            return self.handle_message(conversation_id, message)
        except BotError as exc:
            return format_error(exc)
        except Exception as exc:
            logger.exception("message_handling_crashed", conversation_id=conversation_id)
            return format_error(InternalError("unexpected failure", cause=exc))

    def get_state(self, conversation_id: str) -> ConversationState | None:
        return self.registry.get(conversation_id)

    def end_conversation(self, conversation_id: str) -> bool:
        return self.registry.end(conversation_id)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _handle(self, state: ConversationState, created: bool, message: str) -> str:
        text = (message or "").strip()
        if created and text.lower() in _GREETINGS:
            return WELCOME_MESSAGE

        if state.pending_prompt is not None:
            if text.lower() in _CANCEL_WORDS:
                logger.info("flow_cancelled", step=state.current_step.value)
                state.reset()
                return "Cancelled. What would you like to do next?"
            return self._answer(state, state.pending_prompt, message)

        return self._dispatch(state, text)

    def _answer(self, state: ConversationState, prompt: PendingPrompt, message: str) -> str:
        try:
            value = prompt.validate(message)
        except PromptValidationError as exc:
            logger.info("invalid_response", step=state.current_step.value, error=str(exc))
            warning = format_warning(f"Invalid response: {exc}. Please try again.")
            return f"{warning}\n\n{prompt.render()}"

        handler = self._step_handlers.get(state.current_step)
        if handler is None:
            # A prompt without a step handler cannot be answered; start over.
            step = state.current_step.value
            logger.error("orphan_prompt", step=step)
            state.reset()
            raise InternalError(f"unknown step: {step}")
        return handler(state, value)

    def _dispatch(self, state: ConversationState, text: str) -> str:
        if not text:
            return 'Type "help" to see what I can do.'

        if text.lower() == "help":
            return HELP_MESSAGE

        parsed = parse_command(text, self.commands)
        if parsed is not None:
            if parsed.command is None or parsed.command.handler is None:
                return (
                    f"❌ Error: unknown command '/{parsed.name}'. "
                    "Type 'help' for available commands."
                )
            metrics.COMMANDS_DISPATCHED.labels(command=parsed.command.name).inc()
            logger.info("handling_command", command=parsed.command.name, args=parsed.args)
            return parsed.command.handler(state, parsed.args)

        intent = detect_intent(text)
        if intent is not None:
            command = self.commands.get(intent.intent.value)
            if command is None or command.handler is None:
                raise InternalError(f"no handler for intent: {intent.intent.value}")
            metrics.COMMANDS_DISPATCHED.labels(command=command.name).inc()
            logger.info("handling_intent", intent=intent.intent.value, args=intent.args)
            return command.handler(state, intent.args)

        return unknown_input_message(text)

    def _call(self, name: str, operation: Callable[[], T]) -> T:
        return with_retry(
            operation,
            name=name,
            sleep=self._sleep,
            cancel_event=self._cancel_event,
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _cmd_help(self, state: ConversationState, args: list[str]) -> str:
        if not args:
            return HELP_MESSAGE
        command = self.commands.get(args[0].lstrip("/"))
        if command is None:
            return format_error(ValidationError(f"unknown command: {args[0]}"))
        return format_command_help(command)

    def _cmd_create_project(self, state: ConversationState, args: list[str]) -> str:
        state.reset()
        if not args:
            logger.info("project_creation_started")
            return state.ask(Step.PROJECT_NAME, Prompt("Please enter a project name:"))

        name = args[0]
        logger.info("project_creation_started", project_name=name)
        check = self._call(
            "validate_project_name", lambda: self.backend.validate_project_name(name)
        )
        if not check.available:
            return state.ask(Step.PROJECT_NAME, self._name_taken_prompt(name, check.current_owner))
        state.project_name = name
        return state.ask(
            Step.PROJECT_DESCRIPTION,
            Prompt(f"Please provide a description for project '{name}':"),
        )

    def _cmd_assign_role(self, state: ConversationState, args: list[str]) -> str:
        state.reset()
        if not args:
            logger.info("role_assignment_started")
            return state.ask(Step.PROJECT_SELECTION, Prompt("Please enter the project name:"))

        state.project_name = args[0]
        if len(args) == 1:
            logger.info("role_assignment_started", project=args[0])
            return state.ask(Step.ROLE_USER, self._user_prompt(args[0]))

        logger.info("role_assignment_started", project=args[0], user=args[1])
        try:
            return self._on_role_user(state, args[1])
        except BotError:
            # No prompt is pending yet, so nothing of this flow may survive.
            state.reset()
            raise

    def _cmd_list_projects(self, state: ConversationState, args: list[str]) -> str:
        projects = self._call("list_projects", self.backend.list_projects)
        return format_project_list(projects)

    # ------------------------------------------------------------------
    # Step handlers
    # ------------------------------------------------------------------

    def _on_project_name(self, state: ConversationState, name: object) -> str:
        name = str(name)
        check = self._call(
            "validate_project_name", lambda: self.backend.validate_project_name(name)
        )
        if not check.available:
            logger.info("project_name_taken", project_name=name, owner=check.current_owner)
            return state.ask(Step.PROJECT_NAME, self._name_taken_prompt(name, check.current_owner))

        logger.info("project_name_validated", project_name=name)
        state.project_name = name
        return state.ask(
            Step.PROJECT_DESCRIPTION,
            Prompt("Please provide a description for the project:"),
        )

    def _on_project_description(self, state: ConversationState, description: object) -> str:
        state.project_description = str(description)
        return state.ask(
            Step.CONFIRM_CREATION,
            Confirmation(
                f"Create project '{state.project_name}' with description "
                f"'{state.project_description}'?",
                default=True,
            ),
        )

    def _on_confirm_creation(self, state: ConversationState, confirmed: object) -> str:
        if not confirmed:
            logger.info("project_creation_cancelled", project_name=state.project_name)
            state.reset()
            return "Project creation cancelled."

        name, description = state.project_name, state.project_description
        try:
            project = self._call(
                "create_project", lambda: self.backend.create_project(name, description)
            )
        except BotError:
            state.reset()
            raise

        logger.info("project_created", project_name=name)
        state.reset()
        return format_success(f"Project '{project.name or name}' created successfully!")

    def _on_project_selection(self, state: ConversationState, project: object) -> str:
        state.project_name = str(project)
        logger.info("project_selected", project=state.project_name)
        return state.ask(Step.ROLE_USER, self._user_prompt(state.project_name))

    def _on_role_user(self, state: ConversationState, email: object) -> str:
        email = str(email)
        exists = self._call("validate_user", lambda: self.backend.validate_user(email))
        if not exists:
            logger.info("user_not_found", user=email)
            return state.ask(Step.ROLE_USER, Prompt("User not found. Please enter a valid email:"))

        logger.info("user_validated", user=email)
        state.role_user = email
        return state.ask(
            Step.ROLE_TYPE,
            Prompt(
                f"Please select a role for user '{email}' in project '{state.project_name}':",
                options=ROLE_TYPES,
                default=DEFAULT_ROLE,
            ),
        )

    def _on_role_type(self, state: ConversationState, role: object) -> str:
        state.role_type = str(role)
        return state.ask(
            Step.CONFIRM_ROLE,
            Confirmation(
                f"Assign role '{state.role_type}' to user '{state.role_user}' "
                f"in project '{state.project_name}'?",
                default=True,
            ),
        )

    def _on_confirm_role(self, state: ConversationState, confirmed: object) -> str:
        if not confirmed:
            logger.info(
                "role_assignment_cancelled",
                user=state.role_user,
                role=state.role_type,
                project=state.project_name,
            )
            state.reset()
            return "Role assignment cancelled."

        project, user, role = state.project_name, state.role_user, state.role_type
        try:
            self._call("assign_roles", lambda: self.backend.assign_roles(project, {user: [role]}))
        except BotError:
            state.reset()
            raise

        logger.info("role_assigned", user=user, role=role, project=project)
        state.record_roles(user, [role])
        state.reset()
        return format_success(f"Role '{role}' assigned to {user} in project '{project}'.")

    # ------------------------------------------------------------------
    # Prompt builders
    # ------------------------------------------------------------------

    @staticmethod
    def _name_taken_prompt(name: str, owner: str) -> Prompt:
        suffix = f" (owner: {owner})" if owner else ""
        return Prompt(
            f"Project name '{name}' is already taken{suffix}. Please choose another name:"
        )

    @staticmethod
    def _user_prompt(project: str) -> Prompt:
        return Prompt(f"Please enter the user's email for project '{project}':")


def format_project_list(projects: list[Project]) -> str:
    if not projects:
        return "📁 No projects found in your organization."
    lines = [f"📋 Found {len(projects)} project(s):", ""]
    for project in projects:
        line = f"🏗️  {project.name}"
        if project.description:
            line = f"{line} - {project.description}"
        lines.append(line)
    return "\n".join(lines)
