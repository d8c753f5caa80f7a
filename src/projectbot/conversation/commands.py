"""Command registry, slash-command parsing and keyword intent detection."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable

from projectbot.conversation.state import ConversationState

__all__ = [
    "Command",
    "CommandRegistry",
    "ParsedCommand",
    "Intent",
    "DetectedIntent",
    "parse_command",
    "detect_intent",
    "format_help",
    "format_command_help",
    "WELCOME_MESSAGE",
    "HELP_MESSAGE",
    "unknown_input_message",
]

Handler = Callable[[ConversationState, list[str]], str]


@dataclass
class Command:
    name: str
    description: str
    usage: str = ""
    aliases: tuple[str, ...] = ()
    handler: Handler | None = None


class CommandRegistry:
    """Commands addressable by name or alias (case-insensitive)."""

    def __init__(self, commands: Iterable[Command] = ()):
        self._commands: dict[str, Command] = {}
        self._aliases: dict[str, Command] = {}
        for command in commands:
            self.register(command)

    def register(self, command: Command) -> None:
        self._commands[command.name.lower()] = command
        for alias in command.aliases:
            self._aliases[alias.lower()] = command

    def get(self, name: str) -> Command | None:
        key = name.lower()
        return self._commands.get(key) or self._aliases.get(key)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def list(self) -> list[Command]:
        return sorted(self._commands.values(), key=lambda c: c.name)


@dataclass(frozen=True)
class ParsedCommand:
    name: str
    args: list[str] = field(default_factory=list)
    command: Command | None = None


def parse_command(text: str, registry: CommandRegistry) -> ParsedCommand | None:
    """Parse ``/name args...`` or a bare known command word.

    Returns None when the text is not a command at all. A leading ``/`` with an
    unknown name yields a ParsedCommand whose ``command`` is None.
    """
    fields_ = (text or "").split()
    if not fields_:
        return None
    head, args = fields_[0], fields_[1:]
    slashed = head.startswith("/")
    name = head.lstrip("/")
    command = registry.get(name) if name else None
    if command is None and not slashed:
        return None
    if not slashed and args and args[0].lower() in _FILLER_WORDS:
        return None
    return ParsedCommand(name=name, args=args, command=command)


class Intent(str, Enum):
    CREATE_PROJECT = "create-project"
    ASSIGN_ROLE = "assign-role"
    LIST_PROJECTS = "list-projects"
    HELP = "help"


@dataclass(frozen=True)
class DetectedIntent:
    intent: Intent
    args: list[str] = field(default_factory=list)


# Words that make a bare command word read as prose ("new project", "list projects").
_FILLER_WORDS = frozenset(
    {"a", "an", "the", "new", "my", "me", "project", "projects", "role", "roles"}
)

_NAME_RE = re.compile(r"\b(?:called|named)\s+([A-Za-z0-9][\w.-]*)", re.IGNORECASE)
_PROJECT_RE = re.compile(r"\bproject\s+([A-Za-z0-9][\w-]*)", re.IGNORECASE)
_EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")


def detect_intent(message: str) -> DetectedIntent | None:
    """Match free text against keyword heuristics."""
    msg = (message or "").strip().lower()
    if not msg:
        return None

    wants_create = ("create" in msg or "make" in msg) and ("project" in msg or "new" in msg)
    if wants_create or "new project" in msg:
        match = _NAME_RE.search(message)
        return DetectedIntent(Intent.CREATE_PROJECT, [match.group(1)] if match else [])

    if "assign" in msg or "role" in msg or "user" in msg:
        args: list[str] = []
        project = _PROJECT_RE.search(message)
        if project:
            args.append(project.group(1))
            email = _EMAIL_RE.search(message)
            if email:
                args.append(email.group(0))
        return DetectedIntent(Intent.ASSIGN_ROLE, args)

    if "list" in msg or "show" in msg or "projects" in msg:
        return DetectedIntent(Intent.LIST_PROJECTS)

    if "help" in msg:
        return DetectedIntent(Intent.HELP)

    return None


def format_help(commands: Iterable[Command]) -> str:
    commands = list(commands)
    width = max((len(c.name) for c in commands), default=0) + 3
    lines = ["Available commands:", "------------------"]
    for command in commands:
        lines.append(f"{('/' + command.name).ljust(width)}{command.description}")
        if command.usage:
            lines.append(f"  Usage: {command.usage}")
    return "\n".join(lines)


def format_command_help(command: Command) -> str:
    lines = [f"Command: /{command.name}"]
    if command.aliases:
        lines.append(f"Aliases: {', '.join(command.aliases)}")
    lines.append(f"Description: {command.description}")
    if command.usage:
        lines.append(f"Usage: {command.usage}")
    return "\n".join(lines)


WELCOME_MESSAGE = """👋 Hello! I'm your Nobl9 Project Bot. I can help you:

🏗️  Create new projects - just say "create project" or "new project"
👥 Assign user roles - say "assign role" to manage user permissions
📋 List projects - say "list projects" to see available projects

Quick start:
• Type "create project" to create a new Nobl9 project
• Type "help" anytime to see the help
• Type "quit" or "exit" to leave

What would you like to do?"""

HELP_MESSAGE = """🤖 Nobl9 Project Bot Help

Available commands:
• create-project [name] (or "create", "new") - Create a new Nobl9 project
• assign-role [project] [user] (or "assign", "role") - Assign a role to a user
• list-projects (or "list", "ls") - List available projects
• help [command] - Show this help, or details for one command

Any command works without arguments: I'll ask for whatever is missing.

Natural language:
• "I want to create a new project"
• "Create a project called my-service"
• "Assign a role in project my-service to user@example.com"
• "Show me the projects"

Examples:
• create-project my-awesome-service
• assign-role my-project user@example.com"""


def unknown_input_message(message: str) -> str:
    return f"""I'm not sure what you mean by "{message.strip()}".

Here are some things you can try:
• create-project - Create a new project
• assign-role - Assign user roles
• list-projects - List available projects
• help - Show detailed help

Or try describing what you want to do in your own words!"""
