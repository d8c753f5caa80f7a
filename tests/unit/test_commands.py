from __future__ import annotations

import pytest

from projectbot.conversation.commands import (
    Command,
    CommandRegistry,
    Intent,
    detect_intent,
    format_command_help,
    format_help,
    parse_command,
)


@pytest.fixture
def registry() -> CommandRegistry:
    return CommandRegistry(
        [
            Command(
                "create-project", "Create a project", "create-project [name]", ("create", "new")
            ),
            Command("list-projects", "List projects", "list-projects", ("list", "ls")),
            Command("help", "Show help", "help [command]", ("h", "?")),
        ]
    )


def test_registry_resolves_names_and_aliases(registry: CommandRegistry) -> None:
    assert registry.get("create-project").name == "create-project"
    assert registry.get("NEW").name == "create-project"
    assert registry.get("ls").name == "list-projects"
    assert registry.get("nope") is None
    assert "create" in registry
    assert [c.name for c in registry.list()] == ["create-project", "help", "list-projects"]


@pytest.mark.parametrize(
    ("text", "name", "args"),
    [
        ("/create", "create-project", []),
        ("/create my-svc", "create-project", ["my-svc"]),
        ("create-project  my-svc   extra", "create-project", ["my-svc", "extra"]),
        ("ls", "list-projects", []),
        ("/Help create", "help", ["create"]),
    ],
)
def test_parse_command_known(
    registry: CommandRegistry, text: str, name: str, args: list[str]
) -> None:
    parsed = parse_command(text, registry)
    assert parsed is not None
    assert parsed.command is not None
    assert parsed.command.name == name
    assert parsed.args == args


def test_parse_command_unknown_slash_command(registry: CommandRegistry) -> None:
    parsed = parse_command("/frobnicate now", registry)
    assert parsed is not None
    assert parsed.command is None
    assert parsed.name == "frobnicate"


@pytest.mark.parametrize(
    "text",
    ["", "   ", "hello there", "new project", "list projects", "create a project called x"],
)
def test_parse_command_leaves_prose_alone(registry: CommandRegistry, text: str) -> None:
    assert parse_command(text, registry) is None


@pytest.mark.parametrize(
    ("text", "intent", "args"),
    [
        ("I want to create a new project", Intent.CREATE_PROJECT, []),
        ("new project", Intent.CREATE_PROJECT, []),
        ("Create a project called my-service", Intent.CREATE_PROJECT, ["my-service"]),
        ("please make a new project named billing.api", Intent.CREATE_PROJECT, ["billing.api"]),
        ("assign roles to users", Intent.ASSIGN_ROLE, []),
        ("assign a role in project my-svc", Intent.ASSIGN_ROLE, ["my-svc"]),
        (
            "Assign a role in project my-svc to user@example.com",
            Intent.ASSIGN_ROLE,
            ["my-svc", "user@example.com"],
        ),
        ("show me everything", Intent.LIST_PROJECTS, []),
        ("which projects exist?", Intent.LIST_PROJECTS, []),
        ("I need help", Intent.HELP, []),
    ],
)
def test_detect_intent(text: str, intent: Intent, args: list[str]) -> None:
    detected = detect_intent(text)
    assert detected is not None
    assert detected.intent is intent
    assert detected.args == args


@pytest.mark.parametrize("text", ["", "good morning", "what is the weather"])
def test_detect_intent_none(text: str) -> None:
    assert detect_intent(text) is None


def test_format_help_lists_commands_with_usage(registry: CommandRegistry) -> None:
    text = format_help(registry.list())
    assert text.startswith("Available commands:")
    assert "/create-project" in text
    assert "  Usage: list-projects" in text


def test_format_command_help(registry: CommandRegistry) -> None:
    text = format_command_help(registry.get("create"))
    assert text.splitlines() == [
        "Command: /create-project",
        "Aliases: create, new",
        "Description: Create a project",
        "Usage: create-project [name]",
    ]
