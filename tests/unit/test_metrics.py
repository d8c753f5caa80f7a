from __future__ import annotations

from prometheus_client import REGISTRY

from projectbot.conversation import Orchestrator
from projectbot.observability import metrics


def _value(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_message_and_command_counters(orchestrator: Orchestrator) -> None:
    ok_before = _value("projectbot_messages_total", outcome="ok")
    list_before = _value("projectbot_commands_total", command="list-projects")
    calls_before = _value(
        "projectbot_backend_calls_total", operation="list_projects", outcome="ok"
    )

    orchestrator.handle_message("m", "/ls")

    assert _value("projectbot_messages_total", outcome="ok") == ok_before + 1
    assert _value("projectbot_commands_total", command="list-projects") == list_before + 1
    assert (
        _value("projectbot_backend_calls_total", operation="list_projects", outcome="ok")
        == calls_before + 1
    )
    assert _value("projectbot_backend_call_duration_seconds_count", operation="list_projects") > 0


def test_failed_message_counted_by_kind(orchestrator: Orchestrator, backend) -> None:
    before = _value("projectbot_messages_total", outcome="not_found")
    orchestrator.handle_message("m", "/assign nowhere user@example.com")
    orchestrator.handle_message("m", "admin")

    orchestrator.reply("m", "yes")

    assert _value("projectbot_messages_total", outcome="not_found") == before + 1


def test_exporter_disabled_for_non_positive_port(monkeypatch) -> None:
    started = []
    monkeypatch.setattr(metrics, "start_http_server", lambda port: started.append(port))
    monkeypatch.setattr(metrics, "_EXPORTER_STARTED", False)

    assert metrics.start_metrics_exporter(0) is False
    assert started == []


def test_exporter_starts_once(monkeypatch) -> None:
    started = []
    monkeypatch.setattr(metrics, "start_http_server", lambda port: started.append(port))
    monkeypatch.setattr(metrics, "_EXPORTER_STARTED", False)

    assert metrics.start_metrics_exporter(9464) is True
    assert metrics.start_metrics_exporter(9464) is False
    assert started == [9464]
