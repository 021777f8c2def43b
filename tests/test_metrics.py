# tests/test_metrics.py

from __future__ import annotations

import logging

from prometheus_client import REGISTRY

from deadline_notification import handlers
from deadline_notification.reminders import metrics
from deadline_notification.reminders.dispatcher import ReminderDispatcher
from deadline_notification.reminders.reconciler import ScheduleReconciler

from .conftest import NOW
from .fakes import FakeDelivery, FakeDirectory, FakeTaskStore, change, task

ACTIVE = {"taskId": "t1", "status": "active", "deadline": "2025-05-01T10:00:00+00:00", "assigneeId": "u1"}


def sample(name: str, **labels: str) -> float:
    # Labelled children only appear once touched
    return REGISTRY.get_sample_value(name, labels) or 0.0


def _unexpected_push(*args, **kwargs) -> None:
    raise AssertionError("push_to_gateway called without a gateway")


def test_scheduling_moves_reconciler_counters(gateway, settings) -> None:
    created = sample("reminder_schedules_created_total")
    deleted = sample("reminder_schedules_deleted_total")
    replaced = sample("reminder_records_processed_total", action="create_or_replace")

    ScheduleReconciler(gateway, settings, clock=lambda: NOW).reconcile(change("INSERT", ACTIVE))

    assert sample("reminder_schedules_created_total") == created + 1
    assert sample("reminder_schedules_deleted_total") == deleted + 1
    assert sample("reminder_records_processed_total", action="create_or_replace") == replaced + 1


def test_scheduler_failure_is_counted_by_operation(gateway, settings) -> None:
    gateway.fail_create.add("TaskReminder_t1")
    before = sample("reminder_scheduler_call_failures_total", operation="create")

    ScheduleReconciler(gateway, settings, clock=lambda: NOW).reconcile(change("INSERT", ACTIVE))

    assert sample("reminder_scheduler_call_failures_total", operation="create") == before + 1


def test_unreadable_record_is_counted_as_ignored(gateway, settings) -> None:
    before = sample("reminder_records_processed_total", action="ignore")

    ScheduleReconciler(gateway, settings, clock=lambda: NOW).reconcile_batch(["garbage"])

    assert sample("reminder_records_processed_total", action="ignore") == before + 1


def test_dispatch_outcomes_are_counted_by_status_and_reason(settings) -> None:
    dispatcher = ReminderDispatcher(
        FakeTaskStore(tasks={"t1": task(**ACTIVE)}),
        FakeDirectory(),
        FakeDelivery(),
        settings,
    )
    before = sample("reminders_dispatch_total", status="skipped", reason="no_contact")

    dispatcher.dispatch("t1")

    assert sample("reminders_dispatch_total", status="skipped", reason="no_contact") == before + 1


def test_publish_pushes_registry_when_gateway_configured(monkeypatch) -> None:
    pushed = []
    monkeypatch.setattr(
        metrics, "push_to_gateway", lambda url, job, registry: pushed.append((url, job, registry))
    )

    metrics.publish("pushgateway:9091", "deadline-notification")

    assert pushed == [("pushgateway:9091", "deadline-notification", REGISTRY)]


def test_publish_without_gateway_logs_exposition(monkeypatch, caplog) -> None:
    monkeypatch.setattr(metrics, "push_to_gateway", _unexpected_push)

    with caplog.at_level(logging.DEBUG, logger=metrics.__name__):
        metrics.publish(None, "deadline-notification")

    assert "reminder_schedules_created_total" in caplog.text


def test_failed_push_does_not_fail_invocation(monkeypatch, caplog) -> None:
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(metrics, "push_to_gateway", refuse)

    with caplog.at_level(logging.WARNING, logger=metrics.__name__):
        metrics.publish("pushgateway:9091", "deadline-notification")

    assert "Failed to push metrics" in caplog.text


def test_handlers_publish_after_each_invocation(monkeypatch, gateway, settings) -> None:
    settings = settings.model_copy(update={"PUSHGATEWAY_URL": "pushgateway:9091"})
    reconciler = ScheduleReconciler(gateway, settings, clock=lambda: NOW)
    dispatcher = ReminderDispatcher(FakeTaskStore(), FakeDirectory(), FakeDelivery(), settings)
    monkeypatch.setattr(handlers, "get_reconciler", lambda: reconciler)
    monkeypatch.setattr(handlers, "get_dispatcher", lambda: dispatcher)
    published = []
    monkeypatch.setattr(metrics, "publish", lambda url, job: published.append((url, job)))

    handlers.reconcile_handler({"Records": []}, None)
    handlers.dispatch_handler({"taskId": "t1"}, None)

    assert published == [("pushgateway:9091", "deadline-notification")] * 2
