from unittest.mock import patch

from autowhiz.celery_app import celery_app
from autowhiz.core.config import settings
from autowhiz.services.analysis_queue import PROCESS_ANALYSIS_TASK, enqueue_analysis


def test_no_broker_leaves_analysis_pending(monkeypatch):
    monkeypatch.setattr(settings, "CELERY_BROKER_URL", "")
    with patch.object(celery_app, "send_task") as send_task:
        assert enqueue_analysis("a-1") is False
    send_task.assert_not_called()


def test_dispatches_to_worker(monkeypatch):
    monkeypatch.setattr(settings, "CELERY_BROKER_URL", "redis://localhost:6379/0")
    with patch.object(celery_app, "send_task") as send_task:
        assert enqueue_analysis("a-1") is True
    send_task.assert_called_once_with(PROCESS_ANALYSIS_TASK, args=["a-1"])


def test_broker_failure_is_not_raised(monkeypatch):
    monkeypatch.setattr(settings, "CELERY_BROKER_URL", "redis://localhost:6379/0")
    with patch.object(celery_app, "send_task", side_effect=ConnectionError("broker down")):
        assert enqueue_analysis("a-1") is False
