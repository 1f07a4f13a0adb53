"""
Reminder scheduling and webhook delivery
"""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.core.config import settings
from app.services import tasks
from app.services import tasks_internal
from app.services.webhook import send_webhook


@pytest.mark.webhooks
class TestSendWebhook:

    @pytest.mark.asyncio
    async def test_skipped_without_url(self, monkeypatch):
        monkeypatch.setattr(settings, "WEBHOOK_URL", None)
        assert await send_webhook({"event": "follow_up.reminder"}) is False

    @pytest.mark.asyncio
    async def test_success(self, monkeypatch):
        monkeypatch.setattr(settings, "WEBHOOK_URL", "http://hooks.test/reminders")
        post = AsyncMock(return_value=httpx.Response(200))

        with patch.object(httpx.AsyncClient, "post", post):
            assert await send_webhook({"event": "follow_up.reminder"}) is True
        assert post.await_count == 1

    @pytest.mark.asyncio
    async def test_retries_then_gives_up(self, monkeypatch):
        monkeypatch.setattr(settings, "WEBHOOK_URL", "http://hooks.test/reminders")
        post = AsyncMock(side_effect=httpx.ConnectError("refused"))

        with patch.object(httpx.AsyncClient, "post", post), \
                patch("app.services.webhook.asyncio.sleep", AsyncMock()):
            assert await send_webhook({"event": "follow_up.reminder"}, retries=3) is False
        assert post.await_count == 3


class TestScheduleReminder:

    def test_future_follow_up_uses_eta(self, monkeypatch):
        task = MagicMock()
        monkeypatch.setattr(tasks, "send_follow_up_reminder", task)
        scheduled = datetime.now(timezone.utc) + timedelta(days=1)

        tasks.schedule_reminder(SimpleNamespace(id="f1", scheduled_at=scheduled))

        task.apply_async.assert_called_once()
        eta = task.apply_async.call_args.kwargs["eta"]
        assert eta == scheduled - timedelta(minutes=settings.REMINDER_LEAD_MINUTES)

    def test_due_follow_up_sent_now(self, monkeypatch):
        task = MagicMock()
        monkeypatch.setattr(tasks, "send_follow_up_reminder", task)

        tasks.schedule_reminder(SimpleNamespace(id="f1", scheduled_at=datetime.now(timezone.utc)))

        task.delay.assert_called_once_with("f1")


class TestReminderDelivery:

    @pytest.mark.asyncio
    async def test_skips_resolved_follow_up(self, monkeypatch):
        follow_up = SimpleNamespace(id="f1", status="completed", reminder=True)
        session = AsyncMock()
        session.get = AsyncMock(return_value=follow_up)
        factory = MagicMock()
        factory.return_value.__aenter__ = AsyncMock(return_value=session)
        factory.return_value.__aexit__ = AsyncMock(return_value=False)
        monkeypatch.setattr(tasks_internal, "AsyncSessionLocal", factory)
        webhook = AsyncMock()
        monkeypatch.setattr(tasks_internal, "send_webhook", webhook)

        assert await tasks_internal.send_follow_up_reminder_async("f1") is False
        webhook.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sends_pending_reminder(self, monkeypatch):
        scheduled = datetime(2024, 3, 1, 10, tzinfo=timezone.utc)
        follow_up = SimpleNamespace(
            id="f1", lead_id="l1", user_id="u1", status="pending", reminder=True,
            type="call", scheduled_at=scheduled, notes=None,
        )
        lead = SimpleNamespace(name="Priya", phone="9876543210")
        session = AsyncMock()
        session.get = AsyncMock(side_effect=[follow_up, lead])
        factory = MagicMock()
        factory.return_value.__aenter__ = AsyncMock(return_value=session)
        factory.return_value.__aexit__ = AsyncMock(return_value=False)
        monkeypatch.setattr(tasks_internal, "AsyncSessionLocal", factory)
        webhook = AsyncMock(return_value=True)
        monkeypatch.setattr(tasks_internal, "send_webhook", webhook)

        assert await tasks_internal.send_follow_up_reminder_async("f1") is True
        payload = webhook.await_args.args[0]
        assert payload["event"] == "follow_up.reminder"
        assert payload["lead_name"] == "Priya"
        assert payload["scheduled_at"] == scheduled.isoformat()
