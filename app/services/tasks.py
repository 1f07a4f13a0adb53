from datetime import timedelta
from celery import Celery
from app.core.config import settings
from app.models.base import as_utc, utcnow

celery_app = Celery(
    "worker",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_BACKEND,
)
celery_app.conf.task_routes = {"app.services.tasks.send_follow_up_reminder": {"queue": "reminders"}}

@celery_app.task(bind=True, max_retries=3)
def send_follow_up_reminder(self, follow_up_id: str):
    import asyncio
    from app.services.tasks_internal import send_follow_up_reminder_async

    try:
        asyncio.run(send_follow_up_reminder_async(follow_up_id))
    except Exception as e:
        retry_kwargs = {"countdown": 2 ** self.request.retries}
        raise self.retry(exc=e, **retry_kwargs)


def schedule_reminder(follow_up) -> None:
    """Queue the reminder ahead of the follow-up; past-due ones go out immediately."""
    eta = as_utc(follow_up.scheduled_at) - timedelta(minutes=settings.REMINDER_LEAD_MINUTES)
    if eta <= utcnow():
        send_follow_up_reminder.delay(follow_up.id)
    else:
        send_follow_up_reminder.apply_async(args=[follow_up.id], eta=eta)
