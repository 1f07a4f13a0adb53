import httpx
import asyncio
import logging
import time
from app.core.config import settings
from app.core.metrics import webhook_deliveries, webhook_duration

logger = logging.getLogger(__name__)


async def send_webhook(payload: dict, retries: int | None = None) -> bool:

    if not settings.WEBHOOK_URL:
        logger.info(f"No WEBHOOK_URL configured, skipping {payload.get('event')} notification")
        return False

    if retries is None:
        retries = settings.WEBHOOK_RETRIES

    ref = f"{payload.get('event')} for follow-up {payload.get('follow_up_id')}"
    backoff = 1.0

    for attempt in range(1, retries + 1):
        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT) as client:
                response = await client.post(settings.WEBHOOK_URL, json=payload)

                if 200 <= response.status_code < 300:
                    webhook_deliveries.labels(status="success", retry_count=str(attempt - 1)).inc()
                    webhook_duration.labels(status="success").observe(time.time() - start_time)
                    logger.info(f"Webhook delivery succeeded: {ref}")
                    return True
                else:
                    logger.warning(
                        f"Webhook delivery failed (attempt {attempt}/{retries}): "
                        f"Status {response.status_code}, {ref}"
                    )
        except httpx.TimeoutException:
            logger.warning(f"Webhook timeout (attempt {attempt}/{retries}), {ref}")
        except httpx.HTTPError as e:
            logger.warning(f"Webhook delivery error (attempt {attempt}/{retries}): {e}, {ref}")

        webhook_duration.labels(status="failure").observe(time.time() - start_time)
        if attempt < retries:
            await asyncio.sleep(backoff)
            backoff *= 2.0

    webhook_deliveries.labels(status="failure", retry_count=str(retries)).inc()
    logger.error(f"Webhook delivery failed after {retries} attempts: {ref}")
    return False
