import asyncio
import logging

from temporalio.worker import Worker

from activities.notification_activities import NotificationActivities, SmtpMailer
from utils.config import Settings
from utils.logging import configure_logging
from utils.temporal import get_temporal_client
from workflows.notification_workflow import NotificationWorkflow

logger = logging.getLogger(__name__)


async def main():
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    logger.info(f"Connecting to Temporal at {settings.temporal_address}...")
    try:
        client = await get_temporal_client(settings)
        logger.info(f"Successfully connected to namespace: {settings.temporal_namespace}")

        mailer = SmtpMailer(settings)
        if not mailer.configured:
            logger.warning("EMAIL_USER/EMAIL_PASS not set; notification activities will fail without retrying")
        notification_activities = NotificationActivities(mailer, settings.notification_recipient)

        logger.info(f"Creating notification worker for task queue: {settings.notification_task_queue}")
        notification_worker = Worker(
            client,
            task_queue=settings.notification_task_queue,
            workflows=[NotificationWorkflow],
            activities=notification_activities.all(),
            max_concurrent_activities=50,
        )

        logger.info("Starting notification worker... Press Ctrl+C to exit")
        await notification_worker.run()
    except Exception as e:
        logger.error(f"Error in worker: {e}")
        raise


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Worker shutdown complete")
