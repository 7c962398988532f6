from abc import ABC, abstractmethod
from typing import Optional
import logging

from temporalio.client import Client

from models.order import Order
from services.exceptions import UpstreamError
from workflows.notification_workflow import NotificationWorkflow

logger = logging.getLogger(__name__)


class NotificationDispatcher(ABC):

    @abstractmethod
    async def order_created(self, order: Order):
        """Queue owner notification and customer confirmation for a new order"""
        ...


class TemporalNotificationDispatcher(NotificationDispatcher):
    """Hands notifications to the Temporal worker without waiting for delivery"""

    def __init__(self, client: Optional[Client], task_queue: str = "notification-task-queue"):
        self._client = client
        self._task_queue = task_queue

    async def order_created(self, order: Order):
        if self._client is None:
            raise UpstreamError("Notification service unavailable")

        workflow_id = f"order-notifications-{order.order_id}"
        await self._client.start_workflow(
            NotificationWorkflow.run,
            order.to_dict(),
            id=workflow_id,
            task_queue=self._task_queue,
        )
        logger.info(f"Queued notifications for order {order.order_id} as workflow {workflow_id}")
