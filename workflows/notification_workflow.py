from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError
from datetime import timedelta

with workflow.unsafe.imports_passed_through():
    from activities.notification_activities import NotificationActivities


@workflow.defn(name="OrderNotificationWorkflow")
class NotificationWorkflow:
    def __init__(self):
        self._results = {}

        # Mail delivery is retried on its own schedule, independent of the API request
        self._mail_retry_policy = RetryPolicy(
            initial_interval=timedelta(seconds=2),
            backoff_coefficient=2.0,
            maximum_interval=timedelta(seconds=60),
            maximum_attempts=5,
        )

    @workflow.run
    async def run(self, order: dict) -> dict:
        order_id = order.get("orderId")
        workflow.logger.info(f"Starting notifications for order {order_id}")

        # One failed message must not stop the other
        for name, method in [
            ("owner", NotificationActivities.send_owner_notification),
            ("customer", NotificationActivities.send_customer_confirmation),
        ]:
            try:
                self._results[name] = await workflow.execute_activity_method(
                    method,
                    order,
                    retry_policy=self._mail_retry_policy,
                    start_to_close_timeout=timedelta(seconds=30),
                )
            except ActivityError as e:
                workflow.logger.error(f"{name} notification for order {order_id} failed: {e.cause or e}")
                self._results[name] = {"status": "FAILED"}

        workflow.logger.info(f"Notifications finished for order {order_id}: {self._results}")
        return self._results

    @workflow.query
    def get_results(self) -> dict:
        return self._results
