from temporalio import activity
from temporalio.exceptions import ApplicationError
from email.message import EmailMessage
from typing import Dict, List, Optional
import asyncio
import smtplib

from utils.config import Settings


class SmtpMailer:
    """Sends mail through an authenticated SMTP relay"""

    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.timeout = settings.smtp_timeout
        self.sender = settings.email_user
        self._password = settings.email_pass.get_secret_value() if settings.email_pass else None

    @property
    def configured(self) -> bool:
        return bool(self.sender and self._password)

    def send(self, message: EmailMessage):
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.starttls()
            smtp.login(self.sender, self._password)
            smtp.send_message(message)


def _format_amount(value: float) -> str:
    return f"₹{value:.2f}"


def _item_lines(items: List[Dict]) -> List[str]:
    return [
        f"  - {item.get('name')} x {item.get('quantity')}: {_format_amount(item.get('price', 0) * item.get('quantity', 0))}"
        for item in items
    ]


def render_owner_notification(order: Dict) -> str:
    customer = order.get("customerDetails", {})
    lines = [
        "New order received.",
        "",
        f"Order ID: {order.get('orderId')}",
        f"Order Date: {order.get('orderDate')}",
        f"Total Amount: {_format_amount(order.get('totalAmount', 0) + order.get('taxAmount', 0))}",
        "",
        "Customer:",
        f"  {customer.get('name')} <{customer.get('email')}>",
        f"  Phone: {customer.get('phone')}",
        f"  {customer.get('address')}",
        f"  {customer.get('city')}, {customer.get('state')} {customer.get('zipCode')}",
        "",
        "Items:",
        *_item_lines(order.get("items", [])),
        "",
        "Please process this order and arrange for delivery.",
    ]
    return "\n".join(lines)


def render_customer_confirmation(order: Dict) -> str:
    customer = order.get("customerDetails", {})
    lines = [
        f"Hi {customer.get('name')},",
        "",
        "Thank you for your order. We will let you know when it ships.",
        "",
        f"Order ID: {order.get('orderId')}",
        f"Order Date: {order.get('orderDate')}",
        f"Total Amount: {_format_amount(order.get('totalAmount', 0) + order.get('taxAmount', 0))}",
        "",
        "Items:",
        *_item_lines(order.get("items", [])),
        "",
        "Shipping to:",
        f"  {customer.get('name')}",
        f"  {customer.get('address')}",
        f"  {customer.get('city')}, {customer.get('state')} {customer.get('zipCode')}",
        f"  Phone: {customer.get('phone')}",
    ]
    return "\n".join(lines)


class NotificationActivities:
    """Mail activities for a created order; registered on the notification worker"""

    def __init__(self, mailer: SmtpMailer, owner_email: Optional[str]):
        self._mailer = mailer
        self._owner_email = owner_email

    async def _deliver(self, to: str, subject: str, body: str) -> dict:
        if not self._mailer.configured:
            raise ApplicationError("Mail transport is not configured", non_retryable=True)

        message = EmailMessage()
        message["From"] = self._mailer.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        try:
            await asyncio.to_thread(self._mailer.send, message)
        except smtplib.SMTPAuthenticationError as e:
            activity.logger.error(f"SMTP authentication failed while sending '{subject}'")
            raise ApplicationError("SMTP authentication failed", non_retryable=True) from e
        except (smtplib.SMTPException, OSError) as e:
            # Retried by the workflow's retry policy
            activity.logger.warning(f"Failed to send '{subject}' to {to}: {type(e).__name__}")
            raise

        activity.logger.info(f"Sent '{subject}' to {to}")
        return {"to": to, "subject": subject, "status": "SENT"}

    @activity.defn
    async def send_owner_notification(self, order: dict) -> dict:
        order_id = order.get("orderId")
        if not self._owner_email:
            raise ApplicationError("No owner mailbox configured", non_retryable=True)
        activity.logger.info(f"Notifying owner about order {order_id}")
        return await self._deliver(
            self._owner_email,
            f"New Order Received - {order_id}",
            render_owner_notification(order),
        )

    @activity.defn
    async def send_customer_confirmation(self, order: dict) -> dict:
        order_id = order.get("orderId")
        customer_email = order.get("customerDetails", {}).get("email")
        if not customer_email:
            raise ApplicationError(f"Order {order_id} has no customer email", non_retryable=True)
        activity.logger.info(f"Sending confirmation for order {order_id} to customer")
        return await self._deliver(
            customer_email,
            f"Order Confirmation - {order_id}",
            render_customer_confirmation(order),
        )

    def all(self) -> list:
        return [self.send_owner_notification, self.send_customer_confirmation]
