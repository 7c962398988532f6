import asyncio
import smtplib

import pytest
from temporalio.exceptions import ApplicationError
from temporalio.testing import ActivityEnvironment

from activities.notification_activities import (
    NotificationActivities,
    render_customer_confirmation,
    render_owner_notification,
)
from models.order import Order
from tests.helpers import CUSTOMER, FakeMailer


@pytest.fixture
def order():
    return Order.create(
        dict(CUSTOMER),
        [{"productId": "abc123", "name": "Widget", "price": 100.0, "quantity": 2}],
        200.0,
        owner_id="user-1",
    ).to_dict()


def _run(fn, *args):
    return asyncio.run(ActivityEnvironment().run(fn, *args))


def test_owner_notification(order):
    mailer = FakeMailer()
    activities = NotificationActivities(mailer, "owner@example.com")

    result = _run(activities.send_owner_notification, order)

    assert result == {"to": "owner@example.com", "subject": f"New Order Received - {order['orderId']}", "status": "SENT"}
    message = mailer.sent[0]
    assert message["To"] == "owner@example.com"
    assert message["From"] == "shop@example.com"
    assert "Asha Rao" in message.get_content()


def test_customer_confirmation(order):
    mailer = FakeMailer()
    activities = NotificationActivities(mailer, "owner@example.com")

    result = _run(activities.send_customer_confirmation, order)

    assert result["to"] == "asha@example.com"
    assert result["subject"] == f"Order Confirmation - {order['orderId']}"
    assert mailer.sent[0]["To"] == "asha@example.com"


def test_missing_owner_mailbox_is_not_retried(order):
    activities = NotificationActivities(FakeMailer(), None)
    with pytest.raises(ApplicationError) as exc:
        _run(activities.send_owner_notification, order)
    assert exc.value.non_retryable


def test_missing_customer_email_is_not_retried(order):
    order["customerDetails"]["email"] = None
    activities = NotificationActivities(FakeMailer(), "owner@example.com")
    with pytest.raises(ApplicationError) as exc:
        _run(activities.send_customer_confirmation, order)
    assert exc.value.non_retryable


def test_unconfigured_mailer(order):
    mailer = FakeMailer(configured=False)
    activities = NotificationActivities(mailer, "owner@example.com")
    with pytest.raises(ApplicationError) as exc:
        _run(activities.send_owner_notification, order)
    assert exc.value.non_retryable
    assert mailer.sent == []


def test_bad_credentials_are_not_retried(order):
    mailer = FakeMailer(errors=[smtplib.SMTPAuthenticationError(535, b"bad credentials")])
    activities = NotificationActivities(mailer, "owner@example.com")
    with pytest.raises(ApplicationError) as exc:
        _run(activities.send_owner_notification, order)
    assert exc.value.non_retryable


def test_transient_smtp_error_propagates_for_retry(order):
    mailer = FakeMailer(errors=[smtplib.SMTPServerDisconnected("connection lost")])
    activities = NotificationActivities(mailer, "owner@example.com")
    with pytest.raises(smtplib.SMTPServerDisconnected):
        _run(activities.send_owner_notification, order)


def test_rendered_totals_include_tax(order):
    assert "Total Amount: ₹236.00" in render_owner_notification(order)
    confirmation = render_customer_confirmation(order)
    assert "Total Amount: ₹236.00" in confirmation
    assert "Widget x 2: ₹200.00" in confirmation
