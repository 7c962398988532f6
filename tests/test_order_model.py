import re
from datetime import datetime, timezone

import pytest

from models.order import (
    CatalogProduct,
    Order,
    OrderItem,
    OrderStatus,
    SyntheticProduct,
    generate_order_id,
    parse_product_ref,
)
from models.payment import PaymentDetails, PaymentMethod, PaymentStatus
from services.exceptions import ValidationError
from tests.helpers import CUSTOMER

ORDER_ID_PATTERN = re.compile(r"^DAISY\d{6}[0-9A-Z]{5}$")


def _create(**overrides):
    fields = dict(
        customer_details=dict(CUSTOMER),
        items=[{"productId": "abc123", "name": "Widget", "price": 100.0, "quantity": 2}],
        total_amount=200.0,
        owner_id="user-1",
    )
    fields.update(overrides)
    return Order.create(**fields)


class TestOrderId:
    def test_matches_format(self):
        assert ORDER_ID_PATTERN.match(generate_order_id())

    def test_uses_given_prefix(self):
        assert re.match(r"^ORD\d{6}[0-9A-Z]{5}$", generate_order_id("ORD"))

    def test_ids_are_unique(self):
        ids = {generate_order_id() for _ in range(200)}
        assert len(ids) == 200

    def test_created_order_gets_id(self):
        assert ORDER_ID_PATTERN.match(_create().order_id)


class TestTax:
    @pytest.mark.parametrize("total", [200.0, 99.99, 1, 12345.67])
    def test_tax_is_eighteen_percent(self, total):
        order = _create(total_amount=total)
        assert order.tax_amount == total * 0.18

    def test_tax_from_input_is_ignored(self):
        order = _create(tax_amount=1.0)
        assert order.tax_amount == 200.0 * 0.18

    def test_setting_total_recomputes_tax(self):
        order = _create()
        order.set_total_amount(500.0)
        assert order.total_amount == 500.0
        assert order.tax_amount == 500.0 * 0.18


class TestCreateValidation:
    def test_defaults(self):
        order = _create()
        assert order.payment_status == PaymentStatus.PENDING
        assert order.order_status == OrderStatus.PENDING
        assert order.payment_method == PaymentMethod.GATEWAY
        assert order.shipping_method == "standard"
        assert order.customer_details.country == "India"
        assert order.owner_id == "user-1"

    def test_owner_cannot_be_supplied_by_client(self):
        order = _create(customer_details={**CUSTOMER, "userId": "someone-else"})
        assert order.owner_id == "user-1"

    def test_missing_customer_field(self):
        details = dict(CUSTOMER)
        del details["zipCode"]
        with pytest.raises(ValidationError) as exc:
            _create(customer_details=details)
        assert exc.value.message == "Missing customer detail: zipCode"

    def test_empty_customer_field(self):
        with pytest.raises(ValidationError) as exc:
            _create(customer_details={**CUSTOMER, "phone": ""})
        assert exc.value.message == "Missing customer detail: phone"

    def test_empty_items(self):
        with pytest.raises(ValidationError):
            _create(items=[])

    def test_zero_total_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _create(total_amount=0)
        assert exc.value.message == "Missing required order details"

    def test_negative_total_is_not_rejected(self):
        order = _create(total_amount=-10.0)
        assert order.total_amount == -10.0

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            _create(items=[{"productId": "abc123", "name": "Widget", "price": 10.0, "quantity": 0}])

    def test_order_date_is_kept(self):
        when = datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)
        assert _create(order_date=when).order_date == when

    def test_naive_order_date_is_utc(self):
        order = _create(order_date=datetime(2024, 5, 1, 10, 30))
        assert order.order_date.tzinfo == timezone.utc


class TestProductRef:
    @pytest.mark.parametrize("raw", [42, 3.5, "42", " 7 ", "12.5", "1e3", "0x1A", "-Infinity"])
    def test_numeric_ids_are_synthetic(self, raw):
        assert isinstance(parse_product_ref(raw), SyntheticProduct)

    @pytest.mark.parametrize("raw", ["abc123", "65f1c0ffee", "PROD-001", "nan", "1_000", "inf", "0x_1A"])
    def test_other_ids_are_catalog(self, raw):
        assert isinstance(parse_product_ref(raw), CatalogProduct)

    def test_item_serializes_product_id_as_string(self):
        item = OrderItem.model_validate({"productId": 42, "name": "Demo", "price": 1.0, "quantity": 1})
        assert not item.is_stock_tracked
        assert item.model_dump(by_alias=True)["productId"] == "42"


class TestStatusTransitions:
    def test_paid_confirms_order(self):
        order = _create()
        order.set_payment_status(PaymentStatus.PAID)
        assert order.payment_status == PaymentStatus.PAID
        assert order.order_status == OrderStatus.CONFIRMED

    def test_paid_always_confirms_order(self):
        order = _create()
        order.order_status = OrderStatus.SHIPPED
        order.set_payment_status(PaymentStatus.PAID)
        assert order.order_status == OrderStatus.CONFIRMED

    def test_failed_keeps_order_pending(self):
        order = _create()
        order.set_payment_status(PaymentStatus.FAILED)
        assert order.order_status == OrderStatus.PENDING

    def test_mark_paid_sets_details(self):
        order = _create()
        details = PaymentDetails(razorpay_order_id="order_1", razorpay_payment_id="pay_1", razorpay_signature="sig")
        order.mark_paid(details)
        assert order.payment_details == details
        assert order.order_status == OrderStatus.CONFIRMED

    def test_ownership(self):
        order = _create()
        assert order.is_owned_by("user-1")
        assert not order.is_owned_by("user-2")


def test_to_dict_uses_camel_case():
    data = _create().to_dict()
    for key in ["orderId", "customerDetails", "totalAmount", "taxAmount", "paymentStatus", "orderStatus", "orderDate", "updatedAt"]:
        assert key in data
    assert data["customerDetails"]["zipCode"] == "560001"
    assert data["items"][0]["productId"] == "abc123"
