"""Tests for order totals and the checkout flow."""

import logging

import pytest
from sqlalchemy import update
from sqlmodel import select

from storefront.errors import InsufficientInventoryError, ValidationFailedError
from storefront.models.cart import Cart, CartItem
from storefront.models.order import Order, OrderNumberSequence
from storefront.models.product import Product
from storefront.models.promo_code import DiscountType, PromoCode
from storefront.schemas.checkout_schemas import CheckoutRequest
from storefront.services import checkout_service
from storefront.services.checkout_service import (
    compute_order_totals,
    place_order,
    validate_checkout_input,
)


def _fill_cart(session, user, *lines):
    """Put ``(product, quantity)`` lines straight into the user's cart, skipping stock checks."""
    cart = Cart(user_id=user.id)
    cart.items = [CartItem(product_id=product.id, quantity=quantity) for product, quantity in lines]
    session.add(cart)
    session.commit()
    return cart


def _checkout_body(address, **extra):
    body = {"shippingAddress": address, "paymentMethod": "paypal"}
    body.update(extra)
    return body


class TestComputeOrderTotals:
    def test_shipping_and_tax_added(self):
        totals = compute_order_totals(100.0, shipping_rate=10.0, tax_rate=0.1)

        assert totals.subtotal == 100.0
        assert totals.shipping == 10.0
        assert totals.tax == 10.0
        assert totals.discount == 0.0
        assert totals.total == 120.0

    def test_discount_subtracted(self):
        totals = compute_order_totals(100.0, discount=10.0, shipping_rate=10.0, tax_rate=0.1)
        assert totals.total == 110.0

    def test_total_is_sum_of_rounded_parts(self):
        totals = compute_order_totals(19.99 * 3, shipping_rate=10.0, tax_rate=0.1)

        assert totals.subtotal == 59.97
        assert totals.tax == 6.0
        assert totals.total == 75.97

    def test_defaults_come_from_settings(self):
        totals = compute_order_totals(50.0)
        assert totals.total == 65.0


class TestValidateCheckoutInput:
    def test_requires_address_and_method(self):
        with pytest.raises(ValidationFailedError) as exc:
            validate_checkout_input(CheckoutRequest(payment_method="paypal"))
        assert exc.value.detail == "Shipping address and payment method are required"

    def test_requires_every_address_field(self, shipping_address):
        shipping_address["city"] = "  "
        request = CheckoutRequest.model_validate(_checkout_body(shipping_address))

        with pytest.raises(ValidationFailedError) as exc:
            validate_checkout_input(request)
        assert exc.value.detail == "Please fill in all shipping address fields"

    def test_saved_address_by_id(self):
        request = CheckoutRequest.model_validate(_checkout_body({"id": 3}))
        validate_checkout_input(request)

    def test_unsupported_method(self, shipping_address):
        request = CheckoutRequest.model_validate(
            _checkout_body(shipping_address, paymentMethod="cash")
        )
        with pytest.raises(ValidationFailedError) as exc:
            validate_checkout_input(request)
        assert exc.value.detail == "Unsupported payment method"

    def test_card_needs_details(self, shipping_address):
        request = CheckoutRequest.model_validate(
            _checkout_body(
                shipping_address,
                paymentMethod="credit_card",
                paymentDetails={"number": "4242424242424242", "name": "A Buyer"},
            )
        )
        with pytest.raises(ValidationFailedError) as exc:
            validate_checkout_input(request)
        assert exc.value.detail == "Please fill in all payment details"


class TestCheckoutEndpoint:
    def test_requires_login(self, client, shipping_address):
        response = client.post("/checkout", json=_checkout_body(shipping_address))
        assert response.status_code == 401
        assert response.json()["detail"] == "You must be logged in to checkout"

    def test_empty_cart(self, client, user_headers, shipping_address):
        response = client.post("/checkout", json=_checkout_body(shipping_address), headers=user_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Cart is empty"

    def test_places_order(self, client, session, user, user_headers, make_product, shipping_address):
        mug = make_product(name="Mug", price=20.0, inventory=5, sku="MUG-1")
        pen = make_product(name="Pen", price=5.0, inventory=10)
        client.post("/cart", json={"productId": mug.id, "quantity": 4}, headers=user_headers)
        client.post("/cart", json={"productId": pen.id, "quantity": 4}, headers=user_headers)

        response = client.post("/checkout", json=_checkout_body(shipping_address), headers=user_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["order"]["number"] == "ORD-1001"
        assert data["order"]["status"] == "PENDING"
        assert data["order"]["total"] == 120.0

        session.expire_all()
        assert session.get(Product, mug.id).inventory == 1
        assert session.get(Product, pen.id).inventory == 6

        order = session.exec(select(Order)).one()
        assert order.subtotal == 100.0
        assert order.shipping == 10.0
        assert order.tax == 10.0
        assert order.payment_id.startswith("PAY-")
        assert order.address.city == "Springfield"
        snapshot = {item.name: (item.price, item.quantity, item.sku) for item in order.items}
        assert snapshot == {"Mug": (20.0, 4, "MUG-1"), "Pen": (5.0, 4, None)}

        cart = client.get("/cart", headers=user_headers).json()
        assert cart["items"] == []

    def test_order_numbers_increase(self, client, user_headers, make_product, shipping_address):
        product = make_product(inventory=10)
        numbers = []
        for _ in range(2):
            client.post("/cart", json={"productId": product.id}, headers=user_headers)
            response = client.post("/checkout", json=_checkout_body(shipping_address), headers=user_headers)
            numbers.append(response.json()["order"]["number"])

        assert numbers == ["ORD-1001", "ORD-1002"]

    def test_promo_applied_and_counted(self, client, session, user_headers, make_product, make_promo, shipping_address):
        product = make_product(price=100.0)
        promo = make_promo(code="TENOFF", discount_type=DiscountType.FIXED_AMOUNT, discount_amount=10, usage_limit=5)
        client.post("/cart", json={"productId": product.id}, headers=user_headers)

        response = client.post(
            "/checkout",
            json=_checkout_body(shipping_address, promoCode="tenoff"),
            headers=user_headers,
        )

        assert response.json()["order"]["total"] == 110.0
        session.expire_all()
        order = session.exec(select(Order)).one()
        assert order.discount == 10.0
        assert order.promo_code_id == promo.id
        assert session.get(PromoCode, promo.id).usage_count == 1

    def test_invalid_promo_is_ignored(self, client, session, user_headers, make_product, make_promo, shipping_address):
        product = make_product(price=100.0)
        make_promo(code="MIN500", minimum_amount=500)
        client.post("/cart", json={"productId": product.id}, headers=user_headers)

        response = client.post(
            "/checkout",
            json=_checkout_body(shipping_address, promoCode="MIN500"),
            headers=user_headers,
        )

        assert response.status_code == 200
        assert response.json()["order"]["total"] == 120.0

    def test_insufficient_stock_leaves_everything_untouched(
        self, client, session, user, user_headers, make_product, shipping_address
    ):
        product = make_product(inventory=1)
        _fill_cart(session, user, (product, 2))

        response = client.post("/checkout", json=_checkout_body(shipping_address), headers=user_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Not enough inventory available"
        session.expire_all()
        assert session.get(Product, product.id).inventory == 1
        assert session.exec(select(Order)).all() == []
        assert len(session.exec(select(CartItem)).all()) == 1

    def test_saved_address_of_another_user(self, client, session, user, other_user, user_headers, make_product):
        from storefront.models.address import Address

        foreign = Address(
            user_id=other_user.id, street="9 Elm", city="Shelbyville",
            state="IL", postal_code="62565", country="US",
        )
        session.add(foreign)
        session.commit()
        _fill_cart(session, user, (make_product(), 1))

        response = client.post(
            "/checkout", json=_checkout_body({"id": foreign.id}), headers=user_headers
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid address"


class TestPlaceOrderRollback:
    def test_failure_after_promo_and_number_rolls_back(
        self, session, user, make_product, make_promo, shipping_address, monkeypatch
    ):
        product = make_product(price=50.0, inventory=5)
        promo = make_promo(code="SAVE10", usage_limit=10)
        _fill_cart(session, user, (product, 1))

        def out_of_stock(*args, **kwargs):
            raise InsufficientInventoryError()

        monkeypatch.setattr(checkout_service, "decrement_inventory", out_of_stock)
        request = CheckoutRequest.model_validate(
            _checkout_body(shipping_address, promoCode="SAVE10")
        )

        with pytest.raises(InsufficientInventoryError):
            place_order(session, user, request)

        session.expire_all()
        assert session.get(PromoCode, promo.id).usage_count == 0
        assert session.exec(select(Order)).all() == []
        assert session.exec(select(OrderNumberSequence)).all() == []
        assert session.get(Product, product.id).inventory == 5
        assert len(session.exec(select(CartItem)).all()) == 1

    def test_stock_taken_after_cart_check_rolls_back_every_line(
        self, session, user, make_product, make_promo, shipping_address, monkeypatch
    ):
        mug = make_product(name="Mug", inventory=5)
        pen = make_product(name="Pen", inventory=5)
        promo = make_promo(code="SAVE10", usage_limit=10)
        _fill_cart(session, user, (mug, 1), (pen, 2))

        real_allocate = checkout_service.allocate_order_number
        real_decrement = checkout_service.decrement_inventory
        calls = []

        def allocate_after_pen_sells_out(db):
            # another buyer takes the pens once the cart has been checked
            db.execute(update(Product).where(Product.id == pen.id).values(inventory=1))
            return real_allocate(db)

        def counting_decrement(db, product_id, quantity, variant_id=None):
            calls.append(product_id)
            return real_decrement(db, product_id, quantity, variant_id)

        monkeypatch.setattr(checkout_service, "allocate_order_number", allocate_after_pen_sells_out)
        monkeypatch.setattr(checkout_service, "decrement_inventory", counting_decrement)
        request = CheckoutRequest.model_validate(
            _checkout_body(shipping_address, promoCode="SAVE10")
        )

        with pytest.raises(InsufficientInventoryError):
            place_order(session, user, request)

        assert calls == [mug.id, pen.id]
        session.expire_all()
        assert session.get(Product, mug.id).inventory == 5
        assert session.exec(select(Order)).all() == []
        assert session.get(PromoCode, promo.id).usage_count == 0
        assert len(session.exec(select(CartItem)).all()) == 2

    def test_rejected_checkout_is_not_logged_as_error(self, session, user, shipping_address, caplog):
        request = CheckoutRequest.model_validate(_checkout_body(shipping_address))

        with caplog.at_level(logging.INFO, logger="storefront.services.checkout_service"):
            with pytest.raises(ValidationFailedError):
                place_order(session, user, request)

        records = [r for r in caplog.records if r.name == "storefront.services.checkout_service"]
        assert [r.levelno for r in records] == [logging.INFO]
        assert "Cart is empty" in records[0].getMessage()

    def test_unexpected_failure_is_logged_as_error(
        self, session, user, make_product, shipping_address, monkeypatch, caplog
    ):
        _fill_cart(session, user, (make_product(), 1))

        def gateway_down(total, method):
            raise RuntimeError("gateway down")

        monkeypatch.setattr(checkout_service.payment_gateway, "charge", gateway_down)
        request = CheckoutRequest.model_validate(_checkout_body(shipping_address))

        with caplog.at_level(logging.INFO, logger="storefront.services.checkout_service"):
            with pytest.raises(RuntimeError):
                place_order(session, user, request)

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "gateway down" in errors[0].getMessage()
