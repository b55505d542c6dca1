"""Tests for the cart manager service."""

import pytest

from storefront.errors import (
    InsufficientInventoryError,
    InvalidIdentityError,
    NotFoundError,
    ValidationFailedError,
)
from storefront.models.cart import Cart, CartItem
from storefront.services.cart_service import (
    SessionOwned,
    UserOwned,
    add_item,
    clear_cart,
    compute_cart_view,
    find_cart,
    get_or_create_cart,
    merge_guest_cart,
    remove_item,
    resolve_owner,
    update_item,
)
from sqlmodel import select


class TestResolveOwner:
    def test_user_wins_over_session(self):
        assert resolve_owner(user_id=7, session_id="abc") == UserOwned(7)

    def test_session_only(self):
        assert resolve_owner(session_id="abc") == SessionOwned("abc")

    def test_neither_is_rejected(self):
        with pytest.raises(InvalidIdentityError):
            resolve_owner()

    def test_get_or_create_without_identity(self, session):
        with pytest.raises(InvalidIdentityError):
            get_or_create_cart(session)


class TestGetOrCreateCart:
    def test_creates_once_per_user(self, session, user):
        first = get_or_create_cart(session, user_id=user.id)
        second = get_or_create_cart(session, user_id=user.id)

        assert first.id == second.id
        assert first.user_id == user.id
        assert first.session_id is None

    def test_session_cart(self, session):
        cart = get_or_create_cart(session, session_id="guest-1")

        assert cart.session_id == "guest-1"
        assert cart.user_id is None
        assert find_cart(session, SessionOwned("guest-1")).id == cart.id


class TestAddItem:
    def test_new_line(self, session, user, make_product):
        product = make_product()

        item, created = add_item(session, UserOwned(user.id), product.id, quantity=2)

        assert created is True
        assert item.quantity == 2
        assert item.product_id == product.id

    def test_same_product_twice_increments(self, session, user, make_product):
        product = make_product()
        owner = UserOwned(user.id)

        add_item(session, owner, product.id, quantity=1)
        item, created = add_item(session, owner, product.id, quantity=1)

        assert created is False
        assert item.quantity == 2
        cart = find_cart(session, owner)
        assert len(cart.items) == 1

    def test_variants_are_separate_lines(self, session, user, make_product):
        product = make_product(variants=[{"name": "Small", "inventory": 5}, {"name": "Large", "inventory": 5}])
        small, large = product.variants
        owner = UserOwned(user.id)

        add_item(session, owner, product.id, variant_id=small.id)
        add_item(session, owner, product.id, variant_id=large.id)

        assert len(find_cart(session, owner).items) == 2

    def test_quantity_below_one(self, session, user, make_product):
        product = make_product()

        with pytest.raises(ValidationFailedError) as exc:
            add_item(session, UserOwned(user.id), product.id, quantity=0)
        assert exc.value.status_code == 400

    def test_unknown_product(self, session, user):
        with pytest.raises(NotFoundError) as exc:
            add_item(session, UserOwned(user.id), 999)
        assert exc.value.detail == "Product not found"

    def test_hidden_product(self, session, user, make_product):
        product = make_product(is_visible=False)

        with pytest.raises(ValidationFailedError) as exc:
            add_item(session, UserOwned(user.id), product.id)
        assert exc.value.detail == "Product is not available"

    def test_unknown_variant(self, session, user, make_product):
        product = make_product()

        with pytest.raises(NotFoundError) as exc:
            add_item(session, UserOwned(user.id), product.id, variant_id=42)
        assert exc.value.detail == "Variant not found"

    def test_request_above_stock(self, session, user, make_product):
        product = make_product(inventory=1)

        with pytest.raises(InsufficientInventoryError):
            add_item(session, UserOwned(user.id), product.id, quantity=2)

        # nothing was created for a rejected request
        assert find_cart(session, UserOwned(user.id)) is None

    def test_accumulated_quantity_above_stock(self, session, user, make_product):
        product = make_product(inventory=3)
        owner = UserOwned(user.id)
        add_item(session, owner, product.id, quantity=2)

        with pytest.raises(InsufficientInventoryError):
            add_item(session, owner, product.id, quantity=2)

        session.expire_all()
        assert find_cart(session, owner).items[0].quantity == 2

    def test_variant_stock(self, session, user, make_product):
        product = make_product(inventory=10, variants=[{"name": "Red", "inventory": 1}])

        with pytest.raises(InsufficientInventoryError) as exc:
            add_item(session, UserOwned(user.id), product.id, variant_id=product.variants[0].id, quantity=2)
        assert exc.value.detail == "Not enough variant inventory available"


class TestCartView:
    def test_totals_follow_live_prices(self, session, user, make_product):
        mug = make_product(name="Mug", price=10.0, image="/uploads/mug.png")
        pen = make_product(name="Pen", price=5.5)
        owner = UserOwned(user.id)
        add_item(session, owner, mug.id, quantity=2)
        add_item(session, owner, pen.id, quantity=1)

        view = compute_cart_view(find_cart(session, owner))

        assert view.total_items == 3
        assert view.subtotal == pytest.approx(25.5)
        assert [line.subtotal for line in view.items] == [20.0, 5.5]
        assert view.items[0].product.image == "/uploads/mug.png"

        mug.price = 12.0
        session.add(mug)
        session.commit()

        view = compute_cart_view(find_cart(session, owner))
        assert view.subtotal == pytest.approx(29.5)

    def test_empty_cart(self, session, user):
        cart = get_or_create_cart(session, user_id=user.id)

        view = compute_cart_view(cart)

        assert view.items == []
        assert view.total_items == 0
        assert view.subtotal == 0


class TestMergeGuestCart:
    def test_without_session_cart_is_noop(self, session, user, make_product):
        product = make_product()
        add_item(session, UserOwned(user.id), product.id, quantity=2)

        cart = merge_guest_cart(session, user.id, "nobody")

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 2

    def test_sums_matching_and_moves_the_rest(self, session, user, make_product):
        shared = make_product(name="Shared")
        guest_only = make_product(name="Guest only")
        add_item(session, UserOwned(user.id), shared.id, quantity=1)
        add_item(session, SessionOwned("guest-1"), shared.id, quantity=2)
        add_item(session, SessionOwned("guest-1"), guest_only.id, quantity=1)

        cart = merge_guest_cart(session, user.id, "guest-1")

        quantities = {item.product_id: item.quantity for item in cart.items}
        assert quantities == {shared.id: 3, guest_only.id: 1}
        assert find_cart(session, SessionOwned("guest-1")) is None
        assert session.exec(select(CartItem).where(CartItem.cart_id != cart.id)).all() == []

    def test_second_merge_changes_nothing(self, session, user, make_product):
        product = make_product()
        add_item(session, SessionOwned("guest-1"), product.id, quantity=2)
        add_item(session, UserOwned(user.id), product.id, quantity=1)

        merge_guest_cart(session, user.id, "guest-1")
        cart = merge_guest_cart(session, user.id, "guest-1")

        assert [item.quantity for item in cart.items] == [3]

    def test_user_without_cart_adopts_session_cart(self, session, user, make_product):
        product = make_product()
        guest_item, _ = add_item(session, SessionOwned("guest-1"), product.id, quantity=2)

        cart = merge_guest_cart(session, user.id, "guest-1")

        assert cart.user_id == user.id
        assert cart.session_id is None
        assert [item.id for item in cart.items] == [guest_item.id]
        assert len(session.exec(select(Cart)).all()) == 1


class TestLineMutations:
    def test_update_quantity(self, session, user, make_product):
        product = make_product(inventory=5)
        item, _ = add_item(session, UserOwned(user.id), product.id)

        updated = update_item(session, UserOwned(user.id), item.id, 4)

        assert updated.quantity == 4

    def test_update_above_stock(self, session, user, make_product):
        product = make_product(inventory=2)
        item, _ = add_item(session, UserOwned(user.id), product.id)

        with pytest.raises(InsufficientInventoryError):
            update_item(session, UserOwned(user.id), item.id, 3)

    def test_update_rejects_zero(self, session, user, make_product):
        product = make_product()
        item, _ = add_item(session, UserOwned(user.id), product.id)

        with pytest.raises(ValidationFailedError):
            update_item(session, UserOwned(user.id), item.id, 0)

    def test_foreign_item_is_not_found(self, session, user, other_user, make_product):
        product = make_product()
        item, _ = add_item(session, UserOwned(other_user.id), product.id)

        with pytest.raises(NotFoundError) as exc:
            update_item(session, UserOwned(user.id), item.id, 2)
        assert exc.value.detail == "Cart item not found or access denied"

        with pytest.raises(NotFoundError):
            remove_item(session, SessionOwned("guest-1"), item.id)

    def test_remove(self, session, user, make_product):
        product = make_product()
        item, _ = add_item(session, UserOwned(user.id), product.id)

        remove_item(session, UserOwned(user.id), item.id)

        assert session.get(CartItem, item.id) is None

    def test_clear(self, session, user, make_product):
        owner = UserOwned(user.id)
        add_item(session, owner, make_product().id)
        add_item(session, owner, make_product().id)

        assert clear_cart(session, owner) is True

        session.expire_all()
        cart = find_cart(session, owner)
        assert cart is not None
        assert cart.items == []

    def test_clear_without_cart(self, session, user):
        assert clear_cart(session, UserOwned(user.id)) is False
