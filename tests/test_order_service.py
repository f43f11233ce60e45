"""
Order placement and order administration against a real (SQLite) database.
"""
from decimal import Decimal

import pytest
from sqlalchemy import func, select, update

from conftest import FakeGateway
from services.order_service.models import Order, OrderItem, OrderStatus
from services.order_service.schemas import OrderCreate
from services.order_service.service import OrderService
from services.payment_service.models import Payment
from services.payment_service.schemas import PaymentCreate
from services.payment_service.service import PaymentService
from services.product_service.models import Product
from shared.config.database import AsyncSessionLocal
from shared.exceptions import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    PaymentDeclinedError,
    UnavailableError,
    ValidationError,
)


def _order_request(customer_id, items, **extra):
    return OrderCreate.model_validate({
        "customer_id": customer_id,
        "shipping_address": "Jl. Braga 10, Bandung",
        "customer_notes": "Leave at the door",
        "items": items,
        **extra,
    })


async def _count(model) -> int:
    async with AsyncSessionLocal() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


class TestPlaceOrder:

    @pytest.mark.asyncio
    async def test_total_and_snapshots_come_from_catalog(self, db, alice, catalog) -> None:
        request = _order_request(alice.customer_id, [
            {"product_id": catalog["P"], "quantity": 3},
            {"product_id": catalog["Q"], "quantity": 1},
        ])

        order = await OrderService.place_order(db, alice.caller, request)

        assert order.status == OrderStatus.PENDING
        assert order.total_amount == Decimal("55.00")
        assert order.customer_id == alice.customer_id
        assert order.customer_notes == "Leave at the door"
        assert [(i.product_id, i.quantity, i.price_per_item) for i in order.items] == [
            (catalog["P"], 3, Decimal("10.00")),
            (catalog["Q"], 1, Decimal("25.00")),
        ]
        assert order.items[0].product.name == "Kopi Arabika"
        assert sum(i.price_per_item * i.quantity for i in order.items) == order.total_amount

    @pytest.mark.asyncio
    async def test_client_supplied_prices_are_ignored(self, db, alice, catalog) -> None:
        request = _order_request(
            alice.customer_id,
            [{"product_id": catalog["Q"], "quantity": 2, "price": "0.01", "price_per_item": "0.01"}],
            total_amount="0.02",
        )

        order = await OrderService.place_order(db, alice.caller, request)

        assert order.total_amount == Decimal("50.00")
        assert order.items[0].price_per_item == Decimal("25.00")

    @pytest.mark.asyncio
    async def test_later_price_change_does_not_touch_existing_order(self, db, alice, catalog) -> None:
        order = await OrderService.place_order(
            db, alice.caller, _order_request(alice.customer_id, [{"product_id": catalog["P"], "quantity": 2}])
        )
        order_id = order.id

        async with AsyncSessionLocal() as session:
            await session.execute(update(Product).where(Product.id == catalog["P"]).values(price=Decimal("99.00")))
            await session.commit()

        async with AsyncSessionLocal() as session:
            stored = await OrderService.get_order(session, alice.caller, order_id)
            assert stored.total_amount == Decimal("20.00")
            assert stored.items[0].price_per_item == Decimal("10.00")

    @pytest.mark.asyncio
    async def test_unavailable_product_creates_nothing(self, db, alice, catalog) -> None:
        request = _order_request(alice.customer_id, [
            {"product_id": catalog["P"], "quantity": 1},
            {"product_id": catalog["R"], "quantity": 1},
        ])

        with pytest.raises(UnavailableError, match="Gula Aren"):
            await OrderService.place_order(db, alice.caller, request)

        assert await _count(Order) == 0
        assert await _count(OrderItem) == 0

    @pytest.mark.asyncio
    async def test_unknown_product_creates_nothing(self, db, alice, catalog) -> None:
        request = _order_request(alice.customer_id, [
            {"product_id": catalog["P"], "quantity": 1},
            {"product_id": 9999, "quantity": 1},
        ])

        with pytest.raises(NotFoundError, match="One or more products not found"):
            await OrderService.place_order(db, alice.caller, request)

        assert await _count(Order) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("items", [[], None, [{"product_id": 1, "quantity": 0}], [{"product_id": 1, "quantity": -1}]])
    async def test_empty_items_or_bad_quantity_rejected(self, db, alice, catalog, items) -> None:
        with pytest.raises(ValidationError):
            await OrderService.place_order(db, alice.caller, _order_request(alice.customer_id, items))

        assert await _count(Order) == 0

    @pytest.mark.asyncio
    async def test_missing_shipping_address_rejected(self, db, alice, catalog) -> None:
        request = OrderCreate(customer_id=alice.customer_id, items=[{"product_id": catalog["P"], "quantity": 1}])

        with pytest.raises(ValidationError):
            await OrderService.place_order(db, alice.caller, request)

    @pytest.mark.asyncio
    async def test_unknown_customer_is_not_found(self, db, admin, catalog) -> None:
        with pytest.raises(NotFoundError, match="Customer not found"):
            await OrderService.place_order(
                db, admin.caller, _order_request(12345, [{"product_id": catalog["P"], "quantity": 1}])
            )

    @pytest.mark.asyncio
    async def test_cannot_order_for_someone_else(self, db, alice, bob, catalog) -> None:
        with pytest.raises(AuthorizationError):
            await OrderService.place_order(
                db, bob.caller, _order_request(alice.customer_id, [{"product_id": catalog["P"], "quantity": 1}])
            )

        assert await _count(Order) == 0


class TestReadOrders:

    @pytest.mark.asyncio
    async def test_not_found_is_reported_before_authorization(self, db, bob) -> None:
        with pytest.raises(NotFoundError):
            await OrderService.get_order(db, bob.caller, 424242)

    @pytest.mark.asyncio
    async def test_other_customers_order_is_forbidden(self, db, alice, bob, admin, catalog) -> None:
        order = await OrderService.place_order(
            db, alice.caller, _order_request(alice.customer_id, [{"product_id": catalog["P"], "quantity": 1}])
        )
        order_id = order.id

        with pytest.raises(AuthorizationError):
            await OrderService.get_order(db, bob.caller, order_id)
        assert (await OrderService.get_order(db, admin.caller, order_id)).id == order_id
        assert (await OrderService.get_order(db, alice.caller, order_id)).id == order_id

    @pytest.mark.asyncio
    async def test_my_orders_lists_only_own_newest_first(self, db, alice, bob, catalog) -> None:
        item = [{"product_id": catalog["P"], "quantity": 1}]
        first = (await OrderService.place_order(db, alice.caller, _order_request(alice.customer_id, item))).id
        second = (await OrderService.place_order(db, alice.caller, _order_request(alice.customer_id, item))).id
        await OrderService.place_order(db, bob.caller, _order_request(bob.customer_id, item))

        orders = await OrderService.list_my_orders(db, alice.caller)

        assert [o.id for o in orders] == [second, first]

    @pytest.mark.asyncio
    async def test_my_orders_requires_a_profile(self, db, admin) -> None:
        with pytest.raises(NotFoundError, match="Customer profile not found"):
            await OrderService.list_my_orders(db, admin.caller)


class TestOrderAdministration:

    @pytest.mark.asyncio
    async def test_pending_order_can_be_cancelled(self, db, alice, catalog) -> None:
        order = await OrderService.place_order(
            db, alice.caller, _order_request(alice.customer_id, [{"product_id": catalog["P"], "quantity": 1}])
        )

        updated = await OrderService.update_status(db, order.id, "cancelled")

        assert updated.status == OrderStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_paid_can_only_be_set_by_settlement(self, db, alice, catalog) -> None:
        order = await OrderService.place_order(
            db, alice.caller, _order_request(alice.customer_id, [{"product_id": catalog["P"], "quantity": 1}])
        )
        order_id = order.id

        with pytest.raises(InvalidStateError):
            await OrderService.update_status(db, order_id, "paid")

        async with AsyncSessionLocal() as session:
            assert (await OrderService.get_order(session, alice.caller, order_id)).status == OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_fulfilment_requires_payment(self, db, alice, catalog, gateway) -> None:
        order = await OrderService.place_order(
            db, alice.caller, _order_request(alice.customer_id, [{"product_id": catalog["P"], "quantity": 1}])
        )
        order_id = order.id

        with pytest.raises(InvalidStateError):
            await OrderService.update_status(db, order_id, "fulfilled")

        await PaymentService.settle_payment(
            db, alice.caller, PaymentCreate(order_id=order_id, payment_method="bank_transfer"), gateway
        )
        fulfilled = await OrderService.update_status(db, order_id, "fulfilled")
        assert fulfilled.status == OrderStatus.FULFILLED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["", None, "shipped"])
    async def test_unknown_status_rejected(self, db, status) -> None:
        with pytest.raises(ValidationError):
            await OrderService.update_status(db, 1, status)

    @pytest.mark.asyncio
    async def test_delete_removes_unpaid_order_with_items(self, db, alice, catalog) -> None:
        order = await OrderService.place_order(
            db, alice.caller, _order_request(alice.customer_id, [{"product_id": catalog["P"], "quantity": 1}])
        )

        await OrderService.delete_order(db, order.id)

        assert await _count(Order) == 0
        assert await _count(OrderItem) == 0

    @pytest.mark.asyncio
    async def test_delete_refused_once_payments_exist(self, db, alice, catalog) -> None:
        order = await OrderService.place_order(
            db, alice.caller, _order_request(alice.customer_id, [{"product_id": catalog["P"], "quantity": 1}])
        )
        order_id = order.id
        with pytest.raises(PaymentDeclinedError):
            await PaymentService.settle_payment(
                db, alice.caller, PaymentCreate(order_id=order_id, payment_method="card"), FakeGateway(success=False)
            )

        with pytest.raises(InvalidStateError):
            await OrderService.delete_order(db, order_id)

        assert await _count(Order) == 1
        assert await _count(Payment) == 1

    @pytest.mark.asyncio
    async def test_delete_unknown_order(self, db) -> None:
        with pytest.raises(NotFoundError):
            await OrderService.delete_order(db, 777)
