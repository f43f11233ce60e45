from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.customer_service.repository import CustomerRepository
from services.product_service.service import ProductService
from shared.config.database import transaction
from shared.exceptions import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from shared.observability import ecomm_order_amount, ecomm_orders_placed_total
from shared.security import Caller, is_authorized

from .models import Order, OrderItem, OrderStatus
from .pricing import price_order_lines, validate_order_request
from .repository import OrderRepository
from .schemas import OrderCreate

logger = structlog.get_logger(__name__)

# Status changes an administrator may make. `paid` is reachable only through payment settlement.
ADMIN_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.FULFILLED, OrderStatus.CANCELLED},
}


class OrderService:

    @staticmethod
    async def place_order(db: AsyncSession, caller: Caller, data: OrderCreate) -> Order:
        try:
            validate_order_request(data.customer_id, data.shipping_address, data.items)

            customer = await CustomerRepository.get_by_id(db, data.customer_id)
            if not customer:
                raise NotFoundError("Customer not found.")
            if not is_authorized(caller, customer.id):
                raise AuthorizationError("Not authorized to place orders for this customer")

            products = await ProductService.lookup_products(
                db, {item.product_id for item in data.items}
            )
            lines, total_amount = price_order_lines(data.items, products)
        except ServiceError as exc:
            ecomm_orders_placed_total.labels(status="rejected").inc()
            logger.info("order_rejected", reason=exc.code, detail=exc.message)
            raise

        order = Order(
            customer_id=customer.id,
            order_date=datetime.now(timezone.utc),
            shipping_address=data.shipping_address.strip(),
            customer_notes=data.customer_notes,
            total_amount=total_amount,
            status=OrderStatus.PENDING.value,
            items=[
                OrderItem(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    price_per_item=line.price_per_item,
                )
                for line in lines
            ],
        )
        async with transaction(db):
            await OrderRepository.add_order(db, order)

        ecomm_orders_placed_total.labels(status="created").inc()
        ecomm_order_amount.observe(float(total_amount))
        logger.info(
            "order_placed",
            order_id=order.id,
            customer_id=customer.id,
            total_amount=str(total_amount),
            lines=len(lines),
        )
        return await OrderRepository.get_order(db, order.id, refresh=True)

    @staticmethod
    async def get_order(db: AsyncSession, caller: Caller, order_id: int) -> Order:
        order = await OrderRepository.get_order(db, order_id)
        # Existence is checked before ownership
        if not order:
            raise NotFoundError("Order not found")
        if not is_authorized(caller, order.customer_id):
            raise AuthorizationError("Not authorized to view this order")
        return order

    @staticmethod
    async def list_my_orders(db: AsyncSession, caller: Caller):
        if caller.customer_id is None:
            raise NotFoundError("Customer profile not found for this user.")
        return await OrderRepository.list_for_customer(db, caller.customer_id)

    @staticmethod
    async def list_orders(db: AsyncSession):
        return await OrderRepository.list_all(db)

    @staticmethod
    async def update_status(db: AsyncSession, order_id: int, new_status) -> Order:
        if not new_status:
            raise ValidationError("Status is required.")
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError(f"Unknown order status '{new_status}'.")

        async with transaction(db):
            order = await OrderRepository.get_order_for_update(db, order_id)
            if not order:
                raise NotFoundError("Order not found")

            current = OrderStatus(order.status)
            if target not in ADMIN_TRANSITIONS.get(current, set()):
                raise InvalidStateError(
                    f"Cannot change order status from '{current.value}' to '{target.value}'."
                )
            if not await OrderRepository.transition_status(db, order.id, current, target):
                raise InvalidStateError("Order status changed concurrently, please retry.")

        logger.info("order_status_changed", order_id=order_id, old=current.value, new=target.value)
        return await OrderRepository.get_order(db, order_id, refresh=True)

    @staticmethod
    async def delete_order(db: AsyncSession, order_id: int) -> None:
        async with transaction(db):
            order = await OrderRepository.get_order_for_update(db, order_id)
            if not order:
                raise NotFoundError("Order not found")
            # Payments are financial records and keep their order
            if order.payments:
                raise InvalidStateError("Orders with payment records cannot be deleted.")
            await OrderRepository.delete_order(db, order)

        logger.info("order_deleted", order_id=order_id)
