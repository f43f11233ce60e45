import asyncio
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from services.order_service.models import Order, OrderStatus
from services.order_service.repository import OrderRepository
from shared.config.database import transaction
from shared.config.settings import PAYMENT_GATEWAY_TIMEOUT_SECONDS
from shared.exceptions import (
    AuthorizationError,
    DependencyError,
    InvalidStateError,
    NotFoundError,
    PaymentDeclinedError,
    ServiceError,
    ValidationError,
)
from shared.observability import ecomm_payment_gateway_duration_seconds, ecomm_payments_total
from shared.security import Caller, is_authorized

from .gateway import GatewayResult, GatewayUnavailableError, PaymentGateway
from .models import Payment, PaymentStatus
from .repository import PaymentRepository
from .schemas import PaymentCreate

logger = structlog.get_logger(__name__)


@dataclass
class Settlement:
    payment: Payment
    order: Order


class PaymentService:

    @staticmethod
    async def settle_payment(
        db: AsyncSession,
        caller: Caller,
        data: PaymentCreate,
        gateway: PaymentGateway,
        timeout: Optional[float] = None,
    ) -> Settlement:
        """
        Charges the order's stored total and records the outcome.

        The order row stays locked from the status check until the payment is
        recorded, so two concurrent settlements of one order are serialized and
        only the first can see it pending.
        """
        method = (data.payment_method or "").strip()
        if not data.order_id or not method:
            raise ValidationError("order_id and payment_method are required.")

        try:
            async with transaction(db):
                order = await OrderRepository.get_order_for_update(db, data.order_id)
                if not order:
                    raise NotFoundError("Order not found.")
                if not is_authorized(caller, order.customer_id):
                    raise AuthorizationError("Not authorized to pay for this order")
                if order.status != OrderStatus.PENDING:
                    raise InvalidStateError(
                        f"Cannot process payment for an order with status '{order.status}'."
                    )

                amount_to_pay = order.total_amount
                result = await PaymentService._charge(gateway, amount_to_pay, order.id, timeout)

                if result.success:
                    if not await OrderRepository.transition_status(
                        db, order.id, OrderStatus.PENDING, OrderStatus.PAID
                    ):
                        raise InvalidStateError("Order has already been paid.")
                    payment = await PaymentRepository.add_payment(db, Payment(
                        order_id=order.id,
                        payment_method=method,
                        amount=amount_to_pay,
                        status=PaymentStatus.SUCCESS.value,
                        transaction_id=result.transaction_id or f"TXN_{uuid.uuid4().hex}",
                        payment_date=datetime.now(timezone.utc),
                    ))
                else:
                    # Failed attempts are recorded but leave the order pending
                    payment = await PaymentRepository.add_payment(db, Payment(
                        order_id=order.id,
                        payment_method=method,
                        amount=amount_to_pay,
                        status=PaymentStatus.FAILED.value,
                        transaction_id=result.transaction_id or f"FAILED_{int(time.time() * 1000)}",
                        payment_date=datetime.now(timezone.utc),
                    ))
        except IntegrityError:
            ecomm_payments_total.labels(status="rejected").inc()
            logger.warning("payment_duplicate_success", order_id=data.order_id)
            raise InvalidStateError("Order has already been paid.")
        except ServiceError as exc:
            ecomm_payments_total.labels(status="rejected").inc()
            logger.info("payment_rejected", order_id=data.order_id, reason=exc.code, detail=exc.message)
            raise

        if not result.success:
            ecomm_payments_total.labels(status="failed").inc()
            logger.warning(
                "payment_failed",
                order_id=order.id,
                payment_id=payment.id,
                transaction_id=payment.transaction_id,
            )
            raise PaymentDeclinedError(
                "Payment failed at payment gateway.",
                payment_id=payment.id,
                transaction_id=payment.transaction_id,
            )

        ecomm_payments_total.labels(status="success").inc()
        logger.info(
            "payment_settled",
            order_id=order.id,
            payment_id=payment.id,
            amount=str(amount_to_pay),
            transaction_id=payment.transaction_id,
        )
        order = await OrderRepository.get_order(db, order.id, refresh=True)
        return Settlement(payment=payment, order=order)

    @staticmethod
    async def _charge(
        gateway: PaymentGateway, amount: Decimal, order_id: int, timeout: Optional[float]
    ) -> GatewayResult:
        """One bounded gateway call. Timeouts and transport errors count as declines, no retry."""
        timeout = PAYMENT_GATEWAY_TIMEOUT_SECONDS if timeout is None else timeout
        started = time.perf_counter()
        try:
            return await asyncio.wait_for(gateway.charge(amount), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("payment_gateway_timeout", order_id=order_id, timeout=timeout)
            return GatewayResult(success=False)
        except GatewayUnavailableError as exc:
            logger.warning("payment_gateway_unavailable", order_id=order_id, error=str(exc))
            return GatewayResult(success=False)
        except Exception as exc:
            # Outcome unknown: abort the settlement without recording a payment
            logger.exception("payment_gateway_error", order_id=order_id, error=str(exc))
            raise DependencyError("Payment gateway returned an unexpected error.") from exc
        finally:
            ecomm_payment_gateway_duration_seconds.observe(time.perf_counter() - started)

    @staticmethod
    async def list_payments(db: AsyncSession):
        return await PaymentRepository.list_payments(db)

    @staticmethod
    async def get_payment(db: AsyncSession, caller: Caller, payment_id: int) -> Payment:
        payment = await PaymentRepository.get_payment(db, payment_id)
        if not payment:
            raise NotFoundError("Payment not found")
        if not is_authorized(caller, payment.order.customer_id):
            raise AuthorizationError("Not authorized to view this payment")
        return payment
