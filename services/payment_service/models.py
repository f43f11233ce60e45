import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    event,
    inspect,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shared.config.database import Base
from shared.exceptions import InvalidStateError


class PaymentStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("status IN ('success', 'failed')", name="ck_payments_status"),
        # At most one successful payment per order
        Index(
            "uq_payments_order_success",
            "order_id",
            unique=True,
            postgresql_where=text("status = 'success'"),
            sqlite_where=text("status = 'success'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    payment_method = Column(String(50), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False) # copied from the order, never from the client
    status = Column(String(20), nullable=False)
    transaction_id = Column(String(100), nullable=True)
    payment_date = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="payments", lazy="selectin")


# Payments are an append-only audit trail
@event.listens_for(Payment, "before_update")
def _refuse_payment_update(mapper, connection, target):
    state = inspect(target)
    if any(state.attrs[prop.key].history.has_changes() for prop in mapper.column_attrs):
        raise InvalidStateError("Payment records are immutable.")


@event.listens_for(Payment, "before_delete")
def _refuse_payment_delete(mapper, connection, target):
    raise InvalidStateError("Payment records cannot be deleted.")
