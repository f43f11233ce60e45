import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.auth_service.repository import UserRepository
from services.order_service.repository import OrderRepository
from shared.exceptions import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from shared.security import Caller, is_admin, is_authorized

from .models import Customer
from .repository import CustomerRepository
from .schemas import CustomerCreate, CustomerUpdate

logger = structlog.get_logger(__name__)


class CustomerService:

    @staticmethod
    async def list_customers(db: AsyncSession):
        return await CustomerRepository.list_all(db)

    @staticmethod
    async def get_customer(db: AsyncSession, caller: Caller, customer_id: int) -> Customer:
        customer = await CustomerRepository.get_by_id(db, customer_id)
        if not customer:
            raise NotFoundError("Customer not found")
        if not is_authorized(caller, customer.id):
            raise AuthorizationError("Not authorized to view this customer")
        return customer

    @staticmethod
    async def get_my_profile(db: AsyncSession, caller: Caller) -> Customer:
        customer = await CustomerRepository.get_by_user_id(db, caller.user_id)
        if not customer:
            raise NotFoundError("Customer profile not found for this user.")
        return customer

    @staticmethod
    async def create_customer(db: AsyncSession, caller: Caller, data: CustomerCreate) -> Customer:
        user_id = caller.user_id
        if data.user_id is not None and data.user_id != caller.user_id:
            if not is_admin(caller):
                raise AuthorizationError("Not authorized to create a profile for another user")
            if not await UserRepository.get_by_id(db, data.user_id):
                raise NotFoundError("User not found")
            user_id = data.user_id

        if await CustomerRepository.get_by_user_id(db, user_id):
            raise ValidationError("User already has a customer profile")

        customer = Customer(
            user_id=user_id,
            phone_number=data.phone_number,
            address=data.address,
        )
        customer = await CustomerRepository.save(db, customer)
        logger.info("customer_created", customer_id=customer.id, user_id=user_id)
        return customer

    @staticmethod
    async def update_customer(
        db: AsyncSession, caller: Caller, customer_id: int, data: CustomerUpdate
    ) -> Customer:
        customer = await CustomerService.get_customer(db, caller, customer_id)
        if data.phone_number is not None:
            customer.phone_number = data.phone_number
        if data.address is not None:
            customer.address = data.address
        return await CustomerRepository.save(db, customer)

    @staticmethod
    async def delete_customer(db: AsyncSession, customer_id: int) -> None:
        customer = await CustomerRepository.get_by_id(db, customer_id)
        if not customer:
            raise NotFoundError("Customer not found")
        if await OrderRepository.count_for_customer(db, customer_id):
            raise InvalidStateError("Customer has orders and cannot be deleted")
        await CustomerRepository.delete(db, customer)
        logger.info("customer_deleted", customer_id=customer_id)
