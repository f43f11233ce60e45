import structlog
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.settings import BCRYPT_ROUNDS
from shared.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from shared.security import ADMIN_ROLE, DEFAULT_ROLE, create_access_token

from .models import Role, User
from .repository import RoleRepository, UserRepository
from .schemas import LoginUser, ProfileUpdate, RoleCreate, TokenResponse, UserCreate, UserLogin

logger = structlog.get_logger(__name__)

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)

MIN_PASSWORD_LENGTH = 6


class AuthService:

    @staticmethod
    def _hash_password(password: str) -> str:
        return _pwd_context.hash(password)

    @staticmethod
    def _verify_password(plain: str, hashed: str) -> bool:
        return _pwd_context.verify(plain, hashed)

    @staticmethod
    def _check_password(password: str) -> None:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )

    @staticmethod
    async def register(db: AsyncSession, data: UserCreate) -> User:
        if not data.name.strip():
            raise ValidationError("Name, email, and password are required")
        AuthService._check_password(data.password)

        if await UserRepository.get_by_email(db, data.email):
            raise ValidationError("Email already in use")

        if data.role_id is not None:
            role = await RoleRepository.get_by_id(db, data.role_id)
            if not role:
                raise NotFoundError("Role not found")
            # Self-registration as admin only bootstraps the first administrator
            if role.name == ADMIN_ROLE and await UserRepository.count_with_role(db, role.id):
                raise AuthorizationError("Cannot self-register with the admin role")
        else:
            role = await RoleRepository.get_by_name(db, DEFAULT_ROLE)
            if not role:
                raise ValidationError("Default role user not found, please seed roles first")

        user = User(
            name=data.name.strip(),
            email=data.email,
            hashed_password=AuthService._hash_password(data.password),
            role_id=role.id,
        )
        user = await UserRepository.save(db, user)
        logger.info("user_registered", user_id=user.id, role=role.name)
        return user

    @staticmethod
    async def login(db: AsyncSession, data: UserLogin) -> TokenResponse:
        user = await UserRepository.get_by_email(db, data.email)
        if not user or not AuthService._verify_password(data.password, user.hashed_password):
            raise AuthenticationError("Incorrect email or password")
        if not user.is_active:
            raise AuthorizationError("Account is disabled")

        token = create_access_token(data={"sub": str(user.id), "role": user.role.name})
        return TokenResponse(
            access_token=token,
            user=LoginUser(id=user.id, name=user.name, role=user.role.name),
        )

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: int) -> User:
        user = await UserRepository.get_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    async def update_profile(db: AsyncSession, user_id: int, data: ProfileUpdate) -> User:
        user = await AuthService.get_user_by_id(db, user_id)

        if data.name is not None:
            if not data.name.strip():
                raise ValidationError("Name cannot be empty")
            user.name = data.name.strip()
        if data.email is not None and data.email != user.email:
            existing = await UserRepository.get_by_email(db, data.email)
            if existing and existing.id != user.id:
                raise ValidationError("Email already in use")
            user.email = data.email
        if data.password:
            AuthService._check_password(data.password)
            user.hashed_password = AuthService._hash_password(data.password)

        return await UserRepository.save(db, user)

    @staticmethod
    async def list_users(db: AsyncSession):
        return await UserRepository.list_all(db)


class RoleService:

    @staticmethod
    async def list_roles(db: AsyncSession):
        return await RoleRepository.list_all(db)

    @staticmethod
    async def create_role(db: AsyncSession, data: RoleCreate) -> Role:
        name = data.name.strip().lower()
        if not name:
            raise ValidationError("Role name is required")
        if await RoleRepository.get_by_name(db, name):
            raise ValidationError("Role already exists")
        return await RoleRepository.create(db, Role(name=name))
