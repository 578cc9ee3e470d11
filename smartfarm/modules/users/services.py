from sqlalchemy import select, func
from typing import Optional, List
import logging

from smartfarm.core.config import settings
from smartfarm.core.exceptions import AuthenticationError, ConflictError, NotFoundError
from smartfarm.core.persistence import Persistence
from smartfarm.core.security import (
    get_password_hash,
    verify_password,
    create_user_token,
    sanitize_input
)
from smartfarm.modules.users.models import User, UserType
from smartfarm.modules.users import schemas

logger = logging.getLogger(__name__)


class UserService:
    """Service layer for registration, authentication and profiles"""

    def __init__(self, persistence: Persistence):
        self.persistence = persistence

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.persistence.fetch_one(select(User).where(User.id == user_id))

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return await self.persistence.fetch_one(select(User).where(User.email == email.lower()))

    async def register_user(self, user_data: schemas.UserRegistrationRequest) -> User:
        """Create a farmer or buyer account"""
        if await self.get_user_by_email(user_data.email):
            raise ConflictError("Email already registered")

        user = User(
            name=sanitize_input(user_data.name),
            email=user_data.email.lower(),
            hashed_password=get_password_hash(user_data.password),
            user_type=UserType(user_data.user_type.value),
            phone=user_data.phone,
            farm_name=sanitize_input(user_data.farm_name),
            crops_grown=sanitize_input(user_data.crops_grown),
            farm_location=sanitize_input(user_data.farm_location)
        )

        try:
            async with self.persistence.transaction():
                await self.persistence.add(user)
        except ConflictError:
            # lost a race with a concurrent registration of the same email
            raise ConflictError("Email already registered")
        await self.persistence.refresh(user)

        logger.info(f"Registered {user.user_type.value} account {user.id}")
        return user

    async def authenticate_user(self, email: str, password: str) -> User:
        """Return the user for valid credentials, raise otherwise"""
        user = await self.get_user_by_email(email)

        if not user or not verify_password(password, user.hashed_password):
            logger.warning(f"Failed login attempt for {email}")
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            raise AuthenticationError("Account is disabled")

        return user

    @staticmethod
    def create_token(user: User) -> str:
        return create_user_token(user)

    async def change_password(self, user: User, old_password: str, new_password: str) -> None:
        if not verify_password(old_password, user.hashed_password):
            raise AuthenticationError("Old password is incorrect")

        async with self.persistence.transaction():
            user.hashed_password = get_password_hash(new_password)
        logger.info(f"Password changed for user {user.id}")

    async def update_profile(self, user: User, profile_data: schemas.UserProfileUpdate) -> User:
        """Apply the fields present in the request, keep the rest"""
        update_data = profile_data.model_dump(exclude_unset=True, exclude_none=True)
        async with self.persistence.transaction():
            for field, value in update_data.items():
                if field != "phone":
                    value = sanitize_input(value)
                setattr(user, field, value)

        return await self.persistence.refresh(user)

    async def get_stats(self, user_id: int) -> dict:
        """Loan counts by status plus marketplace activity"""
        from smartfarm.modules.loans.models import Loan
        from smartfarm.modules.marketplace.models import MarketplaceProduct, Order

        loan_counts = await self.persistence.fetch_all(
            select(Loan.status, func.count(Loan.id))
            .where(Loan.user_id == user_id)
            .group_by(Loan.status)
        )
        products_listed = await self.persistence.fetch_one(
            select(func.count(MarketplaceProduct.id)).where(MarketplaceProduct.farmer_id == user_id)
        )
        orders_made = await self.persistence.fetch_one(
            select(func.count(Order.id)).where(Order.buyer_id == user_id)
        )

        return {
            "loans": [{"status": loan_status.value, "count": count} for loan_status, count in loan_counts],
            "products_listed": products_listed or 0,
            "orders_made": orders_made or 0
        }

    async def search_users(
        self,
        user_type: Optional[UserType] = None,
        location: Optional[str] = None,
        crop: Optional[str] = None
    ) -> List[User]:
        """Public directory of farmers and buyers"""
        if user_type is not None:
            query = select(User).where(User.user_type == user_type)
        else:
            query = select(User).where(User.user_type.in_([UserType.FARMER, UserType.BUYER]))

        if location:
            query = query.where(User.farm_location.ilike(f"%{location}%"))
        if crop:
            query = query.where(User.crops_grown.ilike(f"%{crop}%"))

        query = query.order_by(User.id).limit(settings.USER_SEARCH_LIMIT)
        return await self.persistence.fetch_all(query)

    async def get_public_profile(self, user_id: int) -> User:
        user = await self.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user
