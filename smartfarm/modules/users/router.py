from fastapi import APIRouter, Depends, status
from typing import Optional

from smartfarm.core.dependencies import get_current_user, get_current_active_user, get_persistence
from smartfarm.core.persistence import Persistence
from smartfarm.modules.users.models import User, UserType
from smartfarm.modules.users import schemas
from smartfarm.modules.users.services import UserService

auth_router = APIRouter(prefix="/api/auth", tags=["auth"])
router = APIRouter(prefix="/api/users", tags=["users"])


def get_user_service(persistence: Persistence = Depends(get_persistence)) -> UserService:
    return UserService(persistence)


@auth_router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: schemas.UserRegistrationRequest,
    service: UserService = Depends(get_user_service)
):
    """
    Register a new farmer or buyer.

    - Rejects duplicate email addresses
    - Returns an access token so the client is logged in immediately
    """
    user = await service.register_user(user_data)
    return {
        "message": "User registered successfully",
        "token": service.create_token(user),
        "user": user
    }


@auth_router.post("/login", response_model=schemas.AuthResponse)
async def login(
    login_data: schemas.UserLoginRequest,
    service: UserService = Depends(get_user_service)
):
    """
    Login with email and password.
    """
    user = await service.authenticate_user(login_data.email, login_data.password)
    return {
        "message": "Login successful",
        "token": service.create_token(user),
        "user": user
    }


@auth_router.get("/verify", response_model=schemas.TokenVerifyResponse)
async def verify_token(current_user: User = Depends(get_current_user)):
    """Check that the bearer token is still valid"""
    return {"valid": True, "user": current_user}


@auth_router.post("/change-password", status_code=status.HTTP_200_OK)
async def change_password(
    password_data: schemas.ChangePasswordRequest,
    current_user: User = Depends(get_current_active_user),
    service: UserService = Depends(get_user_service)
):
    await service.change_password(current_user, password_data.old_password, password_data.new_password)
    return {"message": "Password changed successfully"}


@router.get("/profile", response_model=schemas.UserProfileResponse)
async def get_profile(current_user: User = Depends(get_current_active_user)):
    """
    Get current user's profile.
    """
    return current_user


@router.put("/profile", response_model=schemas.UserProfileResponse)
async def update_profile(
    profile_data: schemas.UserProfileUpdate,
    current_user: User = Depends(get_current_active_user),
    service: UserService = Depends(get_user_service)
):
    """
    Update profile information.

    - Only the fields sent are changed
    - Email and role cannot be changed here
    """
    return await service.update_profile(current_user, profile_data)


@router.get("/stats", response_model=schemas.UserStatsResponse)
async def get_stats(
    current_user: User = Depends(get_current_active_user),
    service: UserService = Depends(get_user_service)
):
    """Loan, listing and order counts for the dashboard"""
    return await service.get_stats(current_user.id)


@router.get("/search", response_model=schemas.UserSearchResponse)
async def search_users(
    type: Optional[schemas.RegistrableUserTypeEnum] = None,
    location: Optional[str] = None,
    crop: Optional[str] = None,
    service: UserService = Depends(get_user_service)
):
    """Search farmers and buyers for marketplace connections"""
    user_type = UserType(type.value) if type else None
    users = await service.search_users(user_type=user_type, location=location, crop=crop)
    return {"users": users, "count": len(users)}


@router.get("/{user_id}/public", response_model=schemas.PublicUserResponse)
async def get_public_profile(
    user_id: int,
    service: UserService = Depends(get_user_service)
):
    return await service.get_public_profile(user_id)
