from fastapi import APIRouter, Depends, Query

from models.user import (
    TokenData,
    UserUpdate,
    PasswordChange,
    UserEnvelope,
    UserSearchResponse,
    UserStatsResponse,
    MessageResponse,
)
from routes.auth import get_current_user, get_user_service
from services.user_service import UserService

profile_router = APIRouter(tags=["Profile"])


@profile_router.get("/profile", response_model=UserEnvelope)
def get_profile(current_user: TokenData = Depends(get_current_user),
                user_service: UserService = Depends(get_user_service)):
    return UserEnvelope(user=user_service.get_profile(current_user.owner_id))


@profile_router.put("/profile", response_model=UserEnvelope)
def update_profile(payload: UserUpdate,
                   current_user: TokenData = Depends(get_current_user),
                   user_service: UserService = Depends(get_user_service)):
    """
    Partially update the authenticated user's profile. Only fields present
    in the request body are changed.
    """
    user = user_service.update_profile(
        current_user.owner_id, payload.model_dump(exclude_unset=True)
    )
    return UserEnvelope(user=user)


@profile_router.delete("/profile", response_model=MessageResponse)
def delete_account(current_user: TokenData = Depends(get_current_user),
                   user_service: UserService = Depends(get_user_service)):
    """
    Delete the authenticated user's account together with all of their events.
    """
    user_service.delete_account(current_user.owner_id)
    return MessageResponse(message="Account deleted successfully")


@profile_router.put("/profile/password", response_model=MessageResponse)
def change_password(payload: PasswordChange,
                    current_user: TokenData = Depends(get_current_user),
                    user_service: UserService = Depends(get_user_service)):
    user_service.change_password(
        current_user.owner_id, payload.current_password, payload.new_password
    )
    return MessageResponse(message="Password updated successfully")


@profile_router.get("/profile/stats", response_model=UserStatsResponse)
def get_stats(current_user: TokenData = Depends(get_current_user),
              user_service: UserService = Depends(get_user_service)):
    return UserStatsResponse(stats=user_service.get_stats(current_user.owner_id))


@profile_router.get("/users/search", response_model=UserSearchResponse)
def search_users(q: str = Query(..., min_length=1, examples=["alice"]),
                 limit: int = Query(10, ge=1, le=50),
                 current_user: TokenData = Depends(get_current_user),
                 user_service: UserService = Depends(get_user_service)):
    """
    Find other users by username, first or last name. Private profiles are
    not returned.
    """
    return UserSearchResponse(users=user_service.search_users(q, limit))
