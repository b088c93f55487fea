"""User profile API endpoints."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.errors import http_error_from_value_error, internal_error
from app.api.schemas.common import PageInfo, SuccessResponse
from app.api.schemas.user import (
    UserAccessResponse,
    UserCreateRequest,
    UserListResponse,
    UserProfileUpdateRequest,
    UserResponse,
)
from app.core.auth_utils import require_api_key
from app.dependencies import get_user_service
from app.models.user import User
from app.repositories.base_repo import DEFAULT_PAGE_SIZE, clamp_page_size
from app.services.user_service import UserService

router = APIRouter(
    prefix="/user",
    tags=["users"],
    dependencies=[Depends(require_api_key)],
)

UserServiceDep = Annotated[UserService, Depends(get_user_service)]


def _user_to_response(user: User) -> UserResponse:
    """Convert User model to UserResponse."""
    return UserResponse.model_validate(user, from_attributes=True)


@router.get("", response_model=UserListResponse)
async def search_users(
    user_service: UserServiceDep,
    username: Optional[str] = None,
    user_type: Optional[str] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
):
    """Search users by username and type."""
    try:
        users, total = user_service.search_users(username, user_type, page, page_size)
        return UserListResponse(
            items=[_user_to_response(u) for u in users],
            page=PageInfo(
                total=total, page=page, page_size=clamp_page_size(page_size)
            ),
        )
    except Exception as e:
        raise internal_error("search users", e) from e


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(request: UserCreateRequest, user_service: UserServiceDep):
    """Create an internal user and provision its Entra account."""
    try:
        user = user_service.create_with_entra(**request.model_dump())
        return _user_to_response(user)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error("create user", e) from e


@router.put("/profile/{username}", response_model=UserResponse)
async def update_profile(
    username: str, request: UserProfileUpdateRequest, user_service: UserServiceDep
):
    """Create or update a profile; fields absent from the body are left alone."""
    try:
        user = user_service.update_profile(username, request.model_dump(exclude_unset=True))
        return _user_to_response(user)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("update user profile", e) from e


@router.get("/access/{username}", response_model=UserAccessResponse)
async def get_access(username: str, user_service: UserServiceDep):
    try:
        return user_service.get_access(username)
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("get user access", e) from e


@router.delete("/profile/{username}", response_model=SuccessResponse)
async def delete_profile(username: str, user_service: UserServiceDep):
    try:
        user_service.delete_profile(username)
        return SuccessResponse(message="User deleted successfully")
    except ValueError as e:
        raise http_error_from_value_error(e) from e
    except Exception as e:
        raise internal_error("delete user profile", e) from e
