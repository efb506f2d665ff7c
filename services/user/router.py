"""
services/user/router.py
User account edits (name, email, phone).
"""

from fastapi import APIRouter, Depends, HTTPException

from shared.middleware.auth import get_current_user
from shared.models.models import User
from shared.repositories.base import Repository
from shared.repositories.factory import get_repository
from shared.schemas.schemas import UserResponse, UserUpdateRequest

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: UserUpdateRequest,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """
    Update user account fields (name, email, phone).
    Only non-None fields in the request body are updated.
    """
    updates = data.model_dump(exclude_none=True)
    if not updates:
        return UserResponse.model_validate(current_user)

    # Email uniqueness check
    if "email" in updates and updates["email"] != current_user.email:
        existing = await repo.get_user_by_email(updates["email"])
        if existing and existing.id != current_user.id:
            raise HTTPException(status_code=409, detail="Email already in use")

    user = await repo.update_user(current_user.id, updates)
    await repo.commit()
    return UserResponse.model_validate(user)
