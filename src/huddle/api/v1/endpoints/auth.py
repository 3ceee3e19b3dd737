"""Authentication endpoints for the Huddle API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status

from huddle.core.security import create_access_token
from huddle.schemas.common import OperationResult
from huddle.schemas.user import (
    LoginRequest,
    RegisterResponse,
    TokenResponse,
    UserCreate,
    UserResponse,
)
from huddle.services.auth import RegisterOutcome

from ..dependencies import AuthServiceDep, CurrentUserDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: UserCreate,
    response: Response,
    auth: AuthServiceDep,
) -> RegisterResponse:
    """Create an account; a taken username or email answers 409 with the reason."""
    outcome, user = auth.register(payload)
    if outcome is not RegisterOutcome.CREATED:
        response.status_code = status.HTTP_409_CONFLICT
        return RegisterResponse(created=False, outcome=outcome.value)
    return RegisterResponse(
        created=True,
        outcome=outcome.value,
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, auth: AuthServiceDep) -> TokenResponse:
    """Verify credentials, mark the user Online and issue a session token."""
    user = auth.login(payload.username, payload.password)
    return TokenResponse(
        access_token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.post("/logout", response_model=OperationResult)
def logout(current_user: CurrentUserDep, auth: AuthServiceDep) -> OperationResult:
    """Mark the user Offline and drop their chat subscription."""
    return OperationResult(success=auth.logout(current_user.id))
