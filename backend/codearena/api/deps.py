"""API dependencies - authentication and authorization"""

from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from codearena.core.database import get_db
from codearena.core.security import decode_access_token, verify_judge_token
from codearena.core.exceptions import AuthenticationError, AuthorizationError
from codearena.models.player import Player
from codearena.models.user import User
from codearena.schemas.enums import UserRole
from codearena.services.player_service import player_service

# HTTP Bearer token scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user from JWT token

    Args:
        credentials: HTTP Bearer credentials
        db: Database session

    Returns:
        Current user

    Raises:
        AuthenticationError: If token is invalid or user not found
    """
    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise AuthenticationError("Invalid or expired token")

    user_id: Optional[str] = payload.get("sub")
    if not user_id or not str(user_id).isdigit():
        raise AuthenticationError("Invalid token payload")

    user = db.get(User, int(user_id))
    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is disabled")

    return user


async def get_current_player(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Player:
    """
    Player profile of the current user, created on first use

    Raises:
        AuthorizationError: If the user is not a player
    """
    player = player_service.ensure_player(db, current_user)
    if not player.is_active:
        raise AuthorizationError("Player profile is deactivated")
    return player


async def get_current_organizer(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Organizer or admin (authorization check)

    Raises:
        AuthorizationError: If user cannot manage contests
    """
    if current_user.role not in (UserRole.ORGANIZER.value, UserRole.ADMIN.value):
        raise AuthorizationError("Organizer access required")
    return current_user


async def get_current_admin_user(
    current_user: User = Depends(get_current_user)
) -> User:
    if current_user.role != UserRole.ADMIN.value:
        raise AuthorizationError("Admin access required")
    return current_user


async def require_judge(
    x_judge_token: Optional[str] = Header(None, alias="X-Judge-Token")
) -> None:
    """Judge callbacks authenticate with the shared secret header"""
    if not verify_judge_token(x_judge_token):
        raise AuthenticationError("Invalid judge token")
