"""
API Dependencies

Reusable FastAPI dependencies for authentication and for the access engine.
Each request gets its own resolver/gate/grant service bound to the request's
database session; none of them hold state between requests.
"""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from taskhub.database import get_db
from taskhub.models import User
from taskhub.core.security import decode_access_token, user_id_from_payload
from taskhub.core.exceptions import AuthenticationError
from taskhub.core.resolver import AccessResolver
from taskhub.core.permissions import AuthorizationGate
from taskhub.core.grant_service import GrantMutationService
import logging

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user.

    Validates the JWT, loads the user and checks the account is active.
    """
    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise AuthenticationError("Invalid or expired token")

    user_id = user_id_from_payload(payload)
    if user_id is None:
        raise AuthenticationError("Invalid token payload")

    user = db.get(User, user_id)
    if not user:
        logger.warning(f"Token for unknown user: {user_id}")
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is inactive")

    return user


def get_resolver(db: Session = Depends(get_db)) -> AccessResolver:
    return AccessResolver(db)


def get_gate(resolver: AccessResolver = Depends(get_resolver)) -> AuthorizationGate:
    return AuthorizationGate(resolver)


def get_grant_service(
    db: Session = Depends(get_db),
    gate: AuthorizationGate = Depends(get_gate)
) -> GrantMutationService:
    return GrantMutationService(db, gate)
