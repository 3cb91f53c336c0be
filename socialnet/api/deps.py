"""
Request-scoped dependencies, including the access guard that turns a
bearer token into the caller's identity.
"""
import logging
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..core.config import get_settings
from ..core.exceptions import UnauthorizedException
from ..core.security import CredentialService, Identity, PasswordHasher
from ..database import get_db
from ..services.accounts import AccountService
from ..services.graph import SocialGraphManager
from ..services.posts import PostService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache()
def get_credential_service() -> CredentialService:
    settings = get_settings()
    return CredentialService(
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


@lru_cache()
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=get_settings().BCRYPT_ROUNDS)


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    credential_service: CredentialService = Depends(get_credential_service),
) -> Identity:
    """Reject the request unless it carries a valid bearer token."""
    if credentials is None:
        logger.warning("Request without bearer token rejected")
        raise UnauthorizedException()
    return credential_service.validate(credentials.credentials)


def get_account_service(
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    credential_service: CredentialService = Depends(get_credential_service),
) -> AccountService:
    return AccountService(
        db,
        hasher,
        credential_service,
        max_attempts=get_settings().USER_ID_ALLOCATION_RETRIES,
    )


def get_graph_manager(db: Session = Depends(get_db)) -> SocialGraphManager:
    return SocialGraphManager(db)


def get_post_service(db: Session = Depends(get_db)) -> PostService:
    return PostService(db)
