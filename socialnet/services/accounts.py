import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..core.exceptions import (
    DuplicateAccount,
    IdentifierConflict,
    NotFoundException,
    StorageUnavailable,
    UnauthorizedException,
)
from ..core.security import CredentialService, Identity, PasswordHasher
from .identifiers import IdentifierAllocator

logger = logging.getLogger(__name__)


def identity_of(account: models.Account) -> Identity:
    return Identity(user_id=account.user_id, email=account.email, username=account.username)


class AccountService:
    """Registration, login and profile maintenance."""

    def __init__(
        self,
        db: Session,
        hasher: PasswordHasher,
        credentials: CredentialService,
        allocator: Optional[IdentifierAllocator] = None,
        max_attempts: int = 5,
    ):
        self.db = db
        self.hasher = hasher
        self.credentials = credentials
        self.allocator = allocator or IdentifierAllocator()
        self.max_attempts = max_attempts

    def _ensure_unique(self, email: Optional[str] = None, username: Optional[str] = None,
                       exclude_user_id: Optional[int] = None):
        if email is not None:
            query = self.db.query(models.Account.id).filter(models.Account.email == email)
            if exclude_user_id is not None:
                query = query.filter(models.Account.user_id != exclude_user_id)
            if query.first():
                raise DuplicateAccount("Email already registered")
        if username is not None:
            query = self.db.query(models.Account.id).filter(models.Account.username == username)
            if exclude_user_id is not None:
                query = query.filter(models.Account.user_id != exclude_user_id)
            if query.first():
                raise DuplicateAccount("Username already exists")

    def _insert(self, data: schemas.AccountCreate, digest: str) -> models.Account:
        user_id = self.allocator.next(self.db)
        account = models.Account(
            user_id=user_id,
            name=data.name,
            username=data.username,
            email=data.email,
            password_digest=digest,
            gender=data.gender.value,
            mobile=data.mobile,
            following=[],
            followers=[],
        )
        self.db.add(account)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            # A concurrent registration may have claimed the email or username instead
            self._ensure_unique(email=data.email, username=data.username)
            raise IdentifierConflict(user_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Registration insert failed: {e}")
            raise StorageUnavailable("Error creating new user")
        self.db.refresh(account)
        return account

    def register(self, data: schemas.AccountCreate) -> Tuple[models.Account, str]:
        self._ensure_unique(email=data.email, username=data.username)
        digest = self.hasher.hash(data.password)

        for attempt in range(1, self.max_attempts + 1):
            try:
                account = self._insert(data, digest)
                break
            except IdentifierConflict as e:
                logger.warning(
                    f"user_id {e.user_id} claimed concurrently, retrying allocation "
                    f"(attempt {attempt}/{self.max_attempts})"
                )
        else:
            logger.error(f"Could not allocate a user_id for {data.username} after {self.max_attempts} attempts")
            raise StorageUnavailable("Error creating new user")

        logger.info(f"Registered {account.username} with user_id={account.user_id}")
        return account, self.credentials.issue(identity_of(account))

    def login(self, email: str, password: str) -> Tuple[models.Account, str]:
        account = self.db.query(models.Account).filter(models.Account.email == email).first()
        if account is None:
            raise NotFoundException("User not found")
        if not self.hasher.verify(password, account.password_digest):
            logger.warning(f"Failed login for user_id={account.user_id}")
            raise UnauthorizedException("Invalid credentials")

        logger.info(f"Login for user_id={account.user_id}")
        return account, self.credentials.issue(identity_of(account))

    def get_profile(self, caller: Identity) -> models.Account:
        account = self.db.query(models.Account).filter(models.Account.user_id == caller.user_id).first()
        if account is None:
            raise NotFoundException("User profile not found")
        return account

    def update_profile(self, caller: Identity, data: schemas.ProfileUpdate) -> models.Account:
        account = self.get_profile(caller)
        updates = data.model_dump(exclude_unset=True)
        for required in ("name", "username", "gender"):
            if updates.get(required) is None:
                updates.pop(required, None)
        if "gender" in updates:
            updates["gender"] = schemas.Gender(updates["gender"]).value
        if "username" in updates:
            self._ensure_unique(username=updates["username"], exclude_user_id=account.user_id)

        for field, value in updates.items():
            setattr(account, field, value)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateAccount("Username already exists")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Profile update failed for user_id={caller.user_id}: {e}")
            raise StorageUnavailable("Error updating user profile")
        self.db.refresh(account)
        logger.info(f"Updated profile of user_id={account.user_id}: {sorted(updates)}")
        return account
