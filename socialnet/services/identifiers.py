from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models


class IdentifierAllocator:
    """Hands out the next integer user_id as max(user_id) + 1.

    Two concurrent callers can read the same maximum. The unique index on
    accounts.user_id makes the losing insert fail, and the caller retries.
    """

    def next(self, db: Session) -> int:
        current = db.query(func.max(models.Account.user_id)).scalar()
        return 1 if current is None else current + 1
