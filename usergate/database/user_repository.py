"""Repository for User database operations."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import asc, desc, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from usergate.models.user import User
from usergate.models.errors import ConflictError
from usergate.models.constants import MSG_ACCOUNT_CONFLICT
from usergate.database.models import UserDB, enum_to_value

logger = logging.getLogger(__name__)

# Columns that may be written through save(); id and created_at are immutable.
_WRITABLE_COLUMNS = ("email", "password", "name", "role", "external_id", "last_login_at")


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        return user_db.to_pydantic() if user_db else None

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (exact, case-sensitive match)."""
        user_db = self.db.query(UserDB).filter(UserDB.email == email).first()
        return user_db.to_pydantic() if user_db else None

    def get_by_external_id(self, external_id: str) -> Optional[User]:
        """Get user by identity-provider subject id."""
        user_db = self.db.query(UserDB).filter(UserDB.external_id == external_id).first()
        return user_db.to_pydantic() if user_db else None

    def create(self, user: User) -> User:
        """Insert a new user.

        Raises:
            ConflictError: email or external_id already taken (unique constraint)
        """
        try:
            user_db = UserDB.from_pydantic(user)
            self.db.add(user_db)
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Created user {user.id}: {user.email}")
            return user_db.to_pydantic()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Unique constraint violated creating user {user.id}: {type(e).__name__}")
            raise ConflictError(MSG_ACCOUNT_CONFLICT) from e
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user {user.id}: {type(e).__name__}: {str(e)}")
            raise

    def save(self, user_id: str, fields: Dict[str, Any]) -> User:
        """Apply a partial set of column values to an existing user.

        Raises:
            ValueError: user does not exist
            ConflictError: the new email or external_id belongs to another user
        """
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        if not user_db:
            raise ValueError(f"User {user_id} not found")

        for column, value in fields.items():
            if column not in _WRITABLE_COLUMNS:
                continue
            if column == "role":
                value = enum_to_value(value)
            setattr(user_db, column, value)
        user_db.updated_at = datetime.utcnow()

        try:
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Updated user {user_id}: fields={sorted(fields)}")
            return user_db.to_pydantic()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Unique constraint violated updating user {user_id}: {type(e).__name__}")
            raise ConflictError(MSG_ACCOUNT_CONFLICT) from e
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, user_id: str) -> bool:
        """Permanently delete a user by ID."""
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        if not user_db:
            return False

        try:
            self.db.delete(user_db)
            self.db.commit()
            logger.debug(f"Deleted user {user_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def update_last_login(self, user_id: str, when: Optional[datetime] = None) -> bool:
        """Set last_login_at for a user. Returns True if a row was updated."""
        when = when or datetime.utcnow()
        try:
            affected = (
                self.db.query(UserDB)
                .filter(UserDB.id == user_id)
                .update({UserDB.last_login_at: when, UserDB.updated_at: when}, synchronize_session=False)
            )
            self.db.commit()
            logger.debug(f"Updated last_login_at for user {user_id}")
            return bool(affected)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update last_login_at for user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def list_page(
        self,
        *,
        role: Optional[str],
        sort_column: str,
        descending: bool,
        offset: int,
        limit: int,
    ) -> Tuple[List[User], int]:
        """Return one page of users plus the total number of matching rows."""
        query = self.db.query(UserDB)
        if role:
            query = query.filter(UserDB.role == enum_to_value(role))

        total = query.count()

        column = getattr(UserDB, sort_column)
        direction = desc if descending else asc
        users_db = (
            query.order_by(direction(column), asc(UserDB.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [user_db.to_pydantic() for user_db in users_db], total

    def list_inactive(self, cutoff: datetime) -> List[User]:
        """Users whose last login is before `cutoff` or who never logged in."""
        users_db = self.db.query(UserDB).filter(
            or_(UserDB.last_login_at < cutoff, UserDB.last_login_at.is_(None))
        ).all()
        return [user_db.to_pydantic() for user_db in users_db]
