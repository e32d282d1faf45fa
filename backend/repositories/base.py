"""
Base repository class shared by the table repositories.
"""

from typing import Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from repositories.database import Base

T = TypeVar("T", bound=Base)  # type: ignore[type-arg]


class BaseRepository(Generic[T]):
    """
    Session-bound repository for one SQLAlchemy model.

    Every write commits immediately: callers never hold a transaction open
    across requests.
    """

    def __init__(self, model: type[T], db: Session):
        self.model = model
        self.db = db

    def save(self, entity: T) -> T:
        """
        Insert or update an entity and commit.

        Args:
            entity: New or already-attached entity

        Returns:
            The entity refreshed from the database
        """
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def count(self) -> int:
        """Number of rows in the model's table."""
        return self.db.scalar(select(func.count()).select_from(self.model)) or 0

    def rollback(self) -> None:
        """Rollback the current transaction."""
        self.db.rollback()
