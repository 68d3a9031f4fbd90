# backend/chatapp/repositories/base_repository.py
"""
Shared data access for the chat entities.

Every concrete repository wraps one SQLAlchemy model. Writes are flushed so
generated ULIDs are visible, but never committed: the service that opened
the transaction decides when the unit of work ends.

Driver errors are logged here and re-raised as RepositoryException so the
service layer only ever deals with one failure type from below.
"""

import logging
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

ModelT = TypeVar("ModelT")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelT]):
    """Lookup, insert and existence checks shared by all chat repositories."""

    def __init__(self, db: Session, model: Type[ModelT]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def _label(self) -> str:
        return self.model.__name__

    def _fail(self, action: str, error: Exception) -> RepositoryException:
        self.logger.error("%s failed for %s: %s", action, self._label, error)
        return RepositoryException(f"Failed to {action} {self._label}: {error}")

    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[ModelT]:
        """
        Fetch one row by primary key.

        With load_relationships the subclass eager-loading hook is applied,
        so serializers can walk relations without extra round trips.
        """
        query = self.db.query(self.model).filter(self.model.id == id)  # type: ignore[attr-defined]
        if load_relationships:
            query = self._apply_eager_loading(query)
        try:
            return query.first()
        except SQLAlchemyError as e:
            raise self._fail("load", e) from e

    def create(self, **fields: Any) -> ModelT:
        """Insert a row and flush it so the generated id is populated."""
        entity = self.model(**fields)
        self.db.add(entity)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            self.logger.warning("Constraint rejected new %s: %s", self._label, e.orig)
            raise RepositoryException(f"{self._label} violates a uniqueness or reference rule") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise self._fail("create", e) from e
        return entity

    def refresh(self, instance: ModelT) -> None:
        self.db.refresh(instance)

    def find_one_by(self, **criteria: Any) -> Optional[ModelT]:
        try:
            return self.db.query(self.model).filter_by(**criteria).first()
        except SQLAlchemyError as e:
            raise self._fail("query", e) from e

    def exists(self, **criteria: Any) -> bool:
        return self.find_one_by(**criteria) is not None

    # Hooks for subclasses

    def _apply_eager_loading(self, query: Query) -> Query:
        """Subclasses attach joinedload/selectinload options here."""
        return query

    def _execute_query(self, query: Query) -> List[ModelT]:
        try:
            return query.all()
        except SQLAlchemyError as e:
            raise self._fail("list", e) from e
