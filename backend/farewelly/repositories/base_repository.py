# backend/farewelly/repositories/base_repository.py
"""
Base Repository Pattern for the Farewelly platform.

Every repository wraps one model and one request-scoped session. Driver
errors surface as RepositoryException so services and the error handlers
deal with a single failure type. Repositories flush but never commit; the
owning service decides the transaction scope.
"""

from contextlib import contextmanager
import logging
from typing import Any, Generic, Iterator, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Shared data access for a single model.

    Attributes:
        db: SQLAlchemy session
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            self.logger.error("Integrity error while %s %s: %s", action, self.model.__name__, exc)
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        except SQLAlchemyError as exc:
            self.logger.error("Database error while %s %s: %s", action, self.model.__name__, exc)
            raise RepositoryException(f"Failed {action} {self.model.__name__}: {exc}") from exc

    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        query = self._build_query().filter(self.model.id == id)  # type: ignore[attr-defined]
        if load_relationships:
            query = self._apply_eager_loading(query)
        with self._guard("loading"):
            return query.first()

    def create(self, **kwargs: Any) -> T:
        """Add and flush a new row so its id and defaults are populated."""
        entity = self.model(**kwargs)
        with self._guard("creating"):
            self.db.add(entity)
            self.db.flush()
        return entity

    def update(self, entity: T, **kwargs: Any) -> T:
        """
        Assign fields on a loaded entity and flush.

        Versioned models raise StaleDataError here when another writer won the race.
        """
        for key, value in kwargs.items():
            if hasattr(entity, key):
                setattr(entity, key, value)
        self.db.flush()
        return entity

    def exists(self, **criteria: Any) -> bool:
        with self._guard("checking"):
            return self._build_query().filter_by(**criteria).first() is not None

    def find_one_by(self, **criteria: Any) -> Optional[T]:
        with self._guard("finding"):
            return self._build_query().filter_by(**criteria).first()

    # Subclass hooks

    def _apply_eager_loading(self, query: Query) -> Query:
        """Override to eager-load the relationships a subclass always needs."""
        return query

    def _build_query(self) -> Query:
        return self.db.query(self.model)

    def _execute_query(self, query: Query) -> List[T]:
        with self._guard("querying"):
            return query.all()

    def _execute_scalar(self, query: Query) -> Any:
        with self._guard("aggregating"):
            return query.scalar()

    def _paginate(
        self, query: Query, *, offset: int, limit: int, options: tuple[Any, ...] = ()
    ) -> tuple[List[T], int]:
        """One page of results plus the total row count of the query."""
        with self._guard("paginating"):
            total = query.order_by(None).count()
            rows = query.options(*options).offset(offset).limit(limit).all()
        return rows, total
