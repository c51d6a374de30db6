# backend/drivebook/repositories/base_repository.py
"""
Generic data access shared by every DriveBook repository.

Repositories flush but never commit. Commit and rollback belong to
``BaseService.transaction()`` so one service call is one unit of work.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
import logging
from typing import Any, Generic, Iterator, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

T = TypeVar("T")

logger = logging.getLogger(__name__)


class IRepository(ABC, Generic[T]):
    """Minimal contract the services rely on."""

    @abstractmethod
    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        """Entity with primary key ``id``, or None."""

    @abstractmethod
    def create(self, **kwargs: Any) -> T:
        """Insert and flush; raises RepositoryException on failure."""

    @abstractmethod
    def update(self, id: str, **kwargs: Any) -> Optional[T]:
        """Apply ``kwargs`` to an existing row; None when it does not exist."""

    @abstractmethod
    def exists(self, **kwargs: Any) -> bool:
        ...

    @abstractmethod
    def count(self, **kwargs: Any) -> int:
        ...


class BaseRepository(IRepository[T]):
    """
    CRUD over one mapped model.

    Subclasses add their own queries and run them inside ``self._guard(...)``
    so driver errors always surface as ``RepositoryException``.
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        """Translate SQLAlchemy failures raised while doing ``action``."""
        try:
            yield
        except SQLAlchemyError as e:
            self.logger.error("%s failed on %s: %s", action, self.model.__name__, e)
            raise RepositoryException(f"Failed to {action}: {e}") from e

    def _query(self) -> Query:
        return self.db.query(self.model)

    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        with self._guard(f"get {self.model.__name__} {id}"):
            query = self._query().filter(self.model.id == id)  # type: ignore[attr-defined]
            if load_relationships:
                query = self._apply_eager_loading(query)
            return query.first()

    def get_all(self, skip: int = 0, limit: int = 100) -> List[T]:
        with self._guard(f"list {self.model.__name__}"):
            return self._query().offset(skip).limit(limit).all()

    def refresh(self, instance: T) -> None:
        self.db.refresh(instance)

    def create(self, **kwargs: Any) -> T:
        """
        Add a new row and flush it so the id and defaults are populated.

        An ``IntegrityError`` is kept as ``__cause__`` of the raised
        RepositoryException; callers inspect it to map constraint names to
        domain errors.
        """
        entity = self.model(**kwargs)
        try:
            self.db.add(entity)
            self.db.flush()
        except IntegrityError as exc:
            self.logger.warning("Constraint rejected new %s: %s", self.model.__name__, exc.orig)
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        except SQLAlchemyError as exc:
            self.logger.error("Could not create %s: %s", self.model.__name__, exc)
            raise RepositoryException(f"Failed to create {self.model.__name__}: {exc}") from exc
        return entity

    def flush(self) -> None:
        self.db.flush()

    def update(self, id: str, **kwargs: Any) -> Optional[T]:
        """Set the given attributes; unknown names are ignored."""
        with self._guard(f"update {self.model.__name__} {id}"):
            entity = self.get_by_id(id, load_relationships=False)
            if entity is None:
                return None
            for key, value in kwargs.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)
            self.db.flush()
            return entity

    def exists(self, **kwargs: Any) -> bool:
        with self._guard("check existence"):
            return self._query().filter_by(**kwargs).first() is not None

    def count(self, **kwargs: Any) -> int:
        with self._guard("count rows"):
            return self._query().filter_by(**kwargs).count()

    def find_by(self, **kwargs: Any) -> List[T]:
        with self._guard("find rows"):
            return self._query().filter_by(**kwargs).all()

    def find_one_by(self, **kwargs: Any) -> Optional[T]:
        with self._guard("find row"):
            return self._query().filter_by(**kwargs).first()

    def _apply_eager_loading(self, query: Query) -> Query:
        """Hook for subclasses that want relationships loaded with the row."""
        return query

    def _execute_query(self, query: Query) -> List[T]:
        with self._guard("run query"):
            return query.all()

    def _execute_scalar(self, query: Query) -> Any:
        with self._guard("run scalar query"):
            return query.scalar()
