# backend/drivebook/services/base.py
"""
Shared plumbing for DriveBook services.

Every service owns a session, commits through ``transaction()`` and wraps
its public operations in ``measure_operation`` so timings reach both the
in-process stats table and Prometheus.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
import logging
import time
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import ForbiddenException, ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

if TYPE_CHECKING:
    from ..principal import CallerContext

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


@dataclass
class OperationStats:
    """Running timings for one service operation."""

    count: int = 0
    successes: int = 0
    total: float = 0.0
    fastest: Optional[float] = None
    slowest: float = 0.0

    def record(self, elapsed: float, ok: bool) -> None:
        self.count += 1
        self.total += elapsed
        self.slowest = max(self.slowest, elapsed)
        self.fastest = elapsed if self.fastest is None else min(self.fastest, elapsed)
        if ok:
            self.successes += 1

    def summary(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "avg_time": self.total / self.count,
            "min_time": self.fastest,
            "max_time": self.slowest,
            "total_time": self.total,
            "success_rate": self.successes / self.count,
            "success_count": self.successes,
            "failure_count": self.count - self.successes,
        }


class BaseService:
    """Parent of every service: session, transaction scope, timing, role checks."""

    # service class name -> operation name -> stats
    _stats: ClassVar[Dict[str, Dict[str, OperationStats]]] = {}

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit the work done inside the block, or roll all of it back.

        Database errors surface as ``ServiceException``. Anything else,
        domain exceptions included, propagates unchanged after the rollback.
        """
        try:
            yield self.db
            self.db.commit()
        except SQLAlchemyError as e:
            self.logger.error("Transaction failed: %s", e)
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {e}") from e
        except Exception as e:
            self.logger.debug("Rolling back after %s", type(e).__name__)
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service method and report the outcome.

        Usage:
            @BaseService.measure_operation("book_slot")
            def book_slot(self, caller, slot_id):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                started = time.perf_counter()
                error_type: Optional[str] = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    self._finish_operation(
                        operation_name, time.perf_counter() - started, error_type
                    )

            return cast(F, wrapper)

        return decorator

    def _finish_operation(
        self, operation: str, elapsed: float, error_type: Optional[str]
    ) -> None:
        service_name = self.__class__.__name__
        per_service = BaseService._stats.setdefault(service_name, {})
        per_service.setdefault(operation, OperationStats()).record(elapsed, error_type is None)

        if elapsed > SLOW_OPERATION_SECONDS:
            self.logger.warning("Slow operation: %s took %.2fs", operation, elapsed)

        prometheus_metrics.record_service_operation(
            service=service_name,
            operation=operation,
            duration=elapsed,
            status="error" if error_type else "success",
            error_type=error_type,
        )

    def require_role(self, caller: "CallerContext", *roles: RoleName) -> None:
        """Raise ForbiddenException unless the caller holds one of ``roles``."""
        if caller.role in roles:
            return
        names = [role.value for role in roles]
        raise ForbiddenException(
            f"This action requires role {', '.join(names)}",
            code="ROLE_REQUIRED",
            details={"required_roles": names},
        )

    def log_operation(self, operation: str, **context: Any) -> None:
        """Info-level audit line; ``context`` lands on the record as attributes."""
        self.logger.info("Operation: %s", operation, extra={"operation": operation, **context})

    def get_metrics(self) -> Dict[str, Any]:
        """Timing summary per measured operation of this service class."""
        per_service = BaseService._stats.get(self.__class__.__name__, {})
        return {name: stats.summary() for name, stats in per_service.items() if stats.count}

    def reset_metrics(self) -> None:
        BaseService._stats.pop(self.__class__.__name__, None)
