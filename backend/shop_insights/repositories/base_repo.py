"""
Base repository with strict tenant scope enforcement.

CRITICAL: Every read on a tenant-scoped model goes through
_enforce_tenant_scope. A repository is bound to exactly one ScopeFilter
at construction time and cannot widen it.
"""

import logging
from abc import ABC
from typing import ClassVar, Generic, Optional, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.db_base import Base
from shop_insights.platform.tenant_context import ScopeFilter

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Base)


class TenantIsolationError(Exception):
    """Raised when a record outside the repository scope is encountered."""
    pass


class ScopedRepository(Generic[T], ABC):
    """
    Base repository with mandatory scope enforcement.

    Subclasses set `model` to a model carrying a tenant_id column.
    """

    model: ClassVar[type]

    def __init__(self, session: AsyncSession, scope: ScopeFilter):
        if scope is None:
            raise ValueError("scope is required")
        self.session = session
        self.scope = scope

    def _enforce_tenant_scope(self, statement: Select) -> Select:
        """Restrict a statement to the repository scope."""
        return self.scope.apply(statement, self.model)

    def _select(self, *options) -> Select:
        statement = select(self.model)
        if options:
            statement = statement.options(*options)
        return self._enforce_tenant_scope(statement)

    def _check_visible(self, entity: Optional[T]) -> Optional[T]:
        """
        Verify a loaded entity belongs to the scope.

        The query already filters by tenant; this catches filter bugs before
        data leaves the repository.
        """
        if entity is not None and not self.scope.matches(entity.tenant_id):
            logger.error(
                "Scoped query returned a record outside its scope",
                extra={
                    "entity_type": self.model.__name__,
                    "entity_tenant_id": entity.tenant_id,
                    **self.scope.as_log_extra(),
                },
            )
            raise TenantIsolationError(
                f"{self.model.__name__} outside scope {self.scope}"
            )
        return entity

    async def _all(self, statement: Select) -> list[T]:
        result = await self.session.execute(statement)
        return [self._check_visible(row) for row in result.unique().scalars().all()]

    async def count(self) -> int:
        """Number of rows visible in this scope."""
        statement = self._enforce_tenant_scope(
            select(func.count()).select_from(self.model)
        )
        return int((await self.session.execute(statement)).scalar_one())
