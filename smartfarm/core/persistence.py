"""
Thin persistence collaborator over an ``AsyncSession``.

Services receive a ``Persistence`` instead of reaching for a request-global
session. Every statement is a SQLAlchemy construct, so parameters are always
bound, never interpolated.
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from smartfarm.core.exceptions import ConflictError, PersistenceError


@dataclass(frozen=True)
class ExecuteResult:
    insert_id: Optional[int]
    rows_affected: int


class Persistence:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def execute(self, statement: Executable) -> ExecuteResult:
        """Run an insert/update/delete and report the new id and affected rows"""
        result = await self.session.execute(statement)
        insert_id = None
        if getattr(statement, "is_insert", False):
            primary_key = result.inserted_primary_key
            insert_id = primary_key[0] if primary_key else None
        return ExecuteResult(insert_id=insert_id, rows_affected=result.rowcount)

    async def add(self, entity: Any) -> Any:
        """Stage a new entity and flush it so its primary key is assigned"""
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def delete(self, entity: Any) -> None:
        await self.session.delete(entity)
        await self.session.flush()

    async def refresh(self, entity: Any) -> Any:
        """Reload server-generated columns after a commit"""
        await self.session.refresh(entity)
        return entity

    async def fetch_one(self, statement: Executable) -> Optional[Any]:
        """First row's first selected element (an ORM entity when selecting one)"""
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def fetch_all(self, statement: Executable) -> List[Any]:
        """All rows; entities/scalars for single-element selects, ``Row`` objects otherwise"""
        result = await self.session.execute(statement)
        if len(result.keys()) == 1:
            return list(result.scalars().all())
        return list(result.all())

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["Persistence"]:
        """
        All-or-nothing unit of work.

        Commits when the block exits cleanly. Any exception rolls back every
        statement issued inside the block; database failures are re-raised as
        ``ConflictError`` (constraint violations) or ``PersistenceError``.
        """
        try:
            yield self
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError("Request conflicts with existing data") from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise PersistenceError("Storage operation failed") from exc
        except Exception:
            await self.session.rollback()
            raise
