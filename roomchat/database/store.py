"""
Relational store layer for table operations.

Handles query / insert / update / delete / count against the rooms,
room_members and messages tables, and publishes a change event to the
change feed after every committed write.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import Table, select, insert, update, delete, func, and_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from roomchat.core.errors import ConflictException, ExternalServiceException
from roomchat.core.logging import get_logger, log_database_operation
from roomchat.database.change_feed import ChangeFeed
from roomchat.database.engine import Base
from roomchat.domain.events import RowChanged, EVENT_INSERT, EVENT_UPDATE, EVENT_DELETE
from roomchat.utils.time_utils import utc_now
import roomchat.models  # noqa: F401  모델을 metadata에 등록

logger = get_logger(__name__)

# (column, descending) 쌍
OrderBy = Sequence[Tuple[str, bool]]


class RelationalStore:
    """테이블 단위 CRUD + 변경 이벤트 발행"""

    def __init__(self, session_factory: async_sessionmaker, feed: ChangeFeed):
        self.session_factory = session_factory
        self.feed = feed

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _table(name: str) -> Table:
        try:
            return Base.metadata.tables[name]
        except KeyError:
            raise ValueError(f"Unknown table: {name}")

    @staticmethod
    def _where(table: Table, where: Optional[Dict[str, Any]]):
        if not where:
            return None
        return and_(*[table.c[column] == value for column, value in where.items()])

    @staticmethod
    def _apply_defaults(table: Table, row: Dict[str, Any]) -> Dict[str, Any]:
        """파이썬 측 기본값(id, created_at 등)을 미리 채워 삽입된 행을 그대로 반환할 수 있게 함"""
        values = dict(row)
        for column in table.columns:
            if column.name in values or column.default is None:
                continue
            if column.default.is_callable:
                values[column.name] = column.default.arg(None)
            elif column.default.is_scalar:
                values[column.name] = column.default.arg
        return values

    async def _publish(self, table: str, event_type: str, new: Dict[str, Any] = None, old: Dict[str, Any] = None):
        await self.feed.publish(
            RowChanged(
                timestamp=utc_now(),
                table=table,
                event_type=event_type,
                new=new or {},
                old=old or {},
            )
        )

    # =========================================================================
    # Operations
    # =========================================================================

    async def query(
        self,
        table_name: str,
        where: Optional[Dict[str, Any]] = None,
        order_by: Optional[OrderBy] = None
    ) -> List[Dict[str, Any]]:
        """조건 조회 (컬럼 == 값 AND 결합)"""
        table = self._table(table_name)
        stmt = select(table)

        condition = self._where(table, where)
        if condition is not None:
            stmt = stmt.where(condition)

        for column, descending in order_by or ():
            stmt = stmt.order_by(table.c[column].desc() if descending else table.c[column].asc())

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                rows = [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            logger.error(f"Query on {table_name} failed: {e}")
            raise ExternalServiceException("Relational store", f"query on {table_name} failed") from e

        return rows

    async def insert(self, table_name: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """행 삽입 후 삽입된 행 반환"""
        table = self._table(table_name)
        values = self._apply_defaults(table, row)

        try:
            async with self.session_factory() as session:
                await session.execute(insert(table).values(**values))
                await session.commit()
        except IntegrityError as e:
            logger.warning(f"Insert into {table_name} conflicted: {e.orig}")
            raise ConflictException(
                f"Conflicting row in {table_name}",
                details={"table": table_name}
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Insert into {table_name} failed: {e}")
            raise ExternalServiceException("Relational store", f"insert into {table_name} failed") from e

        log_database_operation(logger, "INSERT", table_name, affected_rows=1)
        await self._publish(table_name, EVENT_INSERT, new=values)
        return values

    async def update(self, table_name: str, where: Dict[str, Any], patch: Dict[str, Any]) -> int:
        """조건에 맞는 행 갱신, 갱신된 행 수 반환"""
        table = self._table(table_name)
        stmt = update(table).where(self._where(table, where)).values(**patch)

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
                affected = result.rowcount
        except IntegrityError as e:
            raise ConflictException(
                f"Update on {table_name} violates a constraint",
                details={"table": table_name}
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Update on {table_name} failed: {e}")
            raise ExternalServiceException("Relational store", f"update on {table_name} failed") from e

        log_database_operation(logger, "UPDATE", table_name, affected_rows=affected)
        if affected:
            await self._publish(table_name, EVENT_UPDATE, new={**where, **patch}, old=dict(where))
        return affected

    async def delete(self, table_name: str, where: Dict[str, Any]) -> int:
        """조건에 맞는 행 삭제, 삭제된 행 수 반환"""
        table = self._table(table_name)
        stmt = delete(table).where(self._where(table, where))

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
                affected = result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Delete on {table_name} failed: {e}")
            raise ExternalServiceException("Relational store", f"delete on {table_name} failed") from e

        log_database_operation(logger, "DELETE", table_name, affected_rows=affected)
        if affected:
            await self._publish(table_name, EVENT_DELETE, old=dict(where))
        return affected

    async def count(self, table_name: str, where: Optional[Dict[str, Any]] = None) -> int:
        """조건에 맞는 행 수"""
        table = self._table(table_name)
        stmt = select(func.count()).select_from(table)

        condition = self._where(table, where)
        if condition is not None:
            stmt = stmt.where(condition)

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return result.scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Count on {table_name} failed: {e}")
            raise ExternalServiceException("Relational store", f"count on {table_name} failed") from e
