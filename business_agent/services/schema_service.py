# business_agent/services/schema_service.py

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import inspect, literal_column, select, table
from sqlalchemy.engine import Connection
from sqlalchemy.exc import CompileError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from business_agent.core.errors import SchemaIntrospectionError
from business_agent.db.rows import rows_from_result
from business_agent.schemas.schema_model import (
    ColumnInfo,
    ForeignKeyRef,
    SchemaModel,
    TableInfo,
)

logger = logging.getLogger(__name__)

# 프롬프트 그라운딩용 샘플 행 수
SAMPLE_ROW_LIMIT = 5


def _type_name(col_type, dialect) -> str:
    try:
        return str(col_type.compile(dialect=dialect))
    except CompileError:
        # 해당 dialect 에서 렌더링할 수 없는 타입(NullType 등)
        return type(col_type).__name__.upper()


class SchemaIntrospector:
    """
    라이브 카탈로그를 읽어서 SchemaModel 을 만든다.

    1) 기본(또는 DB_SCHEMA) 네임스페이스의 사용자 테이블 목록
    2) 테이블별 컬럼 + PK 여부
    3) 테이블별 샘플 행 최대 5개
    4) FK 제약을 소유 테이블의 relationships 로 부착

    한 단계라도 실패하면 부분 결과는 버리고 SchemaIntrospectionError 를 던진다.
    커넥션은 호출당 하나만 체크아웃하고, 끝나면 반납한다.
    """

    def __init__(self, session_factory: sessionmaker, db_schema: Optional[str] = None):
        self._session_factory = session_factory
        self._db_schema = db_schema

    def introspect(self) -> SchemaModel:
        try:
            with self._session_factory() as db:
                conn = db.connection()
                schema = self._read_catalog(conn)
        except SQLAlchemyError as e:
            logger.error("Schema introspection failed: %s", e)
            raise SchemaIntrospectionError(f"Failed to read database schema: {e}") from e

        logger.info("Schema introspected: %d tables", len(schema))
        return schema

    def _read_catalog(self, conn: Connection) -> SchemaModel:
        insp = inspect(conn)
        table_names = insp.get_table_names(schema=self._db_schema)

        columns_by_table: Dict[str, List[ColumnInfo]] = {}
        samples_by_table: Dict[str, List[Dict[str, Any]]] = {}
        relations_by_table: Dict[str, List[ForeignKeyRef]] = {name: [] for name in table_names}

        for name in table_names:
            pk = insp.get_pk_constraint(name, schema=self._db_schema) or {}
            pk_cols = set(pk.get("constrained_columns") or [])

            columns_by_table[name] = [
                ColumnInfo(
                    name=col["name"],
                    declared_type=_type_name(col["type"], conn.dialect),
                    nullable=bool(col.get("nullable", True)),
                    is_primary_key=col["name"] in pk_cols,
                )
                for col in insp.get_columns(name, schema=self._db_schema)
            ]
            samples_by_table[name] = self._sample_rows(conn, name)

        for name in table_names:
            for fk in insp.get_foreign_keys(name, schema=self._db_schema):
                referred = fk.get("referred_table")
                if not referred:
                    continue
                # 복합 FK 는 컬럼 쌍마다 하나씩
                for local_col, ref_col in zip(
                    fk.get("constrained_columns") or [],
                    fk.get("referred_columns") or [],
                ):
                    relations_by_table[name].append(
                        ForeignKeyRef(
                            column_name=local_col,
                            referenced_table=referred,
                            referenced_column=ref_col,
                        )
                    )

        return {
            name: TableInfo(
                columns=tuple(columns_by_table[name]),
                sample_rows=tuple(samples_by_table[name]),
                relationships=tuple(relations_by_table[name]),
            )
            for name in table_names
        }

    def _sample_rows(self, conn: Connection, table_name: str) -> List[Dict[str, Any]]:
        stmt = (
            select(literal_column("*"))
            .select_from(table(table_name, schema=self._db_schema))
            .limit(SAMPLE_ROW_LIMIT)
        )
        return rows_from_result(conn.execute(stmt))


class SchemaCache:
    """
    프로세스 단위 SchemaModel 캐시.

    - 첫 get() 에서 한 번만 introspection (asyncio.Lock 으로 단일 writer)
    - 실패하면 캐시는 비워진 채로 남아서 다음 요청이 다시 시도한다
    - refresh() 는 통째로 다시 만들어서 교체한다
    """

    def __init__(self, introspector: SchemaIntrospector, timeout: Optional[float] = None):
        self._introspector = introspector
        self._timeout = timeout
        self._schema: Optional[SchemaModel] = None
        self._lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._schema is not None

    async def get(self) -> SchemaModel:
        if self._schema is not None:
            return self._schema
        async with self._lock:
            # 락을 기다리는 동안 다른 요청이 채웠을 수 있음
            if self._schema is None:
                self._schema = await self._load()
        return self._schema

    async def refresh(self) -> SchemaModel:
        async with self._lock:
            schema = await self._load()
            self._schema = schema
        return schema

    async def _load(self) -> SchemaModel:
        try:
            return await asyncio.wait_for(
                run_in_threadpool(self._introspector.introspect),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error("Schema introspection timed out after %ss", self._timeout)
            raise SchemaIntrospectionError(
                f"Schema introspection timed out after {self._timeout}s"
            ) from e
