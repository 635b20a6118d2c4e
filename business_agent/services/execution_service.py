# business_agent/services/execution_service.py

import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from business_agent.core.errors import QueryExecutionError
from business_agent.db.rows import rows_from_result

logger = logging.getLogger(__name__)

_READ_ONLY_START_RE = re.compile(r"^\s*(SELECT|WITH)\b", re.IGNORECASE)


def engine_message(exc: SQLAlchemyError) -> str:
    """
    드라이버가 준 원본 에러 메시지 (SQLAlchemy 래핑 문구 제외).
    """
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig).strip()
    return str(exc)


def ensure_read_only(sql: str) -> str:
    # 세미콜론은 끝에 하나만 허용 (다중 문장 금지)
    body = sql.strip().rstrip(";")
    if ";" in body:
        raise QueryExecutionError("Multiple SQL statements are not allowed.")
    if not _READ_ONLY_START_RE.match(body):
        raise QueryExecutionError("Only SELECT queries are allowed.")
    return sql


class QueryExecutor:
    """
    생성된 SQL 을 그대로 실행한다. 검증/정제는 하지 않는다 (read_only=True 일 때만 문장 종류 확인).
    세션은 호출마다 열고, 예외가 나도 반드시 닫는다.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        read_only: bool = False,
        max_rows: Optional[int] = None,
    ):
        self._session_factory = session_factory
        self.read_only = read_only
        self.max_rows = max_rows

    def execute(self, sql: str) -> List[Dict[str, Any]]:
        if self.read_only:
            ensure_read_only(sql)

        with self._session_factory() as db:
            try:
                result = db.execute(text(sql))
                rows = rows_from_result(result, self.max_rows) if result.returns_rows else []
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                message = engine_message(e)
                logger.error("SQL execution failed: %s", message)
                raise QueryExecutionError(message) from e

        logger.info("SQL executed: %d rows", len(rows))
        return rows
