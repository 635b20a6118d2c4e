# business_agent/db/rows.py

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Optional


def normalize_value(value):
    """
    DB 조회 결과를 JSON 직렬화 가능한 타입으로 변환.

    - Decimal  -> float
    - date/datetime/time -> ISO 문자열
    - bytes -> utf-8 문자열 (디코딩 불가 바이트는 치환)
    - 나머지는 그대로
    """
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return value


def rows_from_result(result, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    SQLAlchemy Result 를 List[dict] 로 변환. 순서는 엔진이 돌려준 그대로 유지한다.
    """
    keys = list(result.keys())
    raw_rows = result.fetchmany(limit) if limit else result.fetchall()
    return [
        {col: normalize_value(val) for col, val in zip(keys, row)}
        for row in raw_rows
    ]
