# business_agent/schemas/query.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class QueryRequest(BaseModel):
    """
    프론트에서 보내는 요청 바디.
    예: { "query": "What are the top 5 products by revenue?" }

    빈 값/누락은 pydantic 422 가 아니라 파이프라인에서 InvalidInputError(400) 로 처리한다.
    """
    query: Optional[str] = None


class QueryResponse(BaseModel):
    """
    UI 로 나가는 응답 형식. 한 번 만들어지면 변경하지 않는다.
    """
    model_config = ConfigDict(frozen=True)

    query: str
    sql: str
    explanation: Optional[str] = None
    results: List[Dict[str, Any]] = Field(default_factory=list)
    summary: str
    visualizationType: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str


class SchemaRefreshResponse(BaseModel):
    tables: List[str]
    table_count: int
