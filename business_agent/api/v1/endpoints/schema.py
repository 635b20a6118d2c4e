from typing import Any, Dict

from fastapi import APIRouter, Depends

from business_agent.api.deps import get_schema_cache
from business_agent.schemas.query import SchemaRefreshResponse
from business_agent.schemas.schema_model import schema_to_dict
from business_agent.services.schema_service import SchemaCache

router = APIRouter()


@router.get("")
async def get_schema(cache: SchemaCache = Depends(get_schema_cache)) -> Dict[str, Any]:
    schema = await cache.get()
    return schema_to_dict(schema)


@router.post("/refresh", response_model=SchemaRefreshResponse)
async def refresh_schema(cache: SchemaCache = Depends(get_schema_cache)) -> SchemaRefreshResponse:
    """
    카탈로그를 다시 읽어서 캐시를 통째로 교체한다. (스키마 변경 후 재시작 없이 반영)
    """
    schema = await cache.refresh()
    tables = list(schema.keys())
    return SchemaRefreshResponse(tables=tables, table_count=len(tables))
