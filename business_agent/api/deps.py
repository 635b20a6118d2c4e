# business_agent/api/deps.py

from functools import lru_cache

from business_agent.core.config import get_settings
from business_agent.core.llm_client import LLMClient
from business_agent.db.session import get_session_factory
from business_agent.services.execution_service import QueryExecutor
from business_agent.services.pipeline_service import QueryPipeline
from business_agent.services.schema_service import SchemaCache, SchemaIntrospector
from business_agent.services.summary_service import ResultNarrator
from business_agent.services.translation_service import SQLTranslator


@lru_cache
def get_schema_cache() -> SchemaCache:
    """
    프로세스 전체에서 하나만 쓰는 스키마 캐시.
    """
    settings = get_settings()
    introspector = SchemaIntrospector(get_session_factory(), db_schema=settings.DB_SCHEMA)
    return SchemaCache(introspector, timeout=settings.SQL_TIMEOUT_SECONDS)


@lru_cache
def get_pipeline() -> QueryPipeline:
    settings = get_settings()
    llm = LLMClient.from_settings(settings)
    schema_cache = get_schema_cache()

    return QueryPipeline(
        schema_cache=schema_cache,
        translator=SQLTranslator(schema_cache, llm, model=settings.OPENAI_SQL_MODEL),
        executor=QueryExecutor(
            get_session_factory(),
            read_only=settings.SQL_READ_ONLY,
            max_rows=settings.MAX_RESULT_ROWS,
        ),
        narrator=ResultNarrator(llm, model=settings.OPENAI_SUMMARY_MODEL),
        sql_timeout=settings.SQL_TIMEOUT_SECONDS,
    )
