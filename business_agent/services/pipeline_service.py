# business_agent/services/pipeline_service.py

import asyncio
import enum
import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from business_agent.core.errors import (
    BusinessAgentError,
    GenerationError,
    InvalidInputError,
    QueryExecutionError,
)
from business_agent.schemas.query import QueryResponse
from business_agent.services.execution_service import QueryExecutor
from business_agent.services.schema_service import SchemaCache
from business_agent.services.summary_service import ResultNarrator
from business_agent.services.translation_service import SQLTranslator

logger = logging.getLogger(__name__)


class PipelineStage(str, enum.Enum):
    RECEIVED = "received"
    SCHEMA_READY = "schema_ready"
    TRANSLATED = "translated"
    EXECUTED = "executed"
    SUMMARIZED = "summarized"
    RESPONDED = "responded"
    FAILED = "failed"


class QueryPipeline:
    """
    질문 하나당 선형 파이프라인:
      RECEIVED -> SCHEMA_READY -> TRANSLATED -> EXECUTED -> SUMMARIZED -> RESPONDED
    어느 단계든 실패하면 FAILED 로 끝나고 예외를 그대로 올린다. 재시도 없음.
    """

    def __init__(
        self,
        schema_cache: SchemaCache,
        translator: SQLTranslator,
        executor: QueryExecutor,
        narrator: ResultNarrator,
        sql_timeout: Optional[float] = None,
    ):
        self.schema_cache = schema_cache
        self.translator = translator
        self.executor = executor
        self.narrator = narrator
        self.sql_timeout = sql_timeout

    async def run(self, query: Optional[str]) -> QueryResponse:
        stage = PipelineStage.RECEIVED
        try:
            # 외부 호출 전에 입력부터 확인
            if query is None or not query.strip():
                raise InvalidInputError("Query is required")
            question = query.strip()

            schema = await self.schema_cache.get()
            stage = PipelineStage.SCHEMA_READY

            generated = await self.translator.translate(question, schema=schema)
            if not generated.sql:
                raise GenerationError("Failed to generate SQL query")
            stage = PipelineStage.TRANSLATED

            results = await self._execute(generated.sql)
            stage = PipelineStage.EXECUTED

            summary = await self.narrator.summarize(
                question,
                generated.sql,
                results,
                generated.explanation,
                generated.visualization_hint,
            )
            stage = PipelineStage.SUMMARIZED

            response = QueryResponse(
                query=question,
                sql=generated.sql,
                explanation=generated.explanation,
                results=results,
                summary=summary,
                visualizationType=generated.visualization_hint,
            )
            stage = PipelineStage.RESPONDED
        except BusinessAgentError as e:
            logger.warning(
                "Pipeline %s after stage=%s: %s: %s",
                PipelineStage.FAILED.value, stage.value, type(e).__name__, e,
            )
            raise

        logger.info("Pipeline %s: rows=%d", stage.value, len(response.results))
        return response

    async def _execute(self, sql: str):
        try:
            return await asyncio.wait_for(
                run_in_threadpool(self.executor.execute, sql),
                timeout=self.sql_timeout,
            )
        except asyncio.TimeoutError as e:
            raise QueryExecutionError(f"Query timed out after {self.sql_timeout}s") from e
