from fastapi import APIRouter, Depends

from business_agent.api.deps import get_pipeline
from business_agent.schemas.query import ErrorResponse, QueryRequest, QueryResponse
from business_agent.services.pipeline_service import QueryPipeline

router = APIRouter()


@router.post(
    "/query",
    response_model=QueryResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def query_endpoint(
    req: QueryRequest,
    pipeline: QueryPipeline = Depends(get_pipeline),
) -> QueryResponse:
    """
    자연어 질문을 받아 SQL / 설명 / 결과 rows / 요약 / 시각화 타입을 반환한다.
    실패는 main.py 의 예외 핸들러가 {"error": ...} 로 변환한다.
    """
    return await pipeline.run(req.query)
