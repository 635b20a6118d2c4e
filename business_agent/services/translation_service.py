# business_agent/services/translation_service.py

import logging
import re
from typing import Optional

from business_agent.core.errors import InvalidInputError
from business_agent.core.llm_client import LLMClient
from business_agent.schemas.schema_model import GenerationResult, SchemaModel
from business_agent.services.prompt_service import compose_prompt
from business_agent.services.schema_service import SchemaCache

logger = logging.getLogger(__name__)

# 첫 번째 ```sql 펜스 블록
_SQL_BLOCK_RE = re.compile(r"```sql[ \t]*\r?\n(.*?)```", re.DOTALL | re.IGNORECASE)

# 마커는 줄 맨 앞에서만 인식 ("**Explanation:**" 허용).
# 섹션은 다음 마커(다른 섹션 / 코드펜스) 또는 문서 끝에서 끝난다
_EXPLANATION_RE = re.compile(
    r"^[ \t]*\**[ \t]*Explanation[ \t]*:(.*?)(?=^[ \t]*\**[ \t]*Visualization[ \t]*:|```|\Z)",
    re.DOTALL | re.IGNORECASE | re.MULTILINE,
)
_VISUALIZATION_RE = re.compile(
    r"^[ \t]*\**[ \t]*Visualization[ \t]*:(.*?)(?=^[ \t]*\**[ \t]*Explanation[ \t]*:|```|\Z)",
    re.DOTALL | re.IGNORECASE | re.MULTILINE,
)


def _clean_section(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    # "**Explanation:**" 처럼 마커를 감싼 강조 기호 제거
    cleaned = text.strip().strip("*").strip()
    return cleaned or None


def _without_sql_blocks(text: str) -> str:
    # SQL 주석 안의 "Explanation:" 같은 문자열을 섹션으로 잡지 않도록
    return _SQL_BLOCK_RE.sub("\n", text or "")


def extract_sql(text: str) -> Optional[str]:
    match = _SQL_BLOCK_RE.search(text or "")
    if not match:
        return None
    return match.group(1).strip() or None


def extract_explanation(text: str) -> Optional[str]:
    match = _EXPLANATION_RE.search(_without_sql_blocks(text))
    return _clean_section(match.group(1)) if match else None


def extract_visualization(text: str) -> Optional[str]:
    match = _VISUALIZATION_RE.search(_without_sql_blocks(text))
    return _clean_section(match.group(1)) if match else None


def parse_generation(text: str) -> GenerationResult:
    """
    모델 응답(자연어 텍스트)에서 SQL / 설명 / 시각화 힌트를 각각 독립적으로 뽑는다.
    하나가 없어도 나머지는 그대로 반환한다. SQL 을 못 찾으면 sql=None (예외 아님).
    """
    return GenerationResult(
        raw_text=text or "",
        sql=extract_sql(text),
        explanation=extract_explanation(text),
        visualization_hint=extract_visualization(text),
    )


class SQLTranslator:
    def __init__(self, schema_cache: SchemaCache, llm: LLMClient, model: Optional[str] = None):
        self.schema_cache = schema_cache
        self.llm = llm
        self.model = model

    async def translate(self, question: str, schema: Optional[SchemaModel] = None) -> GenerationResult:
        """
        자연어 질문 → GenerationResult.
        모델 호출 실패는 GenerationError 로 그대로 올라간다.
        """
        if question is None or not question.strip():
            raise InvalidInputError("Query is required")
        if schema is None:
            schema = await self.schema_cache.get()

        prompt = compose_prompt(question, schema)
        raw = await self.llm.complete(prompt, model=self.model)

        result = parse_generation(raw)
        if result.sql is None:
            logger.warning("No SQL block found in model reply (%d chars)", len(result.raw_text))
        else:
            logger.info("Generated SQL: %s", result.sql)
        return result
