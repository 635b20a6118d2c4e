# business_agent/services/summary_service.py

import json
import logging
from typing import Any, Dict, List, Optional

from business_agent.core.errors import GenerationError
from business_agent.core.llm_client import LLMClient

logger = logging.getLogger(__name__)

# 모델 컨텍스트 예산 때문에 결과 텍스트 길이를 제한한다
MAX_RESULTS_CHARS = 10_000
TRUNCATED_ROW_COUNT = 20
TRUNCATION_MARKER = " ... (truncated)"

SUMMARY_SYSTEM_PROMPT = """
You are an AI data analyst who explains query results clearly to business users.

Your task:
1. Interpret the SQL query results
2. Write a clear, plain-language summary of the findings
3. Highlight the key insights that answer the user's question
4. Explain any patterns or trends in the data
5. Keep the explanation concise and business-focused

Rules:
- Use plain language a business user would understand
- Relate the results back to the original question
- Call out 3-5 concrete insights from the data
- Give context when discussing metrics
- Avoid technical jargon unless necessary
- Interpret the numbers instead of just repeating them
- Point out limitations or caveats of the analysis
- Be honest about what the data does and does not show
""".strip()


def serialize_results(rows: List[Dict[str, Any]]) -> str:
    """
    결과를 JSON 텍스트로 직렬화. 10,000자를 넘으면 앞 20행만 + 잘림 표시.
    20행으로도 한도를 넘는 (컬럼이 매우 넓은) 경우에는 글자 수로 자른다.
    """
    text = json.dumps(rows, default=str, ensure_ascii=False)
    if len(text) <= MAX_RESULTS_CHARS:
        return text
    head = json.dumps(rows[:TRUNCATED_ROW_COUNT], default=str, ensure_ascii=False)
    if len(head) > MAX_RESULTS_CHARS or len(head) >= len(text):
        head = head[:MAX_RESULTS_CHARS]
    return head + TRUNCATION_MARKER


def build_summary_prompt(
    question: str,
    sql: str,
    results: List[Dict[str, Any]],
    explanation: Optional[str] = None,
    visualization_hint: Optional[str] = None,
) -> str:
    return "\n\n".join(
        [
            SUMMARY_SYSTEM_PROMPT,
            f'Original question: "{question}"',
            f"SQL query used:\n```sql\n{sql}\n```",
            f"Query explanation: {explanation or 'Not provided'}",
            f"Suggested visualization: {visualization_hint or 'Not provided'}",
            f"Query results ({len(results)} rows):\n{serialize_results(results)}",
            "Please provide a clear, natural language summary of what these results mean in business terms.",
        ]
    )


class ResultNarrator:
    def __init__(self, llm: LLMClient, model: Optional[str] = None):
        self.llm = llm
        self.model = model

    async def summarize(
        self,
        question: str,
        sql: str,
        results: List[Dict[str, Any]],
        explanation: Optional[str] = None,
        visualization_hint: Optional[str] = None,
    ) -> str:
        """
        질문 + SQL + (잘린) 결과로 두 번째 프롬프트를 보내고 원문 텍스트를 그대로 반환한다.
        마크다운 강조 제거 같은 후처리는 프론트 몫.
        """
        prompt = build_summary_prompt(question, sql, results, explanation, visualization_hint)
        text = await self.llm.complete(prompt, model=self.model)
        if not text or not text.strip():
            raise GenerationError("Model returned an empty summary")
        return text
