"""
검증용 질문 목록을 /api/v1/query 에 순차 호출하고
결과/에러를 모두 CSV로 저장하는 스크립트.

실행:
python -m business_agent.eval_runner --input questions.csv --output result.csv
"""

import argparse
import csv
import time
from typing import Any, Dict, List, Optional

import requests

API_URL = "http://localhost:8000/api/v1/query"
MAX_FIELD_CHARS = 2000

FIELDNAMES = [
    "index",
    "question",
    "http_status",
    "sql",
    "row_count",
    "visualization_type",
    "summary",
    "error_type",
    "error_detail",
]


def load_questions_from_csv(path: str) -> List[str]:
    """
    questions.csv 에서 질문 목록을 읽어온다.
    - 헤더에 'question' 컬럼이 있다고 가정.
    """
    questions = []
    with open(path, "r", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        for row in reader:
            q = (row.get("question") or "").strip()
            if q:
                questions.append(q)
    return questions


def load_questions_inline() -> List[str]:
    return [
        "What are the top 5 products by revenue?",
        "How many orders were placed through each channel?",
        "Which marketing campaigns had the best conversion rate?",
        "What is the average order amount by payment method?",
        "Which suppliers have the highest rating?",
    ]


def run_question(idx: int, question: str, api_url: str = API_URL, timeout: float = 120) -> Dict[str, Any]:
    rec: Dict[str, Any] = {
        "index": idx,
        "question": question,
        "http_status": None,
        "sql": "",
        "row_count": "",
        "visualization_type": "",
        "summary": "",
        "error_type": "",
        "error_detail": "",
    }

    try:
        resp = requests.post(api_url, json={"query": question}, timeout=timeout)
    except requests.RequestException as e:
        # 네트워크 오류 / 타임아웃 등
        rec["error_type"] = type(e).__name__
        rec["error_detail"] = str(e)[:MAX_FIELD_CHARS]
        return rec

    rec["http_status"] = resp.status_code
    is_json = "application/json" in resp.headers.get("content-type", "").lower()
    try:
        data = resp.json() if is_json else None
    except ValueError as e:
        # content-type 은 JSON 인데 본문이 깨진 경우
        rec["error_type"] = type(e).__name__
        rec["error_detail"] = (resp.text or str(e))[:MAX_FIELD_CHARS]
        return rec

    if resp.ok and isinstance(data, dict):
        rec["sql"] = (data.get("sql") or "")[:MAX_FIELD_CHARS]
        rec["row_count"] = len(data.get("results") or [])
        rec["visualization_type"] = data.get("visualizationType") or ""
        rec["summary"] = (data.get("summary") or "")[:MAX_FIELD_CHARS]
        return rec

    # 4xx/5xx 는 {"error": ...} 형식
    rec["error_type"] = "HTTPError"
    if isinstance(data, dict) and data.get("error"):
        rec["error_detail"] = str(data["error"])[:MAX_FIELD_CHARS]
    else:
        rec["error_detail"] = resp.text[:MAX_FIELD_CHARS]
    return rec


def write_results(path: str, results: List[Dict[str, Any]]) -> None:
    with open(path, "w", newline="", encoding="utf-8-sig") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        writer.writerows(results)


def run_eval(
    questions: List[str],
    output_csv: str,
    api_url: str = API_URL,
    delay: float = 0.1,
) -> List[Dict[str, Any]]:
    results = []
    for idx, q in enumerate(questions, start=1):
        print(f"[{idx}/{len(questions)}] 질문: {q}")
        results.append(run_question(idx, q, api_url=api_url))
        # API 과부하 방지용
        if delay:
            time.sleep(delay)

    write_results(output_csv, results)
    print(f"[DONE] 결과 {len(results)}건을 {output_csv} 로 저장 완료")
    return results


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run a batch of questions against the query API.")
    parser.add_argument("--input", help="CSV file with a 'question' column")
    parser.add_argument("--output", default="eval_result.csv")
    parser.add_argument("--api-url", default=API_URL)
    parser.add_argument("--delay", type=float, default=0.1)
    args = parser.parse_args(argv)

    if args.input:
        questions = load_questions_from_csv(args.input)
        print(f"[INFO] CSV에서 질문 {len(questions)}건 로딩 완료 ({args.input})")
    else:
        questions = load_questions_inline()
        print(f"[INFO] 인라인 질문 {len(questions)}건 사용")

    run_eval(questions, args.output, api_url=args.api_url, delay=args.delay)


if __name__ == "__main__":
    main()
