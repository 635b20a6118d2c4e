# business_agent/services/prompt_service.py

import json
from typing import Dict

from business_agent.core.errors import InvalidInputError
from business_agent.schemas.schema_model import SchemaModel, TableInfo

# 🔥 약어/애매한 컬럼명 → 사람이 읽을 수 있는 라벨
# 테이블 구분 없는 평면 매핑 (테이블 간 같은 약어 충돌은 감수).
# 생성 프롬프트에만 쓰고, 실제 SQL 식별자를 바꾸는 데는 쓰지 않는다.
COLUMN_ALIASES: Dict[str, str] = {
    # orders
    "oid": "Order ID",
    "cid": "Customer ID",
    "odate": "Order Date",
    "s": "Status",
    "a": "Amount",
    "tx": "Tax",
    "sh": "Shipping Cost",
    "ch": "Channel",
    "pm": "Payment Method",
    "dm": "Delivery Method",
    # order_details
    "o_id": "Order ID",
    "p_id": "Product ID",
    "q": "Quantity",
    "up": "Unit Price",
    "d": "Discount",
    "t": "Total",
    # campaign_performance
    "c_id": "Campaign ID",
    "dt": "Date",
    "imp": "Impressions",
    "clk": "Clicks",
    "cnv": "Conversions",
    "rev": "Revenue",
    "cst": "Cost",
    # sup (suppliers)
    "s_id": "Supplier ID",
    "s_name": "Supplier Name",
    "s_contact": "Supplier Contact",
    "s_email": "Supplier Email",
    "s_addr": "Supplier Address",
    "s_country": "Supplier Country",
}

NO_SAMPLE_DATA = "- No sample data available"

SQL_SYSTEM_PROMPT = """
You are an AI data analyst who converts business questions into SQL.

The database is an e-commerce analytics database (products, orders, customers,
marketing campaigns and more). Some table and column names are intentionally
abbreviated or unclear, for example 'a' means Amount in the orders table, and
some data is dirty. Use the schema, the sample rows and the column name
mappings below to work out what each column means.

Your task:
1. Understand the user's business question
2. Analyze the database schema provided
3. Write one valid SQL query that answers the question
4. Briefly explain what the query does
5. Suggest a visualization type (bar chart, line chart, pie chart, table, ...)

Rules:
- Use PostgreSQL syntax (not MySQL)
- Wrap table and column names in double quotes when needed
- List the columns you need explicitly instead of using '*'
- Join tables only through the relationships shown in the schema and include every join the answer needs
- Use table aliases for readability
- Use PostgreSQL date functions for time-based questions
- Handle NULL values explicitly (COALESCE, IS NULL filters) where they would distort results
- Use aggregations that fit the business metric being asked about
- Add ORDER BY when ranking or ordering matters
- When the result is meant for a chart, limit it to a readable size (e.g. top 10)
- Double-check that every table and column you reference exists in the schema
""".strip()

OUTPUT_FORMAT_INSTRUCTIONS = """
Format your response exactly as follows:
```sql
YOUR SQL QUERY HERE
```

Explanation:
Brief explanation of what the query does

Visualization:
Suggested visualization type (bar chart, line chart, pie chart, etc.)
""".strip()


def _describe_table(name: str, info: TableInfo) -> str:
    lines = [f"Table: {name}", "Columns:"]
    for col in info.columns:
        pk = " PRIMARY KEY" if col.is_primary_key else ""
        null = "" if col.nullable else " NOT NULL"
        lines.append(f"- {col.name} ({col.declared_type}){pk}{null}")

    if info.relationships:
        lines.append("Relationships:")
        for rel in info.relationships:
            lines.append(
                f"- {rel.column_name} references {rel.referenced_table}({rel.referenced_column})"
            )

    lines.append("Sample Data:")
    if info.sample_rows:
        example = json.dumps(info.sample_rows[0], default=str, ensure_ascii=False)
        lines.append(f"- Example: {example}")
    else:
        lines.append(NO_SAMPLE_DATA)
    return "\n".join(lines)


def describe_schema(schema: SchemaModel) -> str:
    blocks = [_describe_table(name, info) for name, info in schema.items()]
    return "Database Schema:\n\n" + "\n\n".join(blocks)


def describe_aliases(aliases: Dict[str, str] = COLUMN_ALIASES) -> str:
    lines = ["Column Name Mappings (for poorly named columns):"]
    lines.extend(f"- {short}: {label}" for short, label in aliases.items())
    return "\n".join(lines)


def compose_prompt(question: str, schema: SchemaModel) -> str:
    """
    스키마 + 별칭 사전 + 고정 지시문으로 SQL 생성 프롬프트를 만든다.
    I/O 없음. 빈 질문만 InvalidInputError.

    출력 형식(```sql / Explanation: / Visualization:)은
    translation_service 의 마커 파싱이 그대로 의존하므로 바꾸면 안 된다.
    """
    if question is None or not question.strip():
        raise InvalidInputError("Query is required")

    return "\n\n".join(
        [
            SQL_SYSTEM_PROMPT,
            "Important: make sure the query will actually run on the schema provided.",
            "Here is the database schema:",
            describe_schema(schema),
            describe_aliases(),
            f'Please convert this question into SQL: "{question.strip()}"',
            OUTPUT_FORMAT_INSTRUCTIONS,
        ]
    )
