from unittest.mock import MagicMock

import pytest

from business_agent.core.errors import GenerationError, InvalidInputError
from business_agent.services.schema_service import SchemaCache
from business_agent.services.translation_service import SQLTranslator, parse_generation

from tests.conftest import TOP_PRODUCTS_REPLY, TOP_PRODUCTS_SQL, FakeLLM


def test_parse_full_reply():
    result = parse_generation(TOP_PRODUCTS_REPLY)

    assert result.sql == TOP_PRODUCTS_SQL
    assert result.explanation == "Sums the line totals per product and keeps the five highest."
    assert result.visualization_hint == "bar chart"
    assert result.raw_text == TOP_PRODUCTS_REPLY


def test_missing_visualization_keeps_sql():
    reply = "```sql\nSELECT COUNT(*) FROM orders\n```\n\nExplanation:\nCounts all orders."
    result = parse_generation(reply)

    assert result.sql == "SELECT COUNT(*) FROM orders"
    assert result.explanation == "Counts all orders."
    assert result.visualization_hint is None


def test_missing_sql_block_yields_none():
    reply = "I cannot answer that.\n\nExplanation:\nThe schema has no such data."
    result = parse_generation(reply)

    assert result.sql is None
    assert result.explanation == "The schema has no such data."


def test_only_sql_block():
    result = parse_generation("```SQL\nSELECT 1\n```")

    assert result.sql == "SELECT 1"
    assert result.explanation is None
    assert result.visualization_hint is None


def test_first_sql_block_wins():
    reply = "```sql\nSELECT 1\n```\nor maybe\n```sql\nSELECT 2\n```"
    assert parse_generation(reply).sql == "SELECT 1"


def test_emphasised_markers_are_tolerated():
    reply = (
        "```sql\nSELECT ch, SUM(a) FROM orders GROUP BY ch\n```\n\n"
        "**Explanation:** Totals order amount per channel.\n\n"
        "**Visualization:** pie chart"
    )
    result = parse_generation(reply)

    assert result.explanation == "Totals order amount per channel."
    assert result.visualization_hint == "pie chart"


def test_sections_out_of_order():
    reply = (
        "Visualization:\nline chart\n\n"
        "Explanation:\nMonthly order totals.\n\n"
        "```sql\nSELECT odate, a FROM orders\n```"
    )
    result = parse_generation(reply)

    assert result.sql == "SELECT odate, a FROM orders"
    assert result.explanation == "Monthly order totals."
    assert result.visualization_hint == "line chart"


def test_markers_inside_sql_comments_are_ignored():
    reply = (
        "```sql\n-- Explanation: join products\n-- visualization: none\nSELECT 1\n```\n\n"
        "Explanation:\nReal explanation.\n\n"
        "Visualization:\ntable"
    )
    result = parse_generation(reply)

    assert result.sql == "-- Explanation: join products\n-- visualization: none\nSELECT 1"
    assert result.explanation == "Real explanation."
    assert result.visualization_hint == "table"


def test_marker_words_mid_sentence_do_not_split_sections():
    reply = (
        "```sql\nSELECT ch, SUM(a) FROM orders GROUP BY ch\n```\n\n"
        "Explanation:\nTotals per channel, good for visualization: compare shares.\n\n"
        "Visualization:\npie chart"
    )
    result = parse_generation(reply)

    assert result.explanation == "Totals per channel, good for visualization: compare shares."
    assert result.visualization_hint == "pie chart"


async def test_translate_uses_cached_schema(introspector):
    spy = MagicMock(wraps=introspector)
    llm = FakeLLM([TOP_PRODUCTS_REPLY, TOP_PRODUCTS_REPLY])
    translator = SQLTranslator(SchemaCache(spy), llm, model="sql-model")

    first = await translator.translate("What are the top 5 products by revenue?")
    await translator.translate("And the top 5 again?")

    assert first.sql == TOP_PRODUCTS_SQL
    assert spy.introspect.call_count == 1
    assert llm.models == ["sql-model", "sql-model"]
    assert "Table: order_details" in llm.prompts[0]
    assert '"What are the top 5 products by revenue?"' in llm.prompts[0]


async def test_translate_returns_none_sql_without_raising(schema):
    llm = FakeLLM(["Sorry, I am not sure."])
    translator = SQLTranslator(MagicMock(), llm)

    result = await translator.translate("Who is the best customer?", schema=schema)

    assert result.sql is None
    assert result.raw_text == "Sorry, I am not sure."


async def test_model_failure_propagates(schema):
    llm = FakeLLM([GenerationError("Model call failed with HTTP 429: quota")])
    translator = SQLTranslator(MagicMock(), llm)

    with pytest.raises(GenerationError, match="429"):
        await translator.translate("Revenue by month?", schema=schema)


async def test_empty_question_skips_model_and_catalog():
    llm = FakeLLM([TOP_PRODUCTS_REPLY])
    cache = MagicMock()
    translator = SQLTranslator(cache, llm)

    with pytest.raises(InvalidInputError):
        await translator.translate("  ")
    assert llm.calls == 0
    assert cache.get.call_count == 0
