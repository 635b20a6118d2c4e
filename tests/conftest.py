import os
from typing import List, Union
from unittest.mock import MagicMock

# Set environment BEFORE any app imports
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite://")
os.environ.setdefault("SCHEMA_WARMUP", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from business_agent.db.session import build_session_factory
from business_agent.services.execution_service import QueryExecutor
from business_agent.services.pipeline_service import QueryPipeline
from business_agent.services.schema_service import SchemaCache, SchemaIntrospector
from business_agent.services.summary_service import ResultNarrator
from business_agent.services.translation_service import SQLTranslator

# Poorly named e-commerce tables, same shape as the seeded analytics database
SEED_DDL = [
    """
    CREATE TABLE categories (
        cat_id INTEGER PRIMARY KEY,
        cat_name VARCHAR(50),
        dept VARCHAR(50)
    )
    """,
    """
    CREATE TABLE products (
        prod_id INTEGER PRIMARY KEY,
        name VARCHAR(100),
        base_price NUMERIC(10, 2),
        category_id INTEGER REFERENCES categories(cat_id)
    )
    """,
    """
    CREATE TABLE orders (
        oid INTEGER PRIMARY KEY,
        cid INTEGER,
        odate DATETIME,
        s VARCHAR(20),
        a NUMERIC(10, 2),
        ch VARCHAR(20)
    )
    """,
    """
    CREATE TABLE order_details (
        od_id INTEGER PRIMARY KEY,
        o_id INTEGER NOT NULL REFERENCES orders(oid),
        p_id INTEGER REFERENCES products(prod_id),
        q INTEGER,
        up NUMERIC(10, 2),
        t NUMERIC(10, 2)
    )
    """,
    """
    CREATE TABLE campaign_performance (
        c_id INTEGER,
        dt DATE,
        imp INTEGER,
        clk INTEGER,
        rev NUMERIC(10, 2)
    )
    """,
]

SEED_DATA = [
    "INSERT INTO categories VALUES (1, 'Electronics', 'Tech'), (2, 'Home', 'Living')",
    """
    INSERT INTO products VALUES
        (1, 'Laptop', 1200.00, 1),
        (2, 'Phone', 800.00, 1),
        (3, 'Headphones', 150.00, 1),
        (4, 'Lamp', 40.00, 2),
        (5, 'Chair', 90.00, 2),
        (6, 'Desk', 300.00, 2),
        (7, 'Monitor', 250.00, 1)
    """,
    """
    INSERT INTO orders VALUES
        (100, 1, '2024-01-05 10:00:00', 'completed', 2400.00, 'web'),
        (101, 2, '2024-01-06 11:30:00', 'completed', 1140.00, 'mobile'),
        (102, 3, '2024-02-01 09:15:00', 'pending', 640.00, 'web')
    """,
    """
    INSERT INTO order_details VALUES
        (1, 100, 1, 2, 1200.00, 2400.00),
        (2, 101, 2, 1, 800.00, 800.00),
        (3, 101, 3, 1, 150.00, 150.00),
        (4, 101, 4, 1, 40.00, 40.00),
        (5, 101, 5, 1, 90.00, 90.00),
        (6, 102, 6, 1, 300.00, 300.00),
        (7, 102, 7, 1, 250.00, 250.00),
        (8, 102, 4, 2, 40.00, 80.00),
        (9, 102, 3, 0, 150.00, 10.00)
    """,
]

TOP_PRODUCTS_SQL = """SELECT p."name" AS product_name, SUM(od."t") AS revenue
FROM order_details od
JOIN products p ON p.prod_id = od.p_id
GROUP BY p."name"
ORDER BY revenue DESC
LIMIT 5"""

TOP_PRODUCTS_REPLY = f"""```sql
{TOP_PRODUCTS_SQL}
```

Explanation:
Sums the line totals per product and keeps the five highest.

Visualization:
bar chart"""

SUMMARY_REPLY = "Laptop leads revenue by a wide margin, followed by Phone."


class FakeLLM:
    """Stands in for LLMClient: replays canned replies and records every prompt."""

    def __init__(self, replies: List[Union[str, Exception]] = None):
        self.replies = list(replies or [])
        self.prompts: List[str] = []
        self.models: List[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def complete(self, prompt: str, model: str = None) -> str:
        self.prompts.append(prompt)
        self.models.append(model)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.begin() as conn:
        for stmt in SEED_DDL + SEED_DATA:
            conn.exec_driver_sql(stmt)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def introspector(session_factory):
    return SchemaIntrospector(session_factory)


@pytest.fixture
def schema(introspector):
    return introspector.introspect()


@pytest.fixture
def make_pipeline(session_factory):
    """
    Builds a pipeline over the seeded database with spy-wrapped collaborators
    so tests can assert on call counts.
    """

    def _make(replies):
        llm = FakeLLM(replies)
        introspector = MagicMock(wraps=SchemaIntrospector(session_factory))
        executor = MagicMock(wraps=QueryExecutor(session_factory))
        cache = SchemaCache(introspector)
        pipeline = QueryPipeline(
            schema_cache=cache,
            translator=SQLTranslator(cache, llm),
            executor=executor,
            narrator=ResultNarrator(llm),
        )
        return pipeline, llm, introspector, executor

    return _make
