from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from business_agent.core.config import get_settings


def build_engine(database_uri: str) -> Engine:
    return create_engine(
        database_uri,
        pool_pre_ping=True,
        echo=False,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


_engine = None
_session_factory = None


def get_engine() -> Engine:
    # 엔진(커넥션 풀)은 첫 사용 시점에 한 번만 만든다
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings().SQLALCHEMY_DATABASE_URI)
    return _engine


def get_session_factory() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = build_session_factory(get_engine())
    return _session_factory
