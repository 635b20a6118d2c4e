# business_agent/core/config.py

from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "Business Query Agent"
    API_V1_STR: str = "/api/v1"
    VERSION: str = "1.0.0"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
    ]

    # ========= LLM (OpenAI 호환 chat/completions) =========
    OPENAI_API_KEY: str
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"

    # 1) 자연어 → SQL
    OPENAI_SQL_MODEL: str = "gpt-4.1-mini"

    # 2) SQL 결과 → 요약
    OPENAI_SUMMARY_MODEL: str = "gpt-4.1-mini"

    LLM_TIMEOUT_SECONDS: float = 60.0
    LLM_TEMPERATURE: Optional[float] = None

    # ========= DB 설정 =========
    SQLALCHEMY_DATABASE_URI: str

    # None 이면 dialect 기본 스키마 (PostgreSQL: public)
    DB_SCHEMA: Optional[str] = None
    SQL_TIMEOUT_SECONDS: float = 30.0

    # True 면 SELECT / WITH 단일 문장만 실행
    SQL_READ_ONLY: bool = False

    # None 이면 전체 fetch
    MAX_RESULT_ROWS: Optional[int] = None

    # ========= 운영 =========
    SCHEMA_WARMUP: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_LLM: bool = False

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
