# business_agent/core/logging_config.py

import json
import logging
from datetime import datetime, timezone
from typing import Any

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# LLM 이벤트 로그는 본문이 길어서 잘라서 남긴다
MAX_EVENT_FIELD_CHARS = 4000

llm_logger = logging.getLogger("business_agent.llm")


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    business_agent 루트 로거에 stream handler 를 한 번만 붙인다.
    """
    logger = logging.getLogger("business_agent")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger


def log_llm_event(enabled: bool, kind: str, **fields: Any) -> None:
    if not enabled:
        return
    evt = {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "kind": kind,
    }
    for key, value in fields.items():
        if isinstance(value, str) and len(value) > MAX_EVENT_FIELD_CHARS:
            value = value[:MAX_EVENT_FIELD_CHARS] + "..."
        evt[key] = value
    llm_logger.info(json.dumps(evt, default=str, ensure_ascii=False))
