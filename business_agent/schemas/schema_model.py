# business_agent/schemas/schema_model.py

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    declared_type: str
    nullable: bool
    is_primary_key: bool = False


@dataclass(frozen=True)
class ForeignKeyRef:
    column_name: str
    referenced_table: str
    referenced_column: str


@dataclass(frozen=True)
class TableInfo:
    columns: Tuple[ColumnInfo, ...]
    sample_rows: Tuple[Dict[str, Any], ...] = ()
    relationships: Tuple[ForeignKeyRef, ...] = ()

    @property
    def primary_keys(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.columns if c.is_primary_key)


# 테이블명 → TableInfo. 한 번 만들어지면 수정하지 않고 통째로 교체한다.
SchemaModel = Dict[str, TableInfo]


@dataclass(frozen=True)
class GenerationResult:
    raw_text: str
    sql: Optional[str] = None
    explanation: Optional[str] = None
    visualization_hint: Optional[str] = None


def schema_to_dict(schema: SchemaModel) -> Dict[str, Any]:
    """
    /schema 엔드포인트 응답용 JSON-friendly dict.
    """
    return {
        name: {
            "columns": [asdict(c) for c in info.columns],
            "sample_rows": list(info.sample_rows),
            "relationships": [asdict(r) for r in info.relationships],
        }
        for name, info in schema.items()
    }
