import os
import uuid
from datetime import datetime
from enum import Enum
from typing import List, Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class QueryMode(str, Enum):
    SQL = "sql"
    NATURAL = "natural"


class QueryResult(BaseModel):
    """
    Unified result of one dispatch, whichever endpoint produced it.
    generated_sql / explanation are only set for natural-language queries.
    """
    rows: List[Dict[str, Any]] = []
    row_count: int = 0
    runtime: str = ""
    cached: bool = False
    generated_sql: Optional[str] = None
    explanation: Optional[str] = None


class QueryHistoryItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    type: QueryMode
    query: str                           # text as the user typed it
    generated_sql: Optional[str] = None
    row_count: int
    runtime: str
    timestamp: datetime = Field(default_factory=datetime.now)


class ReplaySelection(BaseModel):
    query: str
    mode: QueryMode


class UploadCandidate(BaseModel):
    filename: str
    content: bytes
    mime_type: Optional[str] = None

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename)[1].lower()

    @property
    def size(self) -> int:
        return len(self.content)
