from typing import List, Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field

# Request / response bodies of the backend REST contract.

class QueryRequest(BaseModel):
    sql: str
    session_id: str

class NaturalRequest(BaseModel):
    query: str
    session_id: str

class QueryResponse(BaseModel):
    data: List[Dict[str, Any]] = []
    runtime: str
    query: str
    row_count: int
    session_id: str
    cached: bool = False

class NaturalResponse(BaseModel):
    natural_query: str
    generated_sql: str
    explanation: str
    runtime: str
    data: List[Dict[str, Any]] = []
    row_count: int
    session_id: str
    cached: bool = False

class UploadResponse(BaseModel):
    message: str
    filename: str
    rows: int
    columns: List[str]
    table: str
    session_id: str

class SessionResponse(BaseModel):
    session_id: str
    message: str

class SchemaResponse(BaseModel):
    # "schema" shadows a BaseModel attribute, so it lives behind an alias
    model_config = ConfigDict(populate_by_name=True)

    table_schema: str = Field(alias="schema")
    session_id: str

class ErrorResponse(BaseModel):
    error: str
    generated_sql: Optional[str] = None
