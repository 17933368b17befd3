import time
import logging
from typing import List, Dict, Any

from sqlalchemy import inspect

from database import engine
from models.common_models import QueryResponse
from services.query_cache import get_cached, store_cached

logger = logging.getLogger(__name__)


def execute_sql(sql: str) -> List[Dict[str, Any]]:
    """
    Run a statement as-is and return its rows as dicts.
    exec_driver_sql keeps ':' inside the statement from being read as bind params.
    """
    with engine.begin() as conn:
        result = conn.exec_driver_sql(sql)
        if not result.returns_rows:
            return []
        rows = []
        for row in result:
            rows.append({
                col: value.decode("utf-8", errors="replace") if isinstance(value, bytes) else value
                for col, value in row._mapping.items()
            })
        return rows


def format_runtime(seconds: float) -> str:
    if seconds >= 1:
        return f"{seconds:.3f}s"
    if seconds >= 0.001:
        return f"{seconds * 1000:.3f}ms"
    return f"{seconds * 1_000_000:.3f}µs"


def run_query(session_id: str, sql: str) -> QueryResponse:
    cached = get_cached("query", session_id, sql)
    if cached is not None:
        logger.info("Cache hit for session %s", session_id)
        return cached.model_copy(update={"cached": True})

    start = time.perf_counter()
    rows = execute_sql(sql)
    runtime = format_runtime(time.perf_counter() - start)

    response = QueryResponse(
        data=rows,
        runtime=runtime,
        query=sql,
        row_count=len(rows),
        session_id=session_id,
        cached=False,
    )
    store_cached("query", session_id, sql, response)
    return response


def get_table_schema(session_id: str, table_name: str) -> str:
    cached = get_cached("schema", session_id, table_name)
    if cached is not None:
        return cached

    inspector = inspect(engine)
    if not inspector.has_table(table_name):
        return "No table found. Please upload a CSV file first."

    lines = [f"Table: {table_name}", "Columns:"]
    for col in inspector.get_columns(table_name):
        lines.append(f"  - {col['name']} ({col['type']})")
    schema = "\n".join(lines) + "\n"

    store_cached("schema", session_id, table_name, schema)
    return schema
