import time

from fastapi import APIRouter, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from models.common_models import QueryRequest, NaturalRequest, QueryResponse, NaturalResponse, SchemaResponse
from services import nl_service
from services.query_cache import get_cached, store_cached
from services.query_service import execute_sql, format_runtime, get_table_schema, run_query
from services.session_service import get_session

router = APIRouter(prefix="/api", tags=["query"])


def _db_error(e: SQLAlchemyError) -> str:
    return str(getattr(e, "orig", None) or e)


def _require_session(session_id: str):
    session = get_session(session_id)
    if not session:
        raise HTTPException(status_code=400, detail="Invalid session: session not found")
    return session


@router.post("/query", response_model=QueryResponse)
def query(req: QueryRequest):
    session = _require_session(req.session_id)
    try:
        return run_query(session.session_id, req.sql)
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=f"Failed to execute query: {_db_error(e)}")


@router.post("/natural", response_model=NaturalResponse)
def natural(req: NaturalRequest):
    session = _require_session(req.session_id)

    if not nl_service.is_configured():
        raise HTTPException(status_code=503, detail="AI service not configured")

    cached = get_cached("natural", session.session_id, req.query)
    if cached is not None:
        return cached.model_copy(update={"cached": True})

    schema = get_table_schema(session.session_id, session.table_name)

    try:
        generated_sql = nl_service.generate_sql(req.query, schema)
    except nl_service.TranslationError as e:
        raise HTTPException(status_code=500, detail=f"Failed to generate SQL: {e}")

    start = time.perf_counter()
    try:
        rows = execute_sql(generated_sql)
    except SQLAlchemyError as e:
        raise HTTPException(
            status_code=500,
            detail={
                "error": f"Failed to execute generated SQL: {_db_error(e)}",
                "generated_sql": generated_sql,
            },
        )
    runtime = format_runtime(time.perf_counter() - start)

    response = NaturalResponse(
        natural_query=req.query,
        generated_sql=generated_sql,
        explanation=nl_service.explain(req.query),
        runtime=runtime,
        data=rows,
        row_count=len(rows),
        session_id=session.session_id,
        cached=False,
    )
    store_cached("natural", session.session_id, req.query, response)
    return response


@router.get("/schema/{session_id}", response_model=SchemaResponse, response_model_by_alias=True)
def schema(session_id: str):
    session = _require_session(session_id)
    try:
        table_schema = get_table_schema(session.session_id, session.table_name)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to get table schema")
    return SchemaResponse(table_schema=table_schema, session_id=session.session_id)
