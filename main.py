import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException

from config import configure_logging
from routers import session_router, upload_router, query_router

# Import DB init function
from database import Base, engine
from models.session_db_model import SessionDB  # registers the sessions table

logger = logging.getLogger(__name__)


def create_db():
    Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="AskQL Backend",
    description="Reference backend: CSV upload into per-session tables, SQL and natural-language queries.",
    version="0.1.0",
)

# Run create_db() once when app starts
@app.on_event("startup")
def on_startup():
    configure_logging()
    logger.info("Initializing database...")
    create_db()
    logger.info("Database initialized.")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Errors go out as {"error": ...}
@app.exception_handler(HTTPException)
async def http_error(request: Request, exc: HTTPException):
    body = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body)

@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid JSON"})

app.include_router(session_router.router)
app.include_router(upload_router.router)
app.include_router(query_router.router)

@app.get("/health")
def health():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        database = "connected"
    except Exception:
        database = "disconnected"
    return {"status": "OK", "database": database}
