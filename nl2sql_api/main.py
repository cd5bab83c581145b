# nl2sql_api/main.py
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .config import configure_logging, settings
from .db import Database
from .errors import ConfigError, PipelineError, SchemaLoadError
from .nl2sql import ModelClient
from .pipeline import QueryExecutor, answer_question, load_schema_text
from .schema import SchemaCache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings.require()
    db = Database(settings.database_url, settings.db_ssl_mode, settings.db_pool_size)
    app.state.executor = db
    app.state.schema_cache = SchemaCache(db.load_schema, ttl_seconds=settings.schema_cache_seconds)
    app.state.model = ModelClient(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        base_url=settings.openai_base_url,
        timeout=settings.model_timeout,
    )
    logger.info(f"Using model {settings.openai_model}")
    yield


app = FastAPI(title="NL2SQL API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)


class QueryIn(BaseModel):
    # validated by hand so a missing or non-string question gets a 400
    question: Any = None


class QueryOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sql: str
    notes: str
    rows: list[dict[str, Any]]
    row_count: int = Field(alias="rowCount")


def get_schema_cache(request: Request) -> SchemaCache:
    return request.app.state.schema_cache


def get_model_client(request: Request) -> ModelClient:
    return request.app.state.model


def get_executor(request: Request) -> QueryExecutor:
    return request.app.state.executor


def error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/api/schema")
async def schema(schema_cache: SchemaCache = Depends(get_schema_cache)):
    try:
        schema_text = await load_schema_text(schema_cache)
    except SchemaLoadError:
        logger.exception("Failed to load schema")
        return error(500, "Failed to load schema")
    return {"schema": schema_text}


@app.post("/api/query", response_model=QueryOut)
async def query(
    q: Optional[QueryIn] = None,
    schema_cache: SchemaCache = Depends(get_schema_cache),
    model: ModelClient = Depends(get_model_client),
    executor: QueryExecutor = Depends(get_executor),
):
    question = q.question if q is not None else None
    if not isinstance(question, str) or not question.strip():
        return error(400, "Question is required")

    try:
        return await answer_question(question.strip(), schema_cache, model, executor)
    except PipelineError as e:
        return error(400, str(e))


def run() -> None:
    """Console entry point: refuse to start without the required settings."""
    configure_logging(settings.log_level)
    try:
        settings.require()
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
