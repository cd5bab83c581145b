# nl2sql_api/pipeline.py
import logging
from typing import Any, Protocol

from .db import QueryResult
from .errors import PipelineError, SchemaLoadError
from .nl2sql import ModelClient, generate_sql
from .prompt import build_prompt
from .schema import SchemaCache
from .validate import sanitize_sql

logger = logging.getLogger(__name__)


class QueryExecutor(Protocol):
    async def run(self, query: str) -> QueryResult: ...


async def load_schema_text(schema_cache: SchemaCache) -> str:
    try:
        snapshot = await schema_cache.get()
    except SchemaLoadError:
        raise
    except Exception as e:
        logger.exception("Schema snapshot failed")
        raise SchemaLoadError() from e
    return snapshot.render()


async def answer_question(
    question: str,
    schema_cache: SchemaCache,
    model: ModelClient,
    executor: QueryExecutor,
) -> dict[str, Any]:
    """
    question -> schema-aware prompt -> model -> sanitizer -> database.
    Any failure is raised as a PipelineError; nothing is retried.
    """
    try:
        # 1) schema-aware prompt
        schema_text = await load_schema_text(schema_cache)
        messages = build_prompt(question, schema_text)

        # 2) LLM -> SQL
        generated = await generate_sql(model, messages)

        # 3) validate
        sql = sanitize_sql(generated.sql)
        logger.info(f"Running generated SQL: {sql}")

        # 4) execute
        result = await executor.run(sql)
    except PipelineError as e:
        logger.warning(f"Question rejected ({type(e).__name__}): {e}")
        raise

    return {
        "sql": sql,
        "notes": generated.notes,
        "rows": result.rows,
        "rowCount": result.row_count,
    }
