# nl2sql_api/nl2sql.py
import json
import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ValidationError, field_validator

from .errors import ModelError

logger = logging.getLogger(__name__)


class GeneratedQuery(BaseModel):
    sql: str
    notes: str = ""

    @field_validator("notes", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return "" if v is None else v


class ModelClient:
    """
    Minimal client for an OpenAI-compatible chat completions endpoint,
    asking for a JSON object response.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def complete(self, messages: list[dict[str, str]]) -> str:
        url = f"{self.base_url}/chat/completions"
        payload = {
            "model": self.model,
            "messages": messages,
            "response_format": {"type": "json_object"},
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                resp = await client.post(url, json=payload, headers=headers)
                resp.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error(f"Model API returned {e.response.status_code}: {e.response.text}")
                raise ModelError(f"Model request failed (HTTP {e.response.status_code}).") from e
            except httpx.HTTPError as e:
                logger.error(f"Model API request failed: {e!r}")
                raise ModelError("Model request failed.") from e

        try:
            choices = resp.json().get("choices") or []
            return (choices[0].get("message") or {}).get("content") or ""
        except (ValueError, AttributeError, IndexError):
            return ""


def parse_completion(content: Optional[str]) -> GeneratedQuery:
    """
    Decode the model's JSON answer into a GeneratedQuery.
    Raises ModelError with a caller-facing message on any contract violation.
    """
    if not isinstance(content, str) or not content.strip():
        raise ModelError("No response from model.")

    try:
        parsed = json.loads(content)
    except ValueError as e:
        raise ModelError("Model returned invalid JSON.") from e

    if not isinstance(parsed, dict) or not parsed.get("sql"):
        raise ModelError("Model did not return SQL.")

    try:
        return GeneratedQuery.model_validate(parsed)
    except ValidationError as e:
        raise ModelError("Model returned malformed output.") from e


async def generate_sql(client: ModelClient, messages: list[dict[str, str]]) -> GeneratedQuery:
    """
    Sends the schema-aware prompt to the model and extracts the SQL.
    """
    content = await client.complete(messages)
    return parse_completion(content)
