# nl2sql_api/client.py
import time
from dataclasses import dataclass
from typing import Any, Optional

import requests


@dataclass
class ApiResult:
    ok: bool
    data: dict[str, Any]
    error: Optional[str]
    elapsed_ms: int


def _error_text(r: requests.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.text
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return r.text


def _call(method: str, url: str, timeout: float, **kwargs) -> ApiResult:
    t0 = time.perf_counter()
    try:
        r = requests.request(method, url, timeout=timeout, **kwargs)
    except requests.exceptions.RequestException as e:
        elapsed_ms = int((time.perf_counter() - t0) * 1000)
        return ApiResult(False, {}, str(e), elapsed_ms)

    elapsed_ms = int((time.perf_counter() - t0) * 1000)
    if r.status_code == 200:
        return ApiResult(True, r.json(), None, elapsed_ms)
    return ApiResult(False, {}, _error_text(r), elapsed_ms)


def ask(api_url: str, question: str, timeout: float = 60) -> ApiResult:
    """POST the question to /api/query."""
    url = api_url.rstrip("/") + "/api/query"
    return _call("POST", url, timeout, json={"question": question.strip()})


def fetch_schema(api_url: str, timeout: float = 30) -> ApiResult:
    url = api_url.rstrip("/") + "/api/schema"
    return _call("GET", url, timeout)
