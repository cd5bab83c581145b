# nl2sql_api/validate.py
import re

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from .errors import SQLValidationError

BANNED_KEYWORDS = (
    "insert", "update", "delete", "alter", "drop", "truncate",
    "create", "grant", "revoke", "comment", "copy", "call",
)
BANNED_RE = re.compile(r"\b(" + "|".join(BANNED_KEYWORDS) + r")\b")
COMMENT_MARKERS = ("--", "/*")
BLOCKED_FUNCTIONS = ("load_file", "sleep", "benchmark")
BLOCKED_FUNCTION_RE = re.compile(r"\b(" + "|".join(BLOCKED_FUNCTIONS) + r")\s*\(")

# Statement nodes that write data or change the schema. Names differ
# between sqlglot releases (e.g. AlterTable -> Alter), so only the ones
# present in the installed version are used.
_WRITE_NODE_NAMES = (
    "Insert", "Update", "Delete", "Merge", "Create", "Drop",
    "Alter", "AlterTable", "TruncateTable", "Command", "Into",
)
WRITE_NODES = tuple(getattr(exp, n) for n in _WRITE_NODE_NAMES if hasattr(exp, n))
READ_ROOTS = (exp.Select, exp.Union, exp.Intersect, exp.Except)


class MissingSQLError(SQLValidationError):
    def __init__(self):
        super().__init__("SQL missing.")


class NotASelectError(SQLValidationError):
    def __init__(self, found: str | None = None):
        msg = "Only SELECT queries are allowed."
        if found:
            msg += f" Found forbidden operation: {found}."
        super().__init__(msg)


class MultipleStatementsError(SQLValidationError):
    def __init__(self):
        super().__init__("Multiple statements are not allowed.")


class ForbiddenOperationError(SQLValidationError):
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Query contains a forbidden operation: {operation}.")


class CommentsNotAllowedError(SQLValidationError):
    def __init__(self):
        super().__init__("Comments are not allowed in generated SQL.")


class UnparseableSQLError(SQLValidationError):
    def __init__(self, detail: str):
        super().__init__(f"Generated SQL could not be parsed: {detail}")


def _first_word(lowered: str) -> str:
    m = re.match(r"[a-z_]+", lowered)
    return m.group(0) if m else ""


def _check_text(trimmed: str) -> None:
    lowered = trimmed.lower()

    if not lowered.startswith("select"):
        word = _first_word(lowered)
        raise NotASelectError(word if word in BANNED_KEYWORDS else None)

    if len([s for s in trimmed.split(";") if s.strip()]) > 1:
        raise MultipleStatementsError()

    banned = BANNED_RE.search(lowered)
    if banned:
        raise ForbiddenOperationError(banned.group(1))

    if any(marker in lowered for marker in COMMENT_MARKERS):
        raise CommentsNotAllowedError()

    blocked = BLOCKED_FUNCTION_RE.search(lowered)
    if blocked:
        raise ForbiddenOperationError(blocked.group(1))


def _check_tree(sql: str, dialect: str) -> None:
    """
    Tokenize and parse the statement: no comment tokens (MySQL '#' included),
    exactly one statement, a SELECT or set-operation root, and no write or
    DDL node anywhere in the tree (SELECT ... INTO counts as a write).
    """
    try:
        tokens = sqlglot.tokenize(sql, read=dialect)
    except SqlglotError as e:
        raise UnparseableSQLError(str(e)) from e
    if any(t.comments for t in tokens):
        raise CommentsNotAllowedError()

    try:
        statements = [s for s in sqlglot.parse(sql, read=dialect) if s is not None]
    except SqlglotError as e:
        raise UnparseableSQLError(str(e)) from e
    if not statements:
        raise MissingSQLError()
    if len(statements) > 1:
        raise MultipleStatementsError()

    tree = statements[0]
    if not isinstance(tree, READ_ROOTS):
        raise NotASelectError()

    node = next(tree.find_all(*WRITE_NODES), None)
    if node is not None:
        raise ForbiddenOperationError(node.key)


def sanitize_sql(raw, dialect: str = "mysql") -> str:
    """
    Validate LLM-produced SQL and return the statement that may be executed.

    Accepts only a single, comment-free, read-only SELECT (or set operation
    of SELECTs). Raises a SQLValidationError subclass describing the first
    violated rule. A single trailing semicolon is stripped.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise MissingSQLError()

    trimmed = raw.strip()
    _check_text(trimmed)

    sql = trimmed[:-1] if trimmed.endswith(";") else trimmed
    _check_tree(sql, dialect)
    return sql
