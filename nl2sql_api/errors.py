# nl2sql_api/errors.py


class ConfigError(RuntimeError):
    """Required configuration is missing; the server must not start."""


class PipelineError(Exception):
    """
    Base class for request-scoped failures of the question -> rows pipeline.
    The message is safe to show to the caller.
    """


class SchemaLoadError(PipelineError):
    def __init__(self, message: str = "Failed to load schema"):
        super().__init__(message)


class ModelError(PipelineError):
    pass


class SQLValidationError(PipelineError):
    pass


class QueryExecutionError(PipelineError):
    pass
