"""Errors raised while loading or running named SQL statements."""


class QueryError(Exception):
    """Base class for named statement failures."""


class QueryNotFoundError(QueryError, KeyError):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"No SQL statement named {self.name!r}"


class QueryDefinitionError(QueryError):
    """A statement file has a malformed header."""

    def __init__(self, source: str, line_no: int, message: str):
        super().__init__(f"{source}:{line_no}: {message}")
        self.source = source
        self.line_no = line_no


class MissingParameterError(QueryError):
    def __init__(self, name: str, missing):
        self.name = name
        self.missing = sorted(missing)
        super().__init__(f"Statement {name!r} is missing parameters: {', '.join(self.missing)}")
