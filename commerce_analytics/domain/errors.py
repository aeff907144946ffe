from __future__ import annotations


class AnalyticsError(Exception):
    """Base class for errors raised by the analytics layer."""


class InvalidParameterError(AnalyticsError, ValueError):
    pass


class NotFoundError(AnalyticsError, LookupError):
    pass


class UnknownToolError(AnalyticsError, LookupError):
    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class GraphQueryError(AnalyticsError, RuntimeError):
    """The graph query client rejected or failed a fetch."""


class WritesDisabledError(AnalyticsError, PermissionError):
    def __init__(self) -> None:
        super().__init__("Writes are disabled. Set ALLOW_WRITES=1 to enable settings updates and demo seeding.")
