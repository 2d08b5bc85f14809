"""
导出流程中的异常定义。
所有异常都继承 ExportError，由 main.py 统一捕获并以非零状态退出。
"""


class ExportError(Exception):
    """Base class for every failure that aborts an export run."""


class ConfigError(ExportError):
    """Workspace host or token could not be resolved."""


class FetchError(ExportError):
    """Transport failure while talking to the SQL API."""

    def __init__(self, kind: str, remote_id: str, message: str):
        self.kind = kind
        self.remote_id = remote_id
        super().__init__(f"Failed to fetch {kind} {remote_id!r}: {message}")


class NotFoundError(FetchError):
    """The requested object does not exist (HTTP 404)."""


class DecodeError(ExportError):
    """A payload did not match the object model."""


class UnsupportedVariantError(ExportError):
    """A discriminant or value type the object model does not know about."""


class InconsistentInventoryError(ExportError):
    """A cross reference points at an object that was never loaded."""
