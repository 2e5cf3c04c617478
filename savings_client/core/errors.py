"""Error Hierarchy — typed, categorized exceptions for every client failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Remote failures are exactly one of NetworkError, ServerError, DecodeError
    - ValidationError is raised before any network call is made
    - user_message never leaks transport internals (exception reprs, stack traces)

Design Decisions:
    - Single hierarchy with SavingsClientError base: stores catch one type
    - ErrorContext as dataclass: rich observability without coupling to logging
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from savings_client.core.domain_types import EntityKind, Operation


class ErrorSeverity(str, Enum):
    """Error severity for observability and UI handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    NETWORK = "network"
    SERVER = "server"
    DECODE = "decode"


@dataclass
class ErrorContext:
    """Where the failure happened, filled in by the adapter or the store."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    entity_kind: EntityKind | None = None
    operation: Operation | None = None
    path: str | None = None
    debug_info: dict[str, Any] | None = None


class SavingsClientError(Exception):
    """Base exception for all client errors."""

    default_user_message = "Ocurrió un error desconocido"

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    @property
    def user_message(self) -> str:
        """Single human-readable line for the UI."""
        return self.default_user_message

    def to_dict(self) -> dict:
        """Convert to a structured error envelope (logs, UI state)."""
        return {
            "error": {
                "code": self.code,
                "message": self.user_message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "entity_kind": _enum_value(self.context.entity_kind),
                    "operation": _enum_value(self.context.operation),
                    "path": self.context.path,
                },
            }
        }


def _enum_value(value: Enum | None) -> str | None:
    return value.value if value is not None else None


# ─── Caller-side Errors ─────────────────────────────────────────

class ValidationError(SavingsClientError):
    """Request payload rejected before any network call."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context,
        )
        self.field = field

    @property
    def user_message(self) -> str:
        return self.message


# ─── Remote Boundary Errors ─────────────────────────────────────

class NetworkError(SavingsClientError):
    """No response received (connection refused, DNS, timeout)."""
    default_user_message = "No se pudo conectar con el servidor"

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "NETWORK_ERROR", ErrorCategory.NETWORK,
            ErrorSeverity.ERROR, context,
        )


class ServerError(SavingsClientError):
    """Response received with a failure status."""
    def __init__(
        self,
        status: int,
        server_message: str | None = None,
        context: ErrorContext | None = None,
    ):
        severity = ErrorSeverity.CRITICAL if status >= 500 else ErrorSeverity.ERROR
        super().__init__(
            f"Server responded {status}: {server_message or 'no message'}",
            "SERVER_ERROR", ErrorCategory.SERVER, severity, context,
        )
        self.status = status
        self.server_message = server_message

    @property
    def user_message(self) -> str:
        if self.server_message:
            return self.server_message
        return f"Código de error: {self.status}"


class DecodeError(SavingsClientError):
    """Response received but its shape was not what the operation expects."""
    default_user_message = "Respuesta inesperada del servidor"

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "DECODE_ERROR", ErrorCategory.DECODE,
            ErrorSeverity.ERROR, context,
        )
