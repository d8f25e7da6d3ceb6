"""
Audit Logger

DESIGN DECISION: Every write, rejected write and external failure is
recorded as an AuditEvent. Events always reach the structured log; an audit
store is optional and its failures never fail a request.

Events emitted while serving one request share a correlation ID. The HTTP
layer binds it with structlog.contextvars; an event built without one picks
the bound ID up when it is logged.
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from finance_control.models.audit import AuditEvent, AuditEventBuilder, AuditEventType, AuditSeverity
from finance_control.services.storage.interface import AuditStorageInterface


# JSON lines through the stdlib logging tree
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

_LOG_METHOD = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
    AuditSeverity.CRITICAL: "critical",
}


class AuditLogger:
    """
    Writes audit events to the structured log and, when configured, to an
    audit store. A failing store is reported, never raised to the caller.
    """

    def __init__(self, storage: Optional[AuditStorageInterface] = None):
        self._storage = storage
        self._logger = structlog.get_logger("finance_control.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Record one event.

        Returns False only when the audit store rejected or failed the write.
        """
        if event.correlation_id is None:
            event = _with_bound_correlation(event)
        emit = getattr(self._logger, _LOG_METHOD[event.severity])
        emit("audit_event", **event.to_log_dict())

        if self._storage is None:
            return True
        try:
            return await self._storage.append_event(event)
        except Exception as e:
            self._logger.error("audit_storage_failed", error=str(e), event_id=str(event.event_id))
            return False

    async def log_entity_written(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: Optional[int],
        user_id: int,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a create, update or delete."""
        event = AuditEventBuilder.entity_written(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_validation_failed(
        self,
        entity_type: str,
        reason: Optional[str],
        message: str,
        field_errors: list[dict],
        user_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected write."""
        event = AuditEventBuilder.validation_failed(
            entity_type=entity_type,
            reason=reason,
            message=message,
            field_errors=field_errors,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_prices_refreshed(
        self,
        user_id: int,
        updated: list[str],
        failed: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.prices_refreshed(
            user_id=user_id,
            updated=updated,
            failed=failed,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def _with_bound_correlation(event: AuditEvent) -> AuditEvent:
    bound = structlog.contextvars.get_contextvars().get("correlation_id")
    if not bound:
        return event
    return event.model_copy(update={"correlation_id": UUID(str(bound))})


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., one HTTP request) and
    pass it through all subsequent operations.
    """
    return uuid4()
