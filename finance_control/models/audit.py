"""
Audit Models for Finance Control

Every write and every served query produces an audit event. This provides:
1. Traceability of who changed which record
2. Debugging information when a request is rejected
3. A record of external market-data failures

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finance_control.models.common import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""

    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_RECONCILED = "transaction_reconciled"

    # Goals
    GOAL_CREATED = "goal_created"
    GOAL_UPDATED = "goal_updated"
    GOAL_PROGRESS_UPDATED = "goal_progress_updated"
    GOAL_STATUS_CHANGED = "goal_status_changed"
    GOAL_DELETED = "goal_deleted"

    # Investments
    INVESTMENT_CREATED = "investment_created"
    INVESTMENT_UPDATED = "investment_updated"
    INVESTMENT_DELETED = "investment_deleted"
    PRICES_REFRESHED = "prices_refreshed"

    # Reference data
    REFERENCE_CREATED = "reference_created"

    # Queries
    QUERY_EXECUTED = "query_executed"
    METADATA_SERVED = "metadata_served"

    # Rejections and failures
    VALIDATION_FAILED = "validation_failed"
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Which record is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'goal', 'investment')"
    )
    entity_id: Optional[int] = None

    # Who triggered it
    user_id: Optional[int] = None
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate events emitted while serving one request"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Flat, JSON-safe view for structured logging."""
        return self.model_dump(mode="json")


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entity_written(AuditEventType.GOAL_CREATED, "goal", 7, user_id=1)
        event = AuditEventBuilder.validation_failed("transaction", "PERCENTAGE_MISMATCH", ...)
    """

    @staticmethod
    def entity_written(
        event_type: AuditEventType,
        entity_type: str,
        entity_id: Optional[int],
        user_id: int,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        action = event_type.value.split("_", 1)[-1].replace("_", " ")
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} {entity_id} {action}",
            details=details or {},
        )

    @staticmethod
    def query_executed(
        resource: str,
        user_id: int,
        result_count: int,
        total_elements: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.QUERY_EXECUTED,
            severity=AuditSeverity.DEBUG,
            entity_type=resource,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"List query on {resource} returned {result_count} of {total_elements}",
            details={
                "result_count": result_count,
                "total_elements": total_elements,
            },
        )

    @staticmethod
    def metadata_served(
        resource: str,
        token: str,
        user_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.METADATA_SERVED,
            severity=AuditSeverity.DEBUG,
            entity_type=resource,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Metadata '{token}' served for {resource}",
            details={"token": token},
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        reason: Optional[str],
        message: str,
        field_errors: list[dict],
        user_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} rejected: {message}"[:500],
            details={"field_errors": field_errors},
            error_code=reason,
            error_message=message,
        )

    @staticmethod
    def prices_refreshed(
        user_id: int,
        updated: list[str],
        failed: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRICES_REFRESHED,
            severity=AuditSeverity.WARNING if failed else AuditSeverity.INFO,
            entity_type="investment",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Prices refreshed for {len(updated)} holdings ({len(failed)} failed)",
            details={"updated": updated, "failed": failed},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service, **(details or {})},
            correlation_id=correlation_id,
        )
