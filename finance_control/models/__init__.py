"""
Data Models Package

This package contains all Pydantic models used in Finance Control.
All data flowing through the system must conform to these schemas.
"""

from finance_control.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from finance_control.models.goal import (
    FinancialGoal,
    GoalRequest,
    GoalStatus,
    GoalType,
)
from finance_control.models.investment import (
    Investment,
    InvestmentRequest,
    InvestmentSubtype,
    InvestmentType,
)
from finance_control.models.query import Page, PageRequest, SortDirection
from finance_control.models.reference import (
    NamedRequest,
    ResponsibleParty,
    SubcategoryRequest,
    TransactionCategory,
    TransactionSubcategory,
)
from finance_control.models.responses import ErrorResponse, SuccessResponse
from finance_control.models.transaction import (
    Responsibility,
    ResponsibilityInput,
    Transaction,
    TransactionRequest,
    TransactionSource,
    TransactionSubtype,
    TransactionType,
)

__all__ = [
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Goal models
    "FinancialGoal",
    "GoalRequest",
    "GoalStatus",
    "GoalType",
    # Investment models
    "Investment",
    "InvestmentRequest",
    "InvestmentSubtype",
    "InvestmentType",
    # Query models
    "Page",
    "PageRequest",
    "SortDirection",
    # Reference models
    "NamedRequest",
    "ResponsibleParty",
    "SubcategoryRequest",
    "TransactionCategory",
    "TransactionSubcategory",
    # Envelopes
    "ErrorResponse",
    "SuccessResponse",
    # Transaction models
    "Responsibility",
    "ResponsibilityInput",
    "Transaction",
    "TransactionRequest",
    "TransactionSource",
    "TransactionSubtype",
    "TransactionType",
]
