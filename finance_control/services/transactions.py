"""
Transaction Service

Create/update flow:
1. Resolve the category (and subcategory) owned by the caller
2. Allocate responsibilities (shape and 100% checks, amount split)
3. Resolve every responsible party owned by the caller
4. Write the fully validated transaction in a single storage call

Nothing is written unless every step passes. On update the responsibility
list is replaced as a whole; the last writer wins.

An installment series is one request turned into N monthly transactions.
Every installment is allocated on its own amount, and the whole series is
validated before the first one is written.
"""

from decimal import Decimal
from typing import Optional

from finance_control.allocation.allocator import ResponsibilityAllocator
from finance_control.audit.logger import AuditLogger
from finance_control.errors import ErrorReason, ValidationError
from finance_control.models.audit import AuditEventType
from finance_control.models.common import add_months, utc_now
from finance_control.models.reference import (
    ResponsibleParty,
    TransactionCategory,
    TransactionSubcategory,
)
from finance_control.models.transaction import (
    Responsibility,
    Transaction,
    TransactionReconciliationRequest,
    TransactionRequest,
)
from finance_control.services.common import get_owned
from finance_control.services.storage.interface import EntityStorageInterface


ENTITY = "transaction"

# Kept across a full update; only reconcile() changes them.
RECONCILIATION_FIELDS = (
    "reconciled",
    "reconciled_amount",
    "reconciliation_date",
    "reconciliation_notes",
    "bank_reference",
    "external_reference",
)


class TransactionService:
    def __init__(
        self,
        transactions: EntityStorageInterface[Transaction],
        categories: EntityStorageInterface[TransactionCategory],
        subcategories: EntityStorageInterface[TransactionSubcategory],
        responsibles: EntityStorageInterface[ResponsibleParty],
        allocator: ResponsibilityAllocator,
        audit: Optional[AuditLogger] = None,
    ):
        self.transactions = transactions
        self.categories = categories
        self.subcategories = subcategories
        self.responsibles = responsibles
        self.allocator = allocator
        self.audit = audit or AuditLogger()

    async def get(self, owner_id: int, transaction_id: int) -> Transaction:
        return await get_owned(self.transactions, owner_id, transaction_id, "Transaction")

    async def create(self, owner_id: int, request: TransactionRequest) -> Transaction:
        (responsibilities,) = await self._validated(owner_id, request, [request.amount])
        transaction = await self.transactions.create(
            self._build(owner_id, request, responsibilities)
        )
        await self.audit.log_entity_written(
            AuditEventType.TRANSACTION_CREATED,
            ENTITY,
            transaction.id,
            owner_id,
            details={"amount": str(transaction.amount), "responsibilities": len(responsibilities)},
        )
        return transaction

    async def create_installments(
        self,
        owner_id: int,
        request: TransactionRequest,
    ) -> list[Transaction]:
        """
        Turn one purchase into `request.installments` monthly transactions.

        The amount is split evenly to the cent, the first installment taking
        the remainder. Installment i is dated i-1 months after the request
        date and described as "<description> (i/N)".

        Raises:
            ValidationError: fewer than two installments, an amount too small
                to give every installment a cent, or any allocation failure
        """
        count = request.installments or 0
        if count < 2:
            await self._reject(owner_id, ValidationError.for_field(
                "installments",
                "An installment series needs at least 2 installments",
                rejected_value=request.installments,
                reason=ErrorReason.INVALID_FIELD,
            ))
        if request.amount < self.allocator.quantum * count:
            await self._reject(owner_id, ValidationError.for_field(
                "amount",
                f"Amount {request.amount} cannot be split into {count} installments",
                rejected_value=request.amount,
                reason=ErrorReason.INVALID_FIELD,
            ))

        amounts = self.allocator.split_evenly(request.amount, count)
        splits = await self._validated(owner_id, request, amounts)

        installments = []
        for number, (amount, responsibilities) in enumerate(zip(amounts, splits), start=1):
            installment = request.model_copy(update={
                "amount": amount,
                "description": f"{request.description} ({number}/{count})",
                "transaction_date": add_months(request.transaction_date, number - 1),
            })
            transaction = self._build(owner_id, installment, responsibilities)
            transaction.installment_number = number
            installments.append(transaction)

        created = []
        for transaction in installments:
            transaction = await self.transactions.create(transaction)
            await self.audit.log_entity_written(
                AuditEventType.TRANSACTION_CREATED,
                ENTITY,
                transaction.id,
                owner_id,
                details={
                    "amount": str(transaction.amount),
                    "installment": f"{transaction.installment_number}/{count}",
                },
            )
            created.append(transaction)
        return created

    async def update(
        self,
        owner_id: int,
        transaction_id: int,
        request: TransactionRequest,
    ) -> Transaction:
        existing = await self.get(owner_id, transaction_id)
        (responsibilities,) = await self._validated(owner_id, request, [request.amount])

        replacement = self._build(owner_id, request, responsibilities)
        replacement.id = existing.id
        replacement.created_at = existing.created_at
        replacement.installment_number = existing.installment_number
        for name in RECONCILIATION_FIELDS:
            setattr(replacement, name, getattr(existing, name))
        transaction = await self.transactions.update(replacement)

        await self.audit.log_entity_written(
            AuditEventType.TRANSACTION_UPDATED,
            ENTITY,
            transaction.id,
            owner_id,
            details={"amount": str(transaction.amount), "responsibilities": len(responsibilities)},
        )
        return transaction

    async def reconcile(
        self,
        owner_id: int,
        transaction_id: int,
        request: TransactionReconciliationRequest,
    ) -> Transaction:
        """Record how the transaction matched the bank statement."""
        transaction = await self.get(owner_id, transaction_id)
        for name, value in request.model_dump().items():
            setattr(transaction, name, value)
        transaction.updated_at = utc_now()

        transaction = await self.transactions.update(transaction)
        await self.audit.log_entity_written(
            AuditEventType.TRANSACTION_RECONCILED,
            ENTITY,
            transaction.id,
            owner_id,
            details={
                "reconciled": transaction.reconciled,
                "reconciled_amount": str(transaction.reconciled_amount),
                "difference": str(transaction.reconciliation_difference),
            },
        )
        return transaction

    async def delete(self, owner_id: int, transaction_id: int) -> None:
        """Deleting a transaction deletes its responsibilities with it."""
        await self.get(owner_id, transaction_id)
        await self.transactions.delete(transaction_id)
        await self.audit.log_entity_written(
            AuditEventType.TRANSACTION_DELETED, ENTITY, transaction_id, owner_id
        )

    async def _validated(
        self,
        owner_id: int,
        request: TransactionRequest,
        amounts: list[Decimal],
    ) -> list[list[Responsibility]]:
        """Allocate the request's responsibilities over each amount."""
        try:
            await get_owned(self.categories, owner_id, request.category_id, "TransactionCategory")
            if request.subcategory_id is not None:
                subcategory = await get_owned(
                    self.subcategories, owner_id, request.subcategory_id, "TransactionSubcategory"
                )
                if subcategory.category_id != request.category_id:
                    raise ValidationError.for_field(
                        "subcategoryId",
                        "Subcategory does not belong to the selected category",
                        rejected_value=request.subcategory_id,
                        reason=ErrorReason.INVALID_FIELD,
                    )

            splits = [self.allocator.allocate(amount, request.responsibilities) for amount in amounts]

            for responsible_id in dict.fromkeys(r.responsible_id for r in splits[0]):
                await get_owned(self.responsibles, owner_id, responsible_id, "ResponsibleParty")
        except ValidationError as e:
            await self._reject(owner_id, e)
        return splits

    async def _reject(self, owner_id: int, error: ValidationError) -> None:
        await self.audit.log_validation_failed(
            ENTITY,
            error.reason.value if error.reason else None,
            error.message,
            [fe.model_dump(by_alias=True, mode="json") for fe in error.field_errors],
            user_id=owner_id,
        )
        raise error

    @staticmethod
    def _build(
        owner_id: int,
        request: TransactionRequest,
        responsibilities: list[Responsibility],
    ) -> Transaction:
        now = utc_now()
        return Transaction(
            user_id=owner_id,
            type=request.type,
            subtype=request.subtype,
            source=request.source,
            description=request.description,
            amount=request.amount,
            transaction_date=request.transaction_date,
            category_id=request.category_id,
            subcategory_id=request.subcategory_id,
            source_entity_id=request.source_entity_id,
            installments=request.installments,
            responsibilities=responsibilities,
            created_at=now,
            updated_at=now,
        )
