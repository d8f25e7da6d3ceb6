"""
Application Components

Wires storage, services, the query dispatcher and the resource descriptors
into one object the HTTP layer can hold on to.

DESIGN DECISION: Nothing here is a module-level singleton. Every call to
`create_app_components` builds a fresh, isolated set of components, so tests
and multiple app instances never share state.
"""

from dataclasses import dataclass
from typing import Optional

from finance_control.allocation.allocator import ResponsibilityAllocator
from finance_control.audit.logger import AuditLogger
from finance_control.config.settings import Settings, get_settings
from finance_control.models.goal import FinancialGoal
from finance_control.models.investment import Investment
from finance_control.models.reference import (
    ResponsibleParty,
    TransactionCategory,
    TransactionSubcategory,
)
from finance_control.models.transaction import Transaction
from finance_control.queries.dispatcher import QueryDispatcher, ResourceDescriptor
from finance_control.resources import (
    category_resource,
    dashboard_resource,
    goal_resource,
    investment_resource,
    responsible_resource,
    subcategory_resource,
    transaction_resource,
)
from finance_control.services.goals import GoalService
from finance_control.services.investments import InvestmentService
from finance_control.services.market_data import QuoteProvider
from finance_control.services.reference import ReferenceDataService
from finance_control.services.storage.interface import (
    AuditStorageInterface,
    EntityStorageInterface,
)
from finance_control.services.storage.memory import InMemoryEntityStorage
from finance_control.services.transactions import TransactionService


@dataclass
class Storages:
    transactions: EntityStorageInterface[Transaction]
    goals: EntityStorageInterface[FinancialGoal]
    investments: EntityStorageInterface[Investment]
    categories: EntityStorageInterface[TransactionCategory]
    subcategories: EntityStorageInterface[TransactionSubcategory]
    responsibles: EntityStorageInterface[ResponsibleParty]

    @classmethod
    def in_memory(cls) -> "Storages":
        return cls(
            transactions=InMemoryEntityStorage("transaction"),
            goals=InMemoryEntityStorage("goal"),
            investments=InMemoryEntityStorage("investment"),
            categories=InMemoryEntityStorage("transaction_category"),
            subcategories=InMemoryEntityStorage("transaction_subcategory"),
            responsibles=InMemoryEntityStorage("responsible"),
        )


@dataclass
class AppComponents:
    storages: Storages
    dispatcher: QueryDispatcher
    transactions: TransactionService
    goals: GoalService
    investments: InvestmentService
    reference: ReferenceDataService
    resources: dict[str, ResourceDescriptor]
    audit: AuditLogger

    async def list(self, resource: str, owner_id: int, params):
        """Run a list or metadata query against one resource."""
        descriptor = self.resources[resource]
        storage = getattr(self.storages, _STORAGE_BY_RESOURCE[resource])
        return await self.dispatcher.dispatch(descriptor, storage, owner_id, params)


_STORAGE_BY_RESOURCE = {
    "dashboard": "transactions",
    "transactions": "transactions",
    "goals": "goals",
    "investments": "investments",
    "transaction-categories": "categories",
    "transaction-subcategories": "subcategories",
    "responsibles": "responsibles",
}


def create_app_components(
    settings: Optional[Settings] = None,
    storages: Optional[Storages] = None,
    quotes: Optional[QuoteProvider] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> AppComponents:
    """
    Build every component of the application.

    Args:
        settings: configuration source (defaults to get_settings())
        storages: entity storages (defaults to fresh in-memory storages)
        quotes: market data provider; without one, price refresh is a no-op
        audit_storage: audit persistence; without one, audit is log-only
    """
    settings = settings or get_settings()
    storages = storages or Storages.in_memory()
    audit = AuditLogger(audit_storage)

    return AppComponents(
        storages=storages,
        dispatcher=QueryDispatcher(settings.pagination, settings.metadata, audit),
        transactions=TransactionService(
            storages.transactions,
            storages.categories,
            storages.subcategories,
            storages.responsibles,
            ResponsibilityAllocator(settings.allocation),
            audit,
        ),
        goals=GoalService(storages.goals, audit),
        investments=InvestmentService(storages.investments, settings.market_data, quotes, audit),
        reference=ReferenceDataService(
            storages.categories, storages.subcategories, storages.responsibles, audit
        ),
        resources={
            "transactions": transaction_resource(),
            "goals": goal_resource(),
            "investments": investment_resource(),
            "transaction-categories": category_resource(storages.transactions),
            "transaction-subcategories": subcategory_resource(),
            "responsibles": responsible_resource(),
            "dashboard": dashboard_resource(storages.goals),
        },
        audit=audit,
    )
