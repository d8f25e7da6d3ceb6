"""
Query Dispatcher

The single entry point behind every list endpoint. A resource does not
subclass anything: it is described by a `ResourceDescriptor` (filters,
sortable fields, metadata views) and handed to the dispatcher together with
its storage.

Flow:
1. No `data` parameter: filter -> sort -> page -> fetch, returns a `Page`.
2. `data=<token>`: look the token up in the descriptor's metadata table.
   Unknown tokens and missing mandatory parameters are rejected before
   anything is fetched. The view then receives the owner-scoped,
   filter-applied and sorted collection.

DESIGN DECISION: Metadata views return their native shape (a list, a number,
a summary model). The HTTP layer wraps whatever comes back in the success
envelope.
"""

import inspect
from dataclasses import dataclass, field
from operator import attrgetter
from typing import Any, Callable, Mapping, Optional

import structlog

from finance_control.audit.logger import AuditLogger
from finance_control.config.settings import MetadataSettings, PaginationSettings
from finance_control.errors import ErrorReason, ValidationError
from finance_control.models.audit import AuditEventBuilder
from finance_control.models.query import Page
from finance_control.queries.paging import Pager
from finance_control.queries.params import (
    Params,
    Parser,
    RawParams,
    convert,
    first_value,
    normalize_params,
    parse_int,
    parse_text,
)
from finance_control.queries.predicates import Predicate, PredicateBuilder
from finance_control.queries.sorting import SortResolver
from finance_control.queries.spec import QuerySpec
from finance_control.services.storage.interface import EntityStorageInterface


logger = structlog.get_logger(__name__)

DATA_PARAM = "data"
LIMIT_PARAM = "limit"


class MetadataContext:
    """What a metadata view may read besides the entity collection."""

    def __init__(self, params: Params, owner_id: int, settings: MetadataSettings):
        self.params = params
        self.owner_id = owner_id
        self.settings = settings

    def require(self, name: str, parser: Parser = parse_text) -> Any:
        raw = first_value(self.params, name)
        if raw is None:
            raise missing_parameter(name)
        return convert(name, raw, parser)

    def optional(self, name: str, parser: Parser = parse_text, default: Any = None) -> Any:
        raw = first_value(self.params, name)
        if raw is None:
            return default
        return convert(name, raw, parser)

    def limit(self) -> int:
        """Ranking size: default when absent or unparseable, clamped to [1, max]."""
        raw = first_value(self.params, LIMIT_PARAM)
        try:
            value = parse_int(raw) if raw is not None else None
        except ValueError:
            value = None
        if value is None:
            value = self.settings.default_ranking_limit
        return max(1, min(value, self.settings.max_ranking_limit))


MetadataHandler = Callable[[list[Any], MetadataContext], Any]


@dataclass(frozen=True)
class MetadataView:
    """A `data` token's handler and the parameters it cannot do without."""

    handler: MetadataHandler
    required: tuple[str, ...] = ()


@dataclass(frozen=True)
class ResourceDescriptor:
    """Everything the dispatcher needs to know about one resource."""

    name: str
    filters: PredicateBuilder
    sort: SortResolver
    metadata: Mapping[str, MetadataView] = field(default_factory=dict)
    owner: Callable[[Any], Any] = attrgetter("user_id")

    @property
    def metadata_tokens(self) -> list[str]:
        return sorted(self.metadata)


def missing_parameter(name: str) -> ValidationError:
    return ValidationError.for_field(
        name,
        f"Parameter '{name}' is required for this data type",
        reason=ErrorReason.MISSING_PARAMETER,
    )


class QueryDispatcher:
    """
    Shared list/metadata request handling.

    Args:
        pagination: page size defaults for the Pager
        metadata: ranking limits and the exchange list for metadata views
        audit: optional audit logger; queries are always logged locally
    """

    def __init__(
        self,
        pagination: PaginationSettings,
        metadata: MetadataSettings,
        audit: Optional[AuditLogger] = None,
    ):
        self.pager = Pager(pagination)
        self.metadata_settings = metadata
        self.audit = audit

    def parse(self, descriptor: ResourceDescriptor, owner_id: int, raw_params: RawParams) -> QuerySpec:
        """Turn raw parameters into a QuerySpec, validating the metadata token."""
        params = normalize_params(raw_params)
        token = first_value(params, DATA_PARAM)

        if token is not None:
            view = descriptor.metadata.get(token)
            if view is None:
                raise ValidationError.for_field(
                    DATA_PARAM,
                    f"Invalid data type: {token}. Supported: {', '.join(descriptor.metadata_tokens)}",
                    rejected_value=token,
                    reason=ErrorReason.UNSUPPORTED_METADATA_TYPE,
                )
            for name in view.required:
                if first_value(params, name) is None:
                    raise missing_parameter(name)

        owned = Predicate.equals(descriptor.owner, owner_id, "owner")
        return QuerySpec(
            predicate=owned & descriptor.filters.build(params),
            sort=descriptor.sort.resolve(
                first_value(params, "sortBy"),
                first_value(params, "sortDirection"),
            ),
            page=self.pager.request(first_value(params, "page"), first_value(params, "size")),
            data=token,
            params=params,
        )

    async def dispatch(
        self,
        descriptor: ResourceDescriptor,
        storage: EntityStorageInterface,
        owner_id: int,
        raw_params: RawParams,
    ) -> Any:
        spec = self.parse(descriptor, owner_id, raw_params)
        if spec.is_metadata:
            return await self._serve_metadata(descriptor, storage, owner_id, spec)
        return await self._serve_page(descriptor, storage, owner_id, spec)

    async def _serve_page(
        self,
        descriptor: ResourceDescriptor,
        storage: EntityStorageInterface,
        owner_id: int,
        spec: QuerySpec,
    ) -> Page:
        items, total = await storage.find_page(
            spec.predicate,
            order=spec.sort.apply,
            offset=spec.page.offset,
            limit=spec.page.limit,
        )
        page = Page.of(items, spec.page, total)

        logger.debug(
            "list_query",
            resource=descriptor.name,
            predicate=spec.predicate.description,
            sort=spec.sort.field,
            direction=spec.sort.direction.value,
            page=spec.page.page,
            size=spec.page.size,
            total=total,
        )
        if self.audit:
            await self.audit.log(AuditEventBuilder.query_executed(
                resource=descriptor.name,
                user_id=owner_id,
                result_count=page.number_of_elements,
                total_elements=total,
            ))
        return page

    async def _serve_metadata(
        self,
        descriptor: ResourceDescriptor,
        storage: EntityStorageInterface,
        owner_id: int,
        spec: QuerySpec,
    ) -> Any:
        view = descriptor.metadata[spec.data]
        items = spec.sort.apply(await storage.find(spec.predicate))
        context = MetadataContext(spec.params, owner_id, self.metadata_settings)

        result = view.handler(items, context)
        if inspect.isawaitable(result):
            result = await result

        logger.debug(
            "metadata_query",
            resource=descriptor.name,
            token=spec.data,
            scoped_count=len(items),
        )
        if self.audit:
            await self.audit.log(AuditEventBuilder.metadata_served(
                resource=descriptor.name,
                token=spec.data,
                user_id=owner_id,
            ))
        return result
