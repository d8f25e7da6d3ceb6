"""
HTTP API for Finance Control

FastAPI routes for every resource. The routes stay thin: they read the
caller's identity, hand parameters to the services or the query dispatcher
and wrap the result in the success envelope.

Error mapping:
- VALIDATION_ERROR -> 400 (with field-level detail)
- NOT_FOUND        -> 404
- CONFLICT         -> 409
- storage failures and anything else -> 500, logged as a system error

Run locally with:
    uvicorn app.main:app --reload
"""

from decimal import Decimal
import logging
from typing import Any, Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from finance_control.audit.logger import create_correlation_id
from finance_control.components import AppComponents, create_app_components
from finance_control.config.settings import get_settings, validate_all_settings
from finance_control.errors import (
    ErrorCode,
    ErrorReason,
    FieldError,
    FinanceControlError,
    InternalError,
    ValidationError,
)
from finance_control.models.goal import GoalCompletionRequest, GoalRequest
from finance_control.models.investment import InvestmentRequest
from finance_control.models.reference import NamedRequest, SubcategoryRequest
from finance_control.models.responses import ErrorResponse, SuccessResponse
from finance_control.models.transaction import TransactionReconciliationRequest, TransactionRequest
from finance_control.queries.dispatcher import DATA_PARAM, missing_parameter
from finance_control.services.storage.interface import StorageError


logger = structlog.get_logger(__name__)

STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.INTERNAL_ERROR: 500,
}

CORRELATION_HEADER = "X-Correlation-Id"


# =============================================================================
# ENVELOPES
# =============================================================================

def ok(data: Any = None, message: str = "OK", status_code: int = 200) -> JSONResponse:
    envelope = SuccessResponse(data=data, message=message)
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json", by_alias=True),
    )


def error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    reason: Optional[str] = None,
    field_errors: Optional[list[FieldError]] = None,
) -> JSONResponse:
    envelope = ErrorResponse(
        error=error,
        reason=reason,
        message=message,
        path=request.url.path,
        validation_errors=field_errors or None,
    )
    # Handlers for bare Exception run outside the middleware stack
    correlation_id = getattr(request.state, "correlation_id", None)
    headers = {CORRELATION_HEADER: str(correlation_id)} if correlation_id else None
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers=headers,
    )


def _field_errors(errors: list[dict]) -> list[FieldError]:
    """pydantic error list -> FieldError list ('body' prefix dropped)."""
    result = []
    for err in errors:
        location = [str(part) for part in err.get("loc", ()) if part not in ("body", "query")]
        result.append(FieldError(
            field=".".join(location) or "request",
            message=err.get("msg", "Invalid value"),
            rejected_value=err.get("input") if isinstance(err.get("input"), (str, int, float)) else None,
        ))
    return result


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_components(request: Request) -> AppComponents:
    return request.app.state.components


def get_owner_id(x_user_id: Optional[str] = Header(None, alias="X-User-Id")) -> int:
    """The authenticated user, as provided by the upstream auth layer."""
    if not x_user_id:
        raise StarletteHTTPException(status_code=401, detail="Missing user identity")
    try:
        return int(x_user_id)
    except ValueError:
        raise StarletteHTTPException(status_code=401, detail="Invalid user identity")


def query_params(request: Request) -> dict[str, list[str]]:
    params: dict[str, list[str]] = {}
    for name, value in request.query_params.multi_items():
        params.setdefault(name, []).append(value)
    return params


# =============================================================================
# APP
# =============================================================================

def create_app(components: Optional[AppComponents] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        components: pre-built components (tests pass their own);
                    defaults to a fresh in-memory set
    """
    app_settings = get_settings().app
    logging.basicConfig(level=app_settings.log_level, format="%(message)s")

    app = FastAPI(title="Finance Control", debug=app_settings.debug_mode)
    app.state.components = components or create_app_components()

    @app.middleware("http")
    async def correlate(request: Request, call_next):
        correlation_id = create_correlation_id()
        request.state.correlation_id = correlation_id
        # AuditLogger picks the id up for every event of this request
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=str(correlation_id))
        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = str(correlation_id)
        return response

    _register_error_handlers(app)
    _register_transaction_routes(app)
    _register_goal_routes(app)
    _register_investment_routes(app)
    _register_reference_routes(app)
    _register_dashboard_routes(app)

    @app.get("/health")
    async def health():
        checks = validate_all_settings()
        status = "UP" if all(v for k, v in checks.items() if not k.endswith("_error")) else "DEGRADED"
        return ok({
            "status": status,
            "environment": app_settings.app_environment,
            "settings": checks,
        })

    return app


def _register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(ValidationError)
    async def handle_validation(request: Request, exc: ValidationError):
        return error_response(
            request,
            400,
            exc.code.value,
            exc.message,
            reason=exc.reason.value if exc.reason else None,
            field_errors=exc.field_errors,
        )

    @app.exception_handler(FinanceControlError)
    async def handle_domain(request: Request, exc: FinanceControlError):
        return error_response(
            request,
            STATUS_BY_CODE.get(exc.code, 500),
            exc.code.value,
            exc.message,
            reason=exc.reason.value if exc.reason else None,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return error_response(
            request,
            400,
            ErrorCode.VALIDATION_ERROR.value,
            "Request validation failed",
            reason=ErrorReason.INVALID_FIELD.value,
            field_errors=_field_errors(exc.errors()),
        )

    @app.exception_handler(PydanticValidationError)
    async def handle_model_validation(request: Request, exc: PydanticValidationError):
        return error_response(
            request,
            400,
            ErrorCode.VALIDATION_ERROR.value,
            "Validation failed",
            reason=ErrorReason.INVALID_FIELD.value,
            field_errors=_field_errors(exc.errors()),
        )

    @app.exception_handler(StorageError)
    async def handle_storage(request: Request, exc: StorageError):
        error = InternalError(f"Storage failure: {exc}")
        logger.error("storage_error", path=request.url.path, error=str(exc))
        await request.app.state.components.audit.log_error(
            type(exc).__name__,
            str(exc),
            details={"path": request.url.path},
            correlation_id=getattr(request.state, "correlation_id", None),
        )
        return error_response(request, 500, error.code.value, error.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        error = "UNAUTHORIZED" if exc.status_code == 401 else f"HTTP_{exc.status_code}"
        return error_response(request, exc.status_code, error, str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("unhandled_error", path=request.url.path)
        await request.app.state.components.audit.log_error(
            type(exc).__name__,
            str(exc),
            details={"path": request.url.path},
            correlation_id=getattr(request.state, "correlation_id", None),
        )
        return error_response(
            request,
            500,
            ErrorCode.INTERNAL_ERROR.value,
            "An unexpected error occurred",
        )


# =============================================================================
# ROUTES
# =============================================================================

def _register_transaction_routes(app: FastAPI) -> None:

    @app.get("/transactions")
    async def list_transactions(
        owner_id: int = Depends(get_owner_id),
        params: dict = Depends(query_params),
        components: AppComponents = Depends(get_components),
    ):
        return ok(await components.list("transactions", owner_id, params))

    @app.get("/transactions/{transaction_id}")
    async def get_transaction(
        transaction_id: int,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        return ok(await components.transactions.get(owner_id, transaction_id))

    @app.post("/transactions", status_code=201)
    async def create_transaction(
        body: TransactionRequest,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        created = await components.transactions.create(owner_id, body)
        return ok(created, "Transaction created", status_code=201)

    @app.post("/transactions/installments", status_code=201)
    async def create_installments(
        body: TransactionRequest,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        created = await components.transactions.create_installments(owner_id, body)
        return ok(created, f"{len(created)} installments created", status_code=201)

    @app.put("/transactions/{transaction_id}")
    async def update_transaction(
        transaction_id: int,
        body: TransactionRequest,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        return ok(
            await components.transactions.update(owner_id, transaction_id, body),
            "Transaction updated",
        )

    @app.put("/transactions/{transaction_id}/reconcile")
    async def reconcile_transaction(
        transaction_id: int,
        body: TransactionReconciliationRequest,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        return ok(
            await components.transactions.reconcile(owner_id, transaction_id, body),
            "Transaction reconciled",
        )

    @app.delete("/transactions/{transaction_id}")
    async def delete_transaction(
        transaction_id: int,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        await components.transactions.delete(owner_id, transaction_id)
        return ok(message="Transaction deleted")


def _register_goal_routes(app: FastAPI) -> None:

    @app.get("/goals")
    async def list_goals(
        owner_id: int = Depends(get_owner_id),
        params: dict = Depends(query_params),
        components: AppComponents = Depends(get_components),
    ):
        return ok(await components.list("goals", owner_id, params))

    @app.get("/goals/{goal_id}")
    async def get_goal(
        goal_id: int,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        return ok(await components.goals.get(owner_id, goal_id))

    @app.post("/goals", status_code=201)
    async def create_goal(
        body: GoalRequest,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        return ok(await components.goals.create(owner_id, body), "Goal created", status_code=201)

    @app.put("/goals/{goal_id}")
    async def update_goal(
        goal_id: int,
        body: GoalRequest,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        return ok(await components.goals.update(owner_id, goal_id, body), "Goal updated")

    @app.delete("/goals/{goal_id}")
    async def delete_goal(
        goal_id: int,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        await components.goals.delete(owner_id, goal_id)
        return ok(message="Goal deleted")

    @app.post("/goals/{goal_id}/progress")
    async def update_goal_progress(
        goal_id: int,
        amount: Decimal = Query(...),
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        return ok(
            await components.goals.update_progress(owner_id, goal_id, amount),
            "Goal progress updated",
        )

    @app.api_route("/goals/{goal_id}/complete", methods=["POST", "PUT"])
    async def complete_goal(
        goal_id: int,
        body: Optional[GoalCompletionRequest] = None,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        return ok(await components.goals.complete(owner_id, goal_id, body), "Goal completed")

    @app.post("/goals/{goal_id}/reactivate")
    async def reactivate_goal(
        goal_id: int,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        return ok(await components.goals.reactivate(owner_id, goal_id), "Goal reactivated")


def _register_investment_routes(app: FastAPI) -> None:

    @app.get("/investments")
    async def list_investments(
        owner_id: int = Depends(get_owner_id),
        params: dict = Depends(query_params),
        components: AppComponents = Depends(get_components),
    ):
        return ok(await components.list("investments", owner_id, params))

    # Declared before /investments/{investment_id} routes of the same method.
    @app.post("/investments/refresh-prices")
    async def refresh_prices(
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        return ok(await components.investments.refresh_prices(owner_id), "Prices refreshed")

    @app.get("/investments/{investment_id}")
    async def get_investment(
        investment_id: int,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        return ok(await components.investments.get(owner_id, investment_id))

    @app.post("/investments", status_code=201)
    async def create_investment(
        body: InvestmentRequest,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        created = await components.investments.create(owner_id, body)
        return ok(created, "Investment created", status_code=201)

    @app.put("/investments/{investment_id}")
    async def update_investment(
        investment_id: int,
        body: InvestmentRequest,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        return ok(
            await components.investments.update(owner_id, investment_id, body),
            "Investment updated",
        )

    @app.delete("/investments/{investment_id}")
    async def delete_investment(
        investment_id: int,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        await components.investments.delete(owner_id, investment_id)
        return ok(message="Investment deleted")


def _register_reference_routes(app: FastAPI) -> None:

    @app.get("/transaction-categories")
    async def list_categories(
        owner_id: int = Depends(get_owner_id),
        params: dict = Depends(query_params),
        components: AppComponents = Depends(get_components),
    ):
        return ok(await components.list("transaction-categories", owner_id, params))

    @app.post("/transaction-categories", status_code=201)
    async def create_category(
        body: NamedRequest,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        created = await components.reference.create_category(owner_id, body)
        return ok(created, "Category created", status_code=201)

    @app.get("/transaction-subcategories")
    async def list_subcategories(
        owner_id: int = Depends(get_owner_id),
        params: dict = Depends(query_params),
        components: AppComponents = Depends(get_components),
    ):
        return ok(await components.list("transaction-subcategories", owner_id, params))

    @app.post("/transaction-subcategories", status_code=201)
    async def create_subcategory(
        body: SubcategoryRequest,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        created = await components.reference.create_subcategory(owner_id, body)
        return ok(created, "Subcategory created", status_code=201)

    @app.get("/responsibles")
    async def list_responsibles(
        owner_id: int = Depends(get_owner_id),
        params: dict = Depends(query_params),
        components: AppComponents = Depends(get_components),
    ):
        return ok(await components.list("responsibles", owner_id, params))

    @app.post("/responsibles", status_code=201)
    async def create_responsible(
        body: NamedRequest,
        owner_id: int = Depends(get_owner_id),
        components: AppComponents = Depends(get_components),
    ):
        created = await components.reference.create_responsible(owner_id, body)
        return ok(created, "Responsible created", status_code=201)


def _register_dashboard_routes(app: FastAPI) -> None:

    @app.get("/dashboard")
    async def dashboard(
        owner_id: int = Depends(get_owner_id),
        params: dict = Depends(query_params),
        components: AppComponents = Depends(get_components),
    ):
        # Only views here; there is no dashboard listing
        if not any(value.strip() for value in params.get(DATA_PARAM, [])):
            raise missing_parameter(DATA_PARAM)
        return ok(await components.list("dashboard", owner_id, params))


app = create_app()
