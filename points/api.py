import time
import uuid
from typing import Annotated

from fastapi import Depends, FastAPI, Path, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidIdentityError,
    InvalidTransactionKindError,
    PointServiceError,
)
from .logging import bind_request_id, clear_request_context, configure_logging, get_logger
from .models import AmountRequest, Balance, HistoryResponse, MutateRequest, TransactionKind
from .service import PointService

settings = get_settings()
configure_logging(debug=settings.debug)
log = get_logger(__name__)

ERROR_STATUS = {
    InvalidAmountError: status.HTTP_400_BAD_REQUEST,
    InvalidIdentityError: status.HTTP_400_BAD_REQUEST,
    InvalidTransactionKindError: status.HTTP_400_BAD_REQUEST,
    InsufficientBalanceError: status.HTTP_409_CONFLICT,
}

app = FastAPI(
    title="Point Ledger API",
    description="Per-user point balances with serialized charge/use mutations and transaction history",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

point_service = PointService.from_settings(settings)


def get_point_service() -> PointService:
    return point_service


IdentityPath = Annotated[int, Path(ge=0, description="User identity")]


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    clear_request_context()
    bind_request_id(request_id)
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    log.info(
        "request",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(duration_ms, 2),
    )
    response.headers["X-Request-ID"] = request_id
    return response


def _error_body(request: Request, message: str, code: str, details: dict) -> dict:
    body = {"error": {"message": message, "code": code, "details": details}}
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return body


@app.exception_handler(PointServiceError)
async def point_error_handler(request: Request, exc: PointServiceError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(_error_body(request, exc.message, exc.code, exc.details)),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder(
            _error_body(request, "Validation error", "VALIDATION_ERROR", {"errors": exc.errors()})
        ),
    )


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "healthy", "service": "point-ledger"}


@app.get("/users/{identity}/balance", response_model=Balance, tags=["Points"])
def get_balance(identity: IdentityPath, service: PointService = Depends(get_point_service)) -> Balance:
    return service.read_balance(identity)


@app.get("/users/{identity}/history", response_model=HistoryResponse, tags=["Points"])
def get_history(identity: IdentityPath, service: PointService = Depends(get_point_service)) -> HistoryResponse:
    return service.get_history(identity)


@app.post("/users/{identity}/transactions", response_model=Balance, tags=["Points"])
def mutate_points(
    request: MutateRequest,
    identity: IdentityPath,
    service: PointService = Depends(get_point_service),
) -> Balance:
    return service.mutate(identity, request.amount, request.kind)


@app.patch("/users/{identity}/charge", response_model=Balance, tags=["Points"])
def charge_points(
    request: AmountRequest,
    identity: IdentityPath,
    service: PointService = Depends(get_point_service),
) -> Balance:
    return service.mutate(identity, request.amount, TransactionKind.CHARGE)


@app.patch("/users/{identity}/use", response_model=Balance, tags=["Points"])
def use_points(
    request: AmountRequest,
    identity: IdentityPath,
    service: PointService = Depends(get_point_service),
) -> Balance:
    return service.mutate(identity, request.amount, TransactionKind.USE)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
