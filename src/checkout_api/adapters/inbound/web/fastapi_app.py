from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Annotated, Any, AsyncIterator, Callable, Literal, Sequence

import structlog
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field
from returns.result import Success

from checkout_api.adapters.outbound.price_file import PriceFileWatcher
from checkout_api.core.domain.model.checkout import (
    ContactInfo,
    Delivery,
    Pickup,
    StructuredAddress,
)
from checkout_api.core.domain.model.errors import (
    CheckoutError,
    ConfigurationError,
    MalformedRequest,
    ProviderUnavailable,
)
from checkout_api.core.ports.inbound.checkout import (
    CartItem,
    CheckoutCommand,
    CheckoutUseCase,
)
from checkout_api.core.ports.inbound.selftest import SelfTestUseCase

logger = structlog.get_logger(__name__)

# ---- HTTP DTOs (adapter layer) ---------------------------------------------


class CartLineIn(BaseModel):
    # client-side fields such as priceCents are ignored; prices come from the server
    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1, examples=["Small Fries"])
    qty: Any = Field(None, examples=[2])


class ContactIn(BaseModel):
    name: str = Field(min_length=1, examples=["Sam"])
    phone: str = Field(min_length=7, examples=["5551234567"])
    email: EmailStr | None = None


class AddressIn(BaseModel):
    line1: str = Field(
        min_length=1, validation_alias=AliasChoices("line1", "address_line_1")
    )
    locality: str | None = None
    region: str | None = Field(
        None, validation_alias=AliasChoices("region", "administrative_district_level_1")
    )
    postal_code: str | None = Field(
        None, validation_alias=AliasChoices("postalCode", "postal_code")
    )
    country: str | None = None


class CheckoutRequest(BaseModel):
    cart: list[CartLineIn]
    contact: ContactIn
    pickup_time: str | None = Field(None, alias="pickupTime")
    fulfillment: Literal["pickup", "delivery"] = "pickup"
    address: Annotated[str, Field(min_length=1)] | AddressIn | None = None
    payment_token: str = Field(alias="paymentToken", examples=["cnon:card-nonce-ok"])


class CheckoutResponse(BaseModel):
    success: bool = True
    orderId: str
    paymentId: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    type: str


class PublicConfigResponse(BaseModel):
    applicationId: str | None
    locationId: str | None
    env: str


class SelfTestResponse(BaseModel):
    ok: bool
    problems: list[str]
    missingPriceKeys: list[str]
    env: str


# ---- mapping helpers -------------------------------------------------------


def to_command(req: CheckoutRequest) -> CheckoutCommand:
    if req.fulfillment == "delivery":
        address = req.address
        if isinstance(address, AddressIn):
            address = StructuredAddress(
                line1=address.line1,
                locality=address.locality,
                region=address.region,
                postal_code=address.postal_code,
                country=address.country,
            )
        fulfillment: Pickup | Delivery = Delivery(address=address)
    else:
        fulfillment = Pickup(pickup_time=req.pickup_time)

    return CheckoutCommand(
        cart=tuple(CartItem(name=ln.name, qty=ln.qty) for ln in req.cart),
        contact=ContactInfo(
            name=req.contact.name,
            phone=req.contact.phone,
            email=str(req.contact.email) if req.contact.email else None,
        ),
        payment_token=req.payment_token,
        fulfillment=fulfillment,
    )


def _map_error_to_http(err: CheckoutError) -> tuple[int, ErrorResponse]:
    body = ErrorResponse(error=str(err) or "Checkout failed", type=type(err).__name__)

    if isinstance(err, ProviderUnavailable):
        return 503, body

    if isinstance(err, ConfigurationError):
        return 500, body

    # validation failures and provider rejections alike
    return 400, body


def _describe_validation(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid request"
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "invalid value")
    return f"invalid request: {loc}: {msg}" if loc else f"invalid request: {msg}"


# ---- app factory -----------------------------------------------------------


def create_app(
    checkout_uc: CheckoutUseCase,
    selftest_uc: SelfTestUseCase,
    *,
    price_watcher: PriceFileWatcher | None = None,
    on_shutdown: Sequence[Callable[[], None]] = (),
    cors_allow_origins: Sequence[str] = ("*",),
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if price_watcher is not None:
            price_watcher.start()
        try:
            yield
        finally:
            if price_watcher is not None:
                price_watcher.stop()
            for close in on_shutdown:
                close()

    app = FastAPI(title="checkout_api", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors_allow_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    # --- exception handlers (uniform {success:false, error}) -----------------

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        body = ErrorResponse(
            error=_describe_validation(exc), type=MalformedRequest.__name__
        )
        return JSONResponse(status_code=400, content=body.model_dump())

    @app.exception_handler(Exception)
    async def handle_unexpected(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("http.unexpected_error", error_type=type(exc).__name__)
        body = ErrorResponse(error="Checkout failed", type="InternalError")
        return JSONResponse(status_code=500, content=body.model_dump())

    # --- routes --------------------------------------------------------------

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    api = APIRouter(prefix="/api")

    @api.get("/config", response_model=PublicConfigResponse)
    def public_config() -> Any:
        view = selftest_uc.public_config()
        return PublicConfigResponse(
            applicationId=view.application_id,
            locationId=view.location_id,
            env=view.env,
        )

    @api.get("/selftest", response_model=SelfTestResponse)
    def selftest() -> Any:
        report = selftest_uc.selftest()
        return SelfTestResponse(
            ok=report.ok,
            problems=list(report.problems),
            missingPriceKeys=list(report.missing_price_keys),
            env=report.env,
        )

    @api.post(
        "/checkout",
        response_model=CheckoutResponse,
        responses={
            400: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
            503: {"model": ErrorResponse},
        },
    )
    def checkout(req: CheckoutRequest) -> Any:
        result = checkout_uc.checkout(to_command(req))

        if isinstance(result, Success):
            receipt = result.unwrap()
            return CheckoutResponse(
                orderId=receipt.order_id.value,
                paymentId=receipt.payment_id.value,
            )

        status, body = _map_error_to_http(result.failure())
        return JSONResponse(status_code=status, content=body.model_dump())

    app.include_router(api)
    return app
