"""FastAPI app for requirement intake, directory listing and health.

All error responses share one shape: ``{"message": ...}``.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_serializer
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .directory import Directory, load_directory
from .logging_config import setup_logging
from .models import Requirement, Supplier
from .pipelines.intake import IntakeService, RequirementValidationError
from .pipelines.notification import NotificationTransportError, Notifier, SmtpTransport, build_notifier
from .store import RequirementStore

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error. Please try again later."


# Pydantic request/response models
class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SubmitRequirementRequest(BaseModel):
    """Raw submission; field checks happen in the intake pipeline."""
    model_config = ConfigDict(extra="ignore")

    product: Any = None
    quantity: Any = None
    deliveryDate: Any = None
    notes: Any = None


class RequirementDTO(CamelModel):
    """Stored requirement."""
    id: int
    product: str
    quantity: float
    delivery_date: date = Field(alias="deliveryDate")
    notes: str
    created_at: datetime = Field(alias="createdAt")

    @field_serializer("quantity")
    def serialize_quantity(self, value: float) -> int | float:
        return int(value) if value.is_integer() else value

    @classmethod
    def from_record(cls, requirement: Requirement) -> RequirementDTO:
        return cls(
            id=requirement.id,
            product=requirement.product,
            quantity=requirement.quantity,
            delivery_date=requirement.delivery_date,
            notes=requirement.notes,
            created_at=requirement.created_at,
        )


class NotifiedFarmerDTO(BaseModel):
    """Supplier that received a notification."""
    name: str
    email: str


class FarmerDTO(BaseModel):
    """Directory entry."""
    name: str
    email: str
    product: str

    @classmethod
    def from_record(cls, supplier: Supplier) -> FarmerDTO:
        return cls(name=supplier.name, email=supplier.contact_address, product=supplier.offering)


class SubmitRequirementResponse(CamelModel):
    """Accepted submission."""
    message: str
    notified_farmers: list[NotifiedFarmerDTO] = Field(alias="notifiedFarmers")
    requirement: RequirementDTO


class RequirementListResponse(BaseModel):
    count: int
    requirements: list[RequirementDTO]


class FarmerListResponse(BaseModel):
    count: int
    farmers: list[FarmerDTO]


class HealthResponse(CamelModel):
    """Health check response."""
    status: str
    email_enabled: bool = Field(alias="emailEnabled")
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Error response."""
    message: str


def get_intake_service(request: Request) -> IntakeService:
    return request.app.state.intake


async def _verify_transport(transport: SmtpTransport) -> None:
    try:
        await transport.verify()
    except NotificationTransportError as e:
        logger.error(f"Email configuration error: {e}")
    else:
        logger.info("Email server is ready to send messages")


def create_app(
    settings: Settings | None = None,
    *,
    notifier: Notifier | None = None,
    directory: Directory | None = None,
    store: RequirementStore | None = None,
    configure_logging: bool = True,
) -> FastAPI:
    """Build the application with its collaborators.

    Args:
        settings: Application settings (cached environment settings by default)
        notifier: Notifier override; built from ``settings.email`` when omitted
        directory: Supplier directory; loaded from ``settings.directory`` when omitted
        store: Requirement store; a fresh in-memory store when omitted
        configure_logging: Install root logging handlers on startup

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    if notifier is None:
        notifier = build_notifier(settings.email)
    if directory is None:
        directory = load_directory(settings.directory.file)
    if store is None:
        store = RequirementStore()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup/shutdown logic."""
        # Startup
        if configure_logging:
            setup_logging(settings.logging)
        logger.info(f"{settings.app_name} v{settings.version} starting on port {settings.port}")
        logger.info(
            "Email notifications: "
            + ("ENABLED" if notifier.live else "DISABLED (console logging)")
        )
        if isinstance(notifier.transport, SmtpTransport):
            await _verify_transport(notifier.transport)

        yield

        # Shutdown
        logger.info("Application shutting down")

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="Buyer requirement intake with farmer matching and notification",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.notifier = notifier
    app.state.intake = IntakeService(store=store, directory=directory, notifier=notifier)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(build_router())
    return app


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequirementValidationError)
    async def requirement_validation_handler(request: Request, exc: RequirementValidationError):
        """Handle rejected submissions."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(message=exc.message).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Handle bodies that are not a JSON object."""
        logger.info(f"Malformed request body on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(message="Request body must be a JSON object").model_dump(),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        """Render HTTP errors in the common message shape."""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(message=str(exc.detail)).model_dump(),
            headers=getattr(exc, "headers", None),
        )


def build_router() -> APIRouter:
    router = APIRouter()

    @router.get("/")
    async def root(request: Request):
        """Root endpoint with API info."""
        settings: Settings = request.app.state.settings
        return {
            "app": settings.app_name,
            "version": settings.version,
            "endpoints": {
                "health": "/health",
                "submit_requirement": "POST /api/requirements",
                "list_requirements": "GET /api/requirements",
                "list_farmers": "GET /api/farmers",
                "docs": "/docs",
            },
        }

    @router.get("/health", response_model=HealthResponse)
    async def health(request: Request) -> HealthResponse:
        """Health check endpoint."""
        notifier: Notifier = request.app.state.notifier
        return HealthResponse(
            status="OK",
            email_enabled=notifier.live,
            timestamp=datetime.now(timezone.utc),
        )

    @router.post(
        "/api/requirements",
        response_model=SubmitRequirementResponse,
        status_code=status.HTTP_200_OK,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def submit_requirement(
        body: SubmitRequirementRequest,
        intake: IntakeService = Depends(get_intake_service),
    ) -> SubmitRequirementResponse:
        """Store a buyer requirement and notify every matching farmer.

        This endpoint:
        1. Validates product, quantity and delivery date
        2. Stores the requirement
        3. Matches farmers by product
        4. Notifies all matches concurrently
        """
        try:
            result = await intake.submit(body.model_dump())
        except RequirementValidationError:
            # Re-raise to be caught by exception handlers
            raise
        except Exception as e:
            logger.error(f"Error processing requirement: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=INTERNAL_ERROR_MESSAGE,
            )

        return SubmitRequirementResponse(
            message=result.message,
            notified_farmers=[
                NotifiedFarmerDTO(name=s.name, email=s.contact_address) for s in result.notified
            ],
            requirement=RequirementDTO.from_record(result.requirement),
        )

    @router.get("/api/requirements", response_model=RequirementListResponse)
    async def list_requirements(
        intake: IntakeService = Depends(get_intake_service),
    ) -> RequirementListResponse:
        """All stored requirements in creation order."""
        requirements = intake.requirements()
        return RequirementListResponse(
            count=len(requirements),
            requirements=[RequirementDTO.from_record(r) for r in requirements],
        )

    @router.get("/api/farmers", response_model=FarmerListResponse)
    async def list_farmers(
        intake: IntakeService = Depends(get_intake_service),
    ) -> FarmerListResponse:
        """The supplier directory."""
        suppliers = intake.suppliers()
        return FarmerListResponse(
            count=len(suppliers),
            farmers=[FarmerDTO.from_record(s) for s in suppliers],
        )

    return router
