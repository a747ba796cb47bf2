"""
Dashboard Service Main Application

FastAPI application for campaign dashboard drafts and their admin review.
Port: 8260
"""

import os
import sys
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from core.config_manager import ConfigManager
from core.logger import setup_service_logger

from .dashboard_service import DashboardView
from .factory import DashboardServiceFactory
from .models import (
    ApprovalHistoryRecord,
    ApprovalLedgerEntry,
    ApprovalStatistics,
    DashboardEntityType,
    ErrorKind,
    HealthResponse,
    ReviewSubmissionRequest,
    ReviewSubmissionResponse,
    SaveDashboardChangesRequest,
    SubmitForReviewRequest,
    SubmitForReviewResponse,
)
from .protocols import (
    DashboardConflictError,
    DashboardNotFoundError,
    DashboardServiceError,
    DashboardValidationError,
)

# Service configuration
SERVICE_NAME = "dashboard_service"
SERVICE_VERSION = "1.0.0"

config_manager = ConfigManager(SERVICE_NAME)
service_config = config_manager.get_service_config()
SERVICE_PORT = service_config.service_port

logger = setup_service_logger(SERVICE_NAME, level=service_config.log_level)

ERROR_KIND_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INFRASTRUCTURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Global factory instance
factory: Optional[DashboardServiceFactory] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    global factory

    logger.info(f"Starting {SERVICE_NAME} on port {SERVICE_PORT}")
    config_manager.print_config_summary()

    factory = DashboardServiceFactory(config_manager)
    await factory.initialize()

    yield

    # Cleanup
    logger.info(f"Shutting down {SERVICE_NAME}")
    await factory.close()
    factory = None


# Create FastAPI application
app = FastAPI(
    title="Dashboard Service",
    description="Campaign dashboard drafts with submit-for-review and admin approval",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


# ====================
# Exception Handlers
# ====================


@app.exception_handler(DashboardValidationError)
async def validation_error_handler(request: Request, exc: DashboardValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc), "error_kind": exc.error_kind.value, "errors": exc.errors},
    )


@app.exception_handler(DashboardConflictError)
async def conflict_error_handler(request: Request, exc: DashboardConflictError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": str(exc), "error_kind": exc.error_kind.value},
    )


@app.exception_handler(DashboardNotFoundError)
async def not_found_handler(request: Request, exc: DashboardNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "error_kind": exc.error_kind.value},
    )


@app.exception_handler(DashboardServiceError)
async def service_error_handler(request: Request, exc: DashboardServiceError):
    logger.error(f"Dashboard service error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "error_kind": exc.error_kind.value},
    )


# ====================
# Dependencies
# ====================


def get_factory() -> DashboardServiceFactory:
    """Get initialized factory"""
    if not factory:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return factory


def get_user_id(request: Request) -> str:
    """Caller identity from the X-User-ID header"""
    user_id = request.headers.get("X-User-ID")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-ID header is required",
        )
    return user_id


def result_response(result, failed: bool, error_kind: Optional[ErrorKind]) -> JSONResponse:
    """Coordinator result with the status code matching its error kind"""
    status_code = status.HTTP_200_OK
    if failed:
        status_code = ERROR_KIND_STATUS.get(error_kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


# ====================
# Health Endpoints
# ====================


@app.get("/api/v1/dashboard/health")
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    dependencies = {}

    if factory:
        try:
            db_healthy = await factory.repository.health_check()
            dependencies["postgres"] = "healthy" if db_healthy else "unhealthy"
        except Exception:
            dependencies["postgres"] = "unhealthy"

        dependencies["event_bus"] = (
            "healthy" if factory.event_bus and factory.event_bus.is_connected else "unhealthy"
        )
        dependencies["notifications"] = "configured" if factory.notification_client else "disabled"

    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        port=SERVICE_PORT,
        version=SERVICE_VERSION,
        dependencies=dependencies,
    )


# ====================
# Dashboard Draft Endpoints
# ====================


@app.get(
    "/api/v1/dashboard/campaigns/{campaign_id}",
    response_model=DashboardView,
    tags=["Dashboard"],
)
async def get_dashboard(
    campaign_id: str,
    services: DashboardServiceFactory = Depends(get_factory),
):
    """Get all dashboard drafts of a campaign (by ID or slug)"""
    campaign = await services.content_service.resolve_campaign(campaign_id)
    return await services.content_service.get_dashboard(campaign.campaign_id)


@app.put(
    "/api/v1/dashboard/campaigns/{campaign_id}",
    response_model=DashboardView,
    tags=["Dashboard"],
)
async def save_dashboard_changes(
    campaign_id: str,
    request: SaveDashboardChangesRequest,
    services: DashboardServiceFactory = Depends(get_factory),
    user_id: str = Depends(get_user_id),
):
    """Save edits to any dashboard sections in one go"""
    campaign = await services.content_service.resolve_campaign(campaign_id)
    return await services.content_service.save_dashboard_changes(campaign.campaign_id, user_id, request)


# ====================
# Review Workflow Endpoints
# ====================


@app.post(
    "/api/v1/dashboard/campaigns/{campaign_id}/submit",
    response_model=SubmitForReviewResponse,
    tags=["Review"],
)
async def submit_for_review(
    campaign_id: str,
    request: SubmitForReviewRequest,
    services: DashboardServiceFactory = Depends(get_factory),
    user_id: str = Depends(get_user_id),
):
    """
    Submit dashboard sections for admin review.

    Fails with 409 while the campaign already has a submission pending.
    """
    campaign = await services.content_service.resolve_campaign(campaign_id)
    result = await services.submission_service.submit_for_review(
        campaign_id=campaign.campaign_id,
        submitted_by=user_id,
        items=request.items,
        submission_note=request.submission_note,
    )
    return result_response(result, result.error_kind is not None, result.error_kind)


@app.post(
    "/api/v1/dashboard/campaigns/{campaign_id}/review",
    response_model=ReviewSubmissionResponse,
    tags=["Review"],
)
async def review_submission(
    campaign_id: str,
    request: ReviewSubmissionRequest,
    services: DashboardServiceFactory = Depends(get_factory),
    admin_id: str = Depends(get_user_id),
):
    """Approve or reject pending dashboard sections; approval publishes them"""
    campaign = await services.content_service.resolve_campaign(campaign_id)
    result = await services.review_service.review_submission(
        campaign_id=campaign.campaign_id,
        admin_id=admin_id,
        entity_types=request.entity_types,
        action=request.action,
        comment=request.comment,
    )
    return result_response(result, not result.success, result.error_kind)


# ====================
# Admin Query Endpoints
# ====================


@app.get(
    "/api/v1/dashboard/approvals/pending",
    response_model=List[ApprovalLedgerEntry],
    tags=["Approvals"],
)
async def list_pending_approvals(
    submitted_by: Optional[str] = Query(None, description="Only submissions from this user"),
    services: DashboardServiceFactory = Depends(get_factory),
):
    """List campaigns waiting for review, oldest first"""
    return await services.content_service.list_pending_approvals(submitted_by)


@app.get(
    "/api/v1/dashboard/approvals/statistics",
    response_model=ApprovalStatistics,
    tags=["Approvals"],
)
async def get_approval_statistics(
    entity_type: Optional[DashboardEntityType] = Query(None, description="Count only submissions including this section"),
    services: DashboardServiceFactory = Depends(get_factory),
):
    return await services.content_service.get_statistics(entity_type)


@app.get(
    "/api/v1/dashboard/history/entities/{entity_id}",
    response_model=List[ApprovalHistoryRecord],
    tags=["History"],
)
async def get_entity_history(
    entity_id: str,
    services: DashboardServiceFactory = Depends(get_factory),
):
    return await services.content_service.get_history_for_entity(entity_id)


@app.get(
    "/api/v1/dashboard/history/users/{user_id}",
    response_model=List[ApprovalHistoryRecord],
    tags=["History"],
)
async def get_user_history(
    user_id: str,
    services: DashboardServiceFactory = Depends(get_factory),
):
    return await services.content_service.get_history_for_user(user_id)


# ====================
# Main Entry Point
# ====================


def main():
    """Run the service"""
    import uvicorn

    uvicorn.run(
        "microservices.dashboard_service.main:app",
        host=service_config.service_host,
        port=SERVICE_PORT,
        reload=service_config.debug,
        log_level=service_config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
