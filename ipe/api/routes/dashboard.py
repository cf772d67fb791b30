"""Dashboard API routes."""

from fastapi import APIRouter, Depends

from ipe.api.deps import get_caller, get_dashboard_service
from ipe.schemas.dashboard import DashboardStatsResponse
from ipe.services.auth_service import CallerContext
from ipe.services.dashboard_service import DashboardService

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStatsResponse)
async def dashboard_stats(
    caller: CallerContext = Depends(get_caller),
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> DashboardStatsResponse:
    return DashboardStatsResponse.model_validate(dashboard.stats())
