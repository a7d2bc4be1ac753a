# storefront/routers/admin_stats.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.core.auth import require_admin
from storefront.database import get_session
from storefront.repositories.stats_repo import StatsRepository
from storefront.schemas.stats import AdminSummary
from storefront.services.stats_service import StatsService

router = APIRouter(prefix="/admin", tags=["Admin Stats"])

repo = StatsRepository()
service = StatsService(repo)


@router.get(
    "/summary",
    response_model=AdminSummary,
    dependencies=[Depends(require_admin)],
)
def get_order_summary(session: Session = Depends(get_session)):
    """
    Aggregated statistics for the admin dashboard.

      - counts of orders, products and users
      - total sales and monthly sales ("MM/YY")
      - the latest sales with buyer names

    Only accessible to users with role='admin'.
    """
    return service.get_order_summary(session)
