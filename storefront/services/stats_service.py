# storefront/services/stats_service.py
from decimal import Decimal

from sqlmodel import Session

from storefront.repositories.stats_repo import StatsRepository
from storefront.schemas.stats import AdminSummary, LatestSale, MonthlySales
from storefront.services.pricing import round2

LATEST_SALES_LIMIT = 6


class StatsService:
    """
    Orchestrates aggregated admin dashboard statistics.
    """

    def __init__(self, repo: StatsRepository):
        self.repo = repo

    def get_order_summary(self, session: Session) -> AdminSummary:
        # Monthly sales, bucketed by "MM/YY" in first-seen order
        monthly: dict[str, Decimal] = {}
        for created_at, total_price in self.repo.order_totals(session):
            label = created_at.strftime("%m/%y")
            monthly[label] = monthly.get(label, Decimal("0")) + Decimal(str(total_price))

        sales_data = [
            MonthlySales(month=month, total_sales=round2(total))
            for month, total in monthly.items()
        ]

        latest_sales = [
            LatestSale(
                id=o.id,
                created_at=o.created_at,
                user_name=name,
                total_price=o.total_price,
                is_paid=o.is_paid,
                is_delivered=o.is_delivered,
            )
            for o, name in self.repo.latest_orders(session, limit=LATEST_SALES_LIMIT)
        ]

        return AdminSummary(
            orders_count=self.repo.count_orders(session),
            products_count=self.repo.count_products(session),
            users_count=self.repo.count_users(session),
            total_sales=round2(self.repo.total_sales(session)),
            sales_data=sales_data,
            latest_sales=latest_sales,
        )
