from datetime import datetime, timezone
from decimal import Decimal

from storefront.models.order import Order
from storefront.repositories.stats_repo import StatsRepository
from storefront.services.stats_service import StatsService


def _order(user, total, created_at, is_paid=False):
    return Order(
        user_id=user.id,
        shipping_address={"full_name": "Jane Doe"},
        payment_method="PayPal",
        items_price=Decimal(total),
        shipping_price=Decimal("0"),
        tax_price=Decimal("0"),
        total_price=Decimal(total),
        is_paid=is_paid,
        created_at=created_at,
    )


def test_order_summary(session, make_user, make_product):
    buyer = make_user(name="jane")
    make_product()
    session.add_all(
        [
            _order(buyer, "100.00", datetime(2024, 1, 5, tzinfo=timezone.utc)),
            _order(buyer, "50.50", datetime(2024, 1, 20, tzinfo=timezone.utc)),
            _order(buyer, "20.00", datetime(2024, 2, 1, tzinfo=timezone.utc), is_paid=True),
        ]
    )
    session.commit()

    summary = StatsService(StatsRepository()).get_order_summary(session)

    assert summary.orders_count == 3
    assert summary.products_count == 1
    assert summary.users_count == 1
    assert summary.total_sales == Decimal("170.50")
    assert [(m.month, m.total_sales) for m in summary.sales_data] == [
        ("01/24", Decimal("150.50")),
        ("02/24", Decimal("20.00")),
    ]
    assert summary.latest_sales[0].total_price == Decimal("20.00")
    assert summary.latest_sales[0].user_name == "jane"
    assert summary.latest_sales[0].is_paid is True


def test_empty_summary(session):
    summary = StatsService(StatsRepository()).get_order_summary(session)

    assert summary.orders_count == 0
    assert summary.total_sales == Decimal("0.00")
    assert summary.sales_data == []
    assert summary.latest_sales == []
