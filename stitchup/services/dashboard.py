from __future__ import annotations

from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from stitchup.core.timeutils import utcnow
from stitchup.models.order import Order
from stitchup.models.user import User
from stitchup.services.orders import serialize_order

DEFAULT_RATING = 4.5
RECENT_ORDERS_LIMIT = 5
# Statuses that never count towards earnings.
_NON_EARNING_STATUSES = {"rejected", "request"}


def _today_range(now: datetime) -> tuple[datetime, datetime]:
    start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    return start, start + timedelta(days=1)


def _order_amount(order: Order) -> Decimal:
    return Decimal(str(order.price or 0))


def tailor_dashboard(db: Session, tailor: User, *, now: datetime | None = None) -> dict[str, Any]:
    now = now or utcnow()
    start, end = _today_range(now)

    todays_orders = (
        db.query(Order)
        .filter(Order.tailor_id == tailor.id, Order.created_at >= start, Order.created_at < end)
        .all()
    )
    earnings = sum(
        (
            _order_amount(order)
            for order in todays_orders
            if (order.status or "").strip().lower() not in _NON_EARNING_STATUSES
        ),
        Decimal("0"),
    )
    recent = (
        db.query(Order)
        .filter(Order.tailor_id == tailor.id)
        .order_by(Order.created_at.desc())
        .limit(RECENT_ORDERS_LIMIT)
        .all()
    )
    return {
        "orders_today": len(todays_orders),
        "earnings_today": float(earnings),
        "rating": tailor.rating if tailor.rating is not None else DEFAULT_RATING,
        "reviews_count": tailor.reviews_count or 0,
        "recent_orders": [serialize_order(order) for order in recent],
    }
