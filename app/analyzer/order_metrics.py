"""AdPulse — Order Metrics Engine.

Store-level metrics from Shopify order export rows. The export has one row
per line item; order-level amounts (total, discount, refund) are only filled
on an order's first line, so summing them across rows counts each order once.
"""

from collections import Counter, defaultdict
from typing import Dict, List, Optional

from app.models.analysis_models import OrderDayVolume, OrderMetrics, ProductPerformance
from app.models.row_models import OrderRecord
from app.store.record_store import RecordStore
from app.core.logging import get_logger

logger = get_logger("analyzer.orders")


def fetch_order_records(
    store: RecordStore,
    user_id: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    upload_id: Optional[str] = None,
) -> List[OrderRecord]:
    conditions = [OrderRecord.user_id == user_id]
    if start_date:
        conditions.append(OrderRecord.order_date >= start_date)
    if end_date:
        conditions.append(OrderRecord.order_date <= end_date)
    if upload_id:
        conditions.append(OrderRecord.upload_id == upload_id)
    records = store.query(OrderRecord, *conditions, order_by=OrderRecord.order_date)
    logger.info(f"Retrieved {len(records)} order lines", extra={"user_id": user_id})
    return records


def _device(notes: str) -> str:
    """Classify the device from a user-agent left in the order notes."""
    text = (notes or "").lower()
    if "user-agent:" not in text:
        return "Unknown"
    if "android" in text:
        return "Android"
    if "iphone" in text or "ipad" in text:
        return "iOS"
    if "windows" in text:
        return "Windows"
    if "macintosh" in text:
        return "Mac"
    return "Other"


def _first_lines(records: List[OrderRecord]) -> Dict[str, OrderRecord]:
    """First export line of every order, keyed by order name."""
    firsts: Dict[str, OrderRecord] = {}
    for r in records:
        firsts.setdefault(r.name or r.id, r)
    return firsts


def calculate_order_metrics(records: List[OrderRecord]) -> OrderMetrics:
    if not records:
        return OrderMetrics()

    orders = _first_lines(records)
    total_orders = len(orders)
    revenue = sum(r.total for r in records)
    discounts = sum(r.discount_amount for r in records)
    refunds = sum(r.refunded_amount for r in records)
    fulfilled = sum(1 for o in orders.values() if o.fulfillment_status.lower() == "fulfilled")

    payments = Counter(o.payment_method or "Other" for o in orders.values())
    regions = Counter(o.shipping_province_name or o.shipping_province or "Unknown" for o in orders.values())
    devices = Counter(_device(o.notes) for o in orders.values())

    return OrderMetrics(
        total_revenue=round(revenue, 2),
        total_orders=total_orders,
        average_order_value=round(revenue / total_orders, 2) if total_orders else 0.0,
        total_discounts=round(discounts, 2),
        total_refunds=round(refunds, 2),
        fulfillment_rate=round(fulfilled / total_orders * 100, 2) if total_orders else 0.0,
        payment_method_breakdown=dict(payments),
        region_breakdown=dict(regions),
        device_breakdown=dict(devices),
    )


def product_performance(records: List[OrderRecord]) -> List[ProductPerformance]:
    """Quantity and line revenue per product, highest revenue first."""
    products: Dict[str, ProductPerformance] = {}
    for r in records:
        p = products.setdefault(r.lineitem_name, ProductPerformance(name=r.lineitem_name))
        p.quantity += r.lineitem_quantity
        p.revenue = round(p.revenue + r.lineitem_price * r.lineitem_quantity, 2)
        p.orders += 1
    return sorted(products.values(), key=lambda p: p.revenue, reverse=True)


def orders_by_date(records: List[OrderRecord]) -> List[OrderDayVolume]:
    """Daily order count, revenue and discounts, oldest first."""
    days: Dict[str, OrderDayVolume] = {}
    seen: Dict[str, set] = defaultdict(set)
    for r in records:
        day = days.setdefault(r.order_date, OrderDayVolume(date=r.order_date))
        key = r.name or r.id
        if key not in seen[r.order_date]:
            seen[r.order_date].add(key)
            day.count += 1
        day.revenue = round(day.revenue + r.total, 2)
        day.discounts = round(day.discounts + r.discount_amount, 2)
    return [days[d] for d in sorted(days)]
