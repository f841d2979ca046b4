"""AdPulse — Shipping Metrics Engine.

Fulfilment metrics from courier aggregator shipment rows: delivery and RTO
rates per courier, COD collection, weight discrepancy and repeat customers.
"""

from collections import Counter
from typing import Dict, List, Optional

from app.models.analysis_models import (
    CodAnalysis,
    CourierPerformance,
    OrderDayVolume,
    ProductPerformance,
    ShippingMetrics,
)
from app.models.row_models import ShipmentRecord
from app.store.record_store import RecordStore
from app.core.logging import get_logger

logger = get_logger("analyzer.shipping")


def fetch_shipment_records(
    store: RecordStore,
    user_id: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    courier_company: Optional[str] = None,
    upload_id: Optional[str] = None,
) -> List[ShipmentRecord]:
    conditions = [ShipmentRecord.user_id == user_id]
    if start_date:
        conditions.append(ShipmentRecord.ship_date >= start_date)
    if end_date:
        conditions.append(ShipmentRecord.ship_date <= end_date)
    if courier_company:
        conditions.append(ShipmentRecord.courier_company == courier_company)
    if upload_id:
        conditions.append(ShipmentRecord.upload_id == upload_id)
    records = store.query(ShipmentRecord, *conditions, order_by=ShipmentRecord.ship_date)
    logger.info(f"Retrieved {len(records)} shipments", extra={"user_id": user_id})
    return records


def shipment_outcome(status: str) -> str:
    """Classify a courier status as "rto", "delivered" or "open"."""
    text = (status or "").upper()
    # "RTO DELIVERED" is a return reaching the warehouse, not a delivery
    if "RTO" in text:
        return "rto"
    if "DELIVER" in text:
        return "delivered"
    return "open"


def _is_cod(record: ShipmentRecord) -> bool:
    return "COD" in (record.payment_method or "").upper()


def _pct(part: float, whole: float) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def calculate_shipping_metrics(records: List[ShipmentRecord]) -> ShippingMetrics:
    if not records:
        return ShippingMetrics()

    total = len(records)
    revenue = sum(r.order_total for r in records)
    discounts = sum(r.discount_value for r in records)
    outcomes = Counter(shipment_outcome(r.status) for r in records)

    cod_rows = [r for r in records if _is_cod(r)]
    payable = sum(r.cod_payable_amount for r in cod_rows)
    remitted = sum(r.remitted_amount for r in cod_rows)

    customers = Counter(r.customer_email for r in records if r.customer_email)
    repeat = sum(1 for count in customers.values() if count > 1)

    return ShippingMetrics(
        total_orders=total,
        total_revenue=round(revenue, 2),
        average_order_value=round(revenue / total, 2),
        total_discounts=round(discounts, 2),
        discount_percentage=_pct(discounts, revenue),
        delivery_rate=_pct(outcomes["delivered"], total),
        rto_rate=_pct(outcomes["rto"], total),
        weight_discrepancy=round(sum(r.charged_weight - r.weight for r in records) / total, 3),
        status_breakdown=dict(Counter(r.status or "Unknown" for r in records)),
        payment_method_breakdown=dict(Counter(r.payment_method or "Unknown" for r in records)),
        state_breakdown=dict(Counter(r.address_state or "Unknown" for r in records)),
        cod=CodAnalysis(
            cod_orders=len(cod_rows),
            total_cod_amount=round(payable, 2),
            total_remitted=round(remitted, 2),
            collection_rate=_pct(remitted, payable),
            avg_cod_charges=round(sum(r.cod_charges for r in cod_rows) / len(cod_rows), 2) if cod_rows else 0.0,
        ),
        unique_customers=len(customers),
        repeat_customers=repeat,
        repeat_rate=_pct(repeat, len(customers)),
    )


def courier_performance(records: List[ShipmentRecord]) -> List[CourierPerformance]:
    """Delivery and RTO rates per courier, busiest courier first."""
    couriers: Dict[str, CourierPerformance] = {}
    freight: Dict[str, float] = {}
    for r in records:
        name = r.courier_company or "Unknown"
        c = couriers.setdefault(name, CourierPerformance(name=name))
        c.total += 1
        freight[name] = freight.get(name, 0.0) + r.freight_total_amount
        outcome = shipment_outcome(r.status)
        if outcome == "delivered":
            c.delivered += 1
        elif outcome == "rto":
            c.rto += 1

    for name, c in couriers.items():
        c.delivery_rate = _pct(c.delivered, c.total)
        c.rto_rate = _pct(c.rto, c.total)
        c.avg_cost = round(freight[name] / c.total, 2)
    return sorted(couriers.values(), key=lambda c: c.total, reverse=True)


def shipped_products(records: List[ShipmentRecord]) -> List[ProductPerformance]:
    """Quantity and order value per product, highest value first."""
    products: Dict[str, ProductPerformance] = {}
    for r in records:
        p = products.setdefault(r.product_name, ProductPerformance(name=r.product_name))
        p.quantity += r.product_quantity
        p.revenue = round(p.revenue + r.order_total, 2)
        p.orders += 1
    return sorted(products.values(), key=lambda p: p.revenue, reverse=True)


def shipments_by_date(records: List[ShipmentRecord]) -> List[OrderDayVolume]:
    days: Dict[str, OrderDayVolume] = {}
    for r in records:
        day = days.setdefault(r.ship_date, OrderDayVolume(date=r.ship_date))
        day.count += 1
        day.revenue = round(day.revenue + r.order_total, 2)
        day.discounts = round(day.discounts + r.discount_value, 2)
    return [days[d] for d in sorted(days)]
