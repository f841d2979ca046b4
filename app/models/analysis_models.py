"""AdPulse — Aggregated Metric Schemas."""

from typing import Dict

from pydantic import BaseModel, Field


# ─────────────────────────────────────────────
# ADS
# ─────────────────────────────────────────────


class AdMetrics(BaseModel):
    """Totals and derived rates over a set of ad rows."""

    total_impressions: int = 0
    total_clicks: int = 0
    total_spend: float = 0.0
    total_sales: float = 0.0
    total_purchases: float = 0.0
    total_results: float = 0.0
    total_orders: float = 0.0  # results of rows with a sales objective
    total_visitors: int = 0  # estimated from clicks
    ctr: float = 0.0  # %
    cpc: float = 0.0
    cpm: float = 0.0
    roas: float = 0.0
    cost_per_result: float = 0.0
    cvr: float = 0.0  # purchases / clicks, %


class DateMetrics(BaseModel):
    date: str
    metrics: AdMetrics


class CampaignPerformance(BaseModel):
    campaign_name: str
    metrics: AdMetrics


class AdSetPerformance(BaseModel):
    ad_set_name: str
    campaign_name: str = ""
    metrics: AdMetrics


# ─────────────────────────────────────────────
# ORDERS
# ─────────────────────────────────────────────


class OrderMetrics(BaseModel):
    """Store-level order summary."""

    total_revenue: float = 0.0
    total_orders: int = 0
    average_order_value: float = 0.0
    total_discounts: float = 0.0
    total_refunds: float = 0.0
    fulfillment_rate: float = 0.0  # %
    payment_method_breakdown: Dict[str, int] = {}
    region_breakdown: Dict[str, int] = {}
    device_breakdown: Dict[str, int] = {}


class ProductPerformance(BaseModel):
    name: str
    quantity: int = 0
    revenue: float = 0.0
    orders: int = 0


class OrderDayVolume(BaseModel):
    date: str
    count: int = 0
    revenue: float = 0.0
    discounts: float = 0.0


# ─────────────────────────────────────────────
# SHIPPING
# ─────────────────────────────────────────────


class CodAnalysis(BaseModel):
    """Cash-on-delivery collection over COD shipments only."""

    cod_orders: int = 0
    total_cod_amount: float = 0.0
    total_remitted: float = 0.0
    collection_rate: float = 0.0  # remitted / payable, %
    avg_cod_charges: float = 0.0


class CourierPerformance(BaseModel):
    name: str
    total: int = 0
    delivered: int = 0
    rto: int = 0
    delivery_rate: float = 0.0  # %
    rto_rate: float = 0.0  # %
    avg_cost: float = 0.0  # freight per shipment


class ShippingMetrics(BaseModel):
    """Fulfilment summary over shipment rows."""

    total_orders: int = 0
    total_revenue: float = 0.0
    average_order_value: float = 0.0
    total_discounts: float = 0.0
    discount_percentage: float = 0.0
    delivery_rate: float = 0.0  # %
    rto_rate: float = 0.0  # %
    weight_discrepancy: float = 0.0  # mean charged minus declared KG
    status_breakdown: Dict[str, int] = {}
    payment_method_breakdown: Dict[str, int] = {}
    state_breakdown: Dict[str, int] = {}
    cod: CodAnalysis = Field(default_factory=CodAnalysis)
    unique_customers: int = 0
    repeat_customers: int = 0
    repeat_rate: float = 0.0  # %
