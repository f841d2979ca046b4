"""AdPulse — Normalized Row Models.

Every ingested CSV row lands in one of these fixed-shape tables. Columns the
schema does not know about are kept verbatim in ``extra_json`` instead of
widening the record.

Rows are immutable once written and are only removed together with their
upload.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict

from sqlmodel import SQLModel, Field


class RowRecord(SQLModel):
    """Columns shared by every row table."""

    id: str = Field(primary_key=True)
    upload_id: str = Field(index=True, description="Owning UploadRecord id")
    user_id: str = Field(index=True)
    row_number: int = Field(default=0, description="Position in the source CSV")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    extra_json: str = Field(default="{}", description="Non-canonical CSV columns")

    @property
    def extra(self) -> Dict[str, str]:
        return json.loads(self.extra_json or "{}")

    def to_document(self) -> Dict[str, Any]:
        """Plain dict used for JSON export."""
        doc = self.model_dump(exclude={"extra_json"})
        doc["created_at"] = self.created_at.isoformat()
        doc["extra"] = self.extra
        return doc


class AdRecord(RowRecord, table=True):
    """One Meta Ads performance row (campaign × ad set × day)."""

    __tablename__ = "ad_records"

    date: str = Field(default="", index=True, description="YYYY-MM-DD")
    campaign_name: str = Field(default="", index=True)
    ad_set_name: str = Field(default="", index=True)
    objective: str = Field(default="")
    impressions: int = Field(default=0)
    clicks: int = Field(default=0)
    ctr: float = Field(default=0.0, description="Percent, as exported")
    cpc: float = Field(default=0.0)
    spend: float = Field(default=0.0)
    results: float = Field(default=0.0)
    cost_per_result: float = Field(default=0.0)
    purchases: float = Field(default=0.0)
    purchase_value: float = Field(default=0.0)
    purchase_roas: float = Field(default=0.0)
    cpm: float = Field(default=0.0)
    reach: int = Field(default=0)


class OrderRecord(RowRecord, table=True):
    """One Shopify order export line (one line item of an order)."""

    __tablename__ = "order_records"

    order_date: str = Field(default="", index=True, description="YYYY-MM-DD")
    name: str = Field(default="", index=True, description="Order name, e.g. #1001")
    order_id: str = Field(default="")
    email: str = Field(default="")
    financial_status: str = Field(default="")
    fulfillment_status: str = Field(default="")
    currency: str = Field(default="")
    subtotal: float = Field(default=0.0)
    shipping: float = Field(default=0.0)
    taxes: float = Field(default=0.0)
    total: float = Field(default=0.0)
    discount_code: str = Field(default="")
    discount_amount: float = Field(default=0.0)
    refunded_amount: float = Field(default=0.0)
    payment_method: str = Field(default="")
    shipping_province: str = Field(default="")
    shipping_province_name: str = Field(default="")
    accepts_marketing: bool = Field(default=False)
    lineitem_name: str = Field(default="", index=True)
    lineitem_quantity: int = Field(default=0)
    lineitem_price: float = Field(default=0.0)
    lineitem_sku: str = Field(default="")
    vendor: str = Field(default="")
    notes: str = Field(default="")
    source: str = Field(default="")


class ShipmentRecord(RowRecord, table=True):
    """One courier aggregator shipment line."""

    __tablename__ = "shipment_records"

    ship_date: str = Field(default="", index=True, description="YYYY-MM-DD")
    order_id: str = Field(default="", index=True)
    status: str = Field(default="", description="e.g. DELIVERED, RTO, IN TRANSIT")
    courier_company: str = Field(default="", index=True)
    order_total: float = Field(default=0.0)
    tracking_id: str = Field(default="")
    channel: str = Field(default="")
    channel_sku: str = Field(default="")
    master_sku: str = Field(default="")
    product_name: str = Field(default="")
    product_category: str = Field(default="")
    product_quantity: int = Field(default=0)
    customer_name: str = Field(default="")
    customer_email: str = Field(default="")
    customer_mobile: str = Field(default="")
    address_line1: str = Field(default="")
    address_line2: str = Field(default="")
    address_city: str = Field(default="")
    address_state: str = Field(default="")
    address_pincode: str = Field(default="")
    payment_method: str = Field(default="")
    product_price: float = Field(default=0.0)
    discount_value: float = Field(default=0.0)
    weight: float = Field(default=0.0, description="KG")
    charged_weight: float = Field(default=0.0, description="KG")
    pickup_location_id: str = Field(default="")
    cod_payable_amount: float = Field(default=0.0)
    remitted_amount: float = Field(default=0.0)
    cod_charges: float = Field(default=0.0)
    shipping_charges: float = Field(default=0.0)
    freight_total_amount: float = Field(default=0.0)
    pickup_pincode: str = Field(default="")
