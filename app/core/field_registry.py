"""AdPulse — CSV Schema Registry.

Defines the canonical fields of every supported CSV export, their types and
the alternate header names each platform uses for them. The validator,
mapping resolver, normalizer and template generator all read from here, so
supporting a new export format means registering a schema, nothing else.
"""

from enum import Enum
from typing import Dict, List, Optional, Type

from app.models.row_models import AdRecord, OrderRecord, RowRecord, ShipmentRecord


class FieldType(str, Enum):
    """How a raw CSV cell is coerced."""

    TEXT = "text"
    NUMBER = "number"
    INTEGER = "integer"
    CURRENCY = "currency"  # ₹2,325.00 → 2325.0
    PERCENT = "percent"  # 3.2% → 3.2
    DATE = "date"  # any common date → YYYY-MM-DD
    BOOLEAN = "boolean"


NUMERIC_TYPES = {FieldType.NUMBER, FieldType.INTEGER, FieldType.CURRENCY, FieldType.PERCENT}


class FieldDefinition:
    """Describes one canonical column of an export."""

    def __init__(
        self,
        header: str,
        name: str,
        field_type: FieldType,
        required: bool = False,
        synonyms: Optional[List[str]] = None,
    ):
        self.header = header
        self.name = name
        self.field_type = field_type
        self.required = required
        self.synonyms = synonyms or []

    @property
    def is_numeric(self) -> bool:
        return self.field_type in NUMERIC_TYPES

    def __repr__(self) -> str:
        return f"<Field {self.header!r} → {self.name} ({self.field_type.value})>"


class CsvSchema:
    """A supported CSV export format and the row table it lands in."""

    def __init__(
        self,
        key: str,
        label: str,
        row_model: Type[RowRecord],
        fields: List[FieldDefinition],
        date_field: str,
        template_rows: List[List[str]],
    ):
        self.key = key
        self.label = label
        self.row_model = row_model
        self.fields = fields
        self.date_field = date_field
        self.template_rows = template_rows

    @property
    def headers(self) -> List[str]:
        return [f.header for f in self.fields]

    @property
    def required_columns(self) -> List[str]:
        """Required canonical headers, in priority order."""
        return [f.header for f in self.fields if f.required]

    @property
    def synonyms(self) -> Dict[str, List[str]]:
        return {f.header: f.synonyms for f in self.fields if f.synonyms}

    def field(self, header: str) -> Optional[FieldDefinition]:
        for f in self.fields:
            if f.header == header:
                return f
        return None

    def __repr__(self) -> str:
        return f"<CsvSchema {self.key} ({len(self.fields)} fields)>"


# ─────────────────────────────────────────────
# META ADS — Ads Manager export
# ─────────────────────────────────────────────

# Required fields are listed in priority order: when one CSV header could
# satisfy two required columns, the earlier column claims it.
META_ADS_FIELDS: List[FieldDefinition] = [
    FieldDefinition("Date", "date", FieldType.DATE, True, ["Day", "Reporting starts", "Date start"]),
    FieldDefinition("Campaign name", "campaign_name", FieldType.TEXT, True, ["Campaign"]),
    FieldDefinition("Ad set name", "ad_set_name", FieldType.TEXT, True, ["Ad set", "Adset name", "Ad group"]),
    FieldDefinition(
        "Amount spent (INR)",
        "spend",
        FieldType.CURRENCY,
        True,
        ["Spend", "Ad Spend", "Cost", "Total Spend", "Amount spent"],
    ),
    FieldDefinition("Results", "results", FieldType.NUMBER, True, ["Conversions"]),
    FieldDefinition("Cost per result", "cost_per_result", FieldType.CURRENCY, True, ["CPA", "Cost per conversion"]),
    FieldDefinition(
        "Purchases conversion value",
        "purchase_value",
        FieldType.CURRENCY,
        True,
        ["Purchase value", "Conversion value", "Revenue"],
    ),
    FieldDefinition("Purchase ROAS", "purchase_roas", FieldType.NUMBER, True, ["ROAS", "Return on ad spend"]),
    FieldDefinition("CPC (cost per link click)", "cpc", FieldType.CURRENCY, True, ["CPC", "Cost per click"]),
    FieldDefinition("CTR (All)", "ctr", FieldType.PERCENT, True, ["CTR", "Click-through rate"]),
    FieldDefinition("Link clicks", "clicks", FieldType.INTEGER, True, ["Clicks", "Link Clicks (All)"]),
    FieldDefinition("Impressions", "impressions", FieldType.INTEGER, True, ["Impr", "Impr."]),
    FieldDefinition("Objective", "objective", FieldType.TEXT),
    FieldDefinition("Purchases", "purchases", FieldType.NUMBER, False, ["Website purchases"]),
    FieldDefinition("CPM (cost per 1,000 impressions)", "cpm", FieldType.CURRENCY, False, ["CPM"]),
    FieldDefinition("Reach", "reach", FieldType.INTEGER),
]

META_ADS = CsvSchema(
    key="meta_ads",
    label="Meta Ads",
    row_model=AdRecord,
    fields=META_ADS_FIELDS,
    date_field="date",
    template_rows=[
        ["2023-01-01", "Summer Sale", "Women 25-34", "1250.50", "14", "89.32",
         "4820.00", "3.85", "12.40", "3%", "101", "3400", "Sales", "14", "367.79", "2900"],
        ["2023-01-02", "Summer Sale", "Lookalike 1%", "980", "9", "108.89",
         "2150.75", "2.19", "9.80", "2.5%", "100", "4000", "Sales", "9", "245.00", "3650"],
    ],
)


# ─────────────────────────────────────────────
# SHOPIFY — Orders export (one line per line item)
# ─────────────────────────────────────────────

SHOPIFY_ORDER_FIELDS: List[FieldDefinition] = [
    FieldDefinition("Name", "name", FieldType.TEXT, True, ["Order", "Order name"]),
    FieldDefinition("Created at", "order_date", FieldType.DATE, True, ["Order date", "Processed at"]),
    FieldDefinition("Total", "total", FieldType.CURRENCY, True, ["Order total", "Total price"]),
    FieldDefinition("Financial Status", "financial_status", FieldType.TEXT, True, ["Payment status"]),
    FieldDefinition("Lineitem name", "lineitem_name", FieldType.TEXT, True, ["Product name", "Product"]),
    FieldDefinition("Lineitem quantity", "lineitem_quantity", FieldType.INTEGER, True, ["Quantity", "Qty"]),
    FieldDefinition("Lineitem price", "lineitem_price", FieldType.CURRENCY, True, ["Price", "Product price"]),
    FieldDefinition("Id", "order_id", FieldType.TEXT, False, ["Order ID"]),
    FieldDefinition("Email", "email", FieldType.TEXT),
    FieldDefinition("Fulfillment Status", "fulfillment_status", FieldType.TEXT),
    FieldDefinition("Currency", "currency", FieldType.TEXT),
    FieldDefinition("Subtotal", "subtotal", FieldType.CURRENCY),
    FieldDefinition("Shipping", "shipping", FieldType.CURRENCY),
    FieldDefinition("Taxes", "taxes", FieldType.CURRENCY),
    FieldDefinition("Discount Code", "discount_code", FieldType.TEXT),
    FieldDefinition("Discount Amount", "discount_amount", FieldType.CURRENCY),
    FieldDefinition("Refunded Amount", "refunded_amount", FieldType.CURRENCY),
    FieldDefinition("Payment Method", "payment_method", FieldType.TEXT),
    FieldDefinition("Shipping Province", "shipping_province", FieldType.TEXT),
    FieldDefinition("Shipping Province Name", "shipping_province_name", FieldType.TEXT),
    FieldDefinition("Accepts Marketing", "accepts_marketing", FieldType.BOOLEAN),
    FieldDefinition("Lineitem sku", "lineitem_sku", FieldType.TEXT),
    FieldDefinition("Vendor", "vendor", FieldType.TEXT),
    FieldDefinition("Notes", "notes", FieldType.TEXT),
    FieldDefinition("Source", "source", FieldType.TEXT),
]

SHOPIFY_ORDERS = CsvSchema(
    key="shopify_orders",
    label="Shopify Orders",
    row_model=OrderRecord,
    fields=SHOPIFY_ORDER_FIELDS,
    date_field="order_date",
    template_rows=[
        ["#1001", "2023-01-01", "1499.00", "paid", "Cotton Kurta - M", "1", "1299.00",
         "5012345678", "asha@example.com", "fulfilled", "INR", "1299.00", "100.00", "100.00",
         "", "0", "0", "Razorpay", "MH", "Maharashtra", "yes", "KURTA-M", "AdPulse Apparel", "", "web"],
        ["#1002", "2023-01-02", "2398.00", "paid", "Linen Shirt - L", "2", "1099.00",
         "5012345679", "ravi@example.com", "", "INR", "2198.00", "100.00", "200.00",
         "WELCOME10", "100", "0", "Cash on Delivery (COD)", "KA", "Karnataka", "no", "SHIRT-L",
         "AdPulse Apparel", "", "web"],
    ],
)


# ─────────────────────────────────────────────
# SHIPPING — courier aggregator export (one line per shipment)
# ─────────────────────────────────────────────

SHIPPING_ORDER_FIELDS: List[FieldDefinition] = [
    FieldDefinition("Order ID", "order_id", FieldType.TEXT, True, ["Order Id", "Order Number"]),
    FieldDefinition("Ship Date", "ship_date", FieldType.DATE, True, ["Shipped Date", "Shipment Date"]),
    FieldDefinition("Status", "status", FieldType.TEXT, True, ["Shipment Status", "Order Status"]),
    FieldDefinition("Courier Company", "courier_company", FieldType.TEXT, True, ["Courier", "Courier Name"]),
    FieldDefinition("Order Total", "order_total", FieldType.CURRENCY, True, ["Total", "Order Value"]),
    FieldDefinition("Tracking ID", "tracking_id", FieldType.TEXT, False, ["AWB", "AWB Code"]),
    FieldDefinition("Channel", "channel", FieldType.TEXT),
    FieldDefinition("Channel SKU", "channel_sku", FieldType.TEXT),
    FieldDefinition("Master SKU", "master_sku", FieldType.TEXT),
    FieldDefinition("Product Name", "product_name", FieldType.TEXT),
    FieldDefinition("Product Category", "product_category", FieldType.TEXT),
    FieldDefinition("Product Quantity", "product_quantity", FieldType.INTEGER),
    FieldDefinition("Customer Name", "customer_name", FieldType.TEXT),
    FieldDefinition("Customer Email", "customer_email", FieldType.TEXT),
    FieldDefinition("Customer Mobile", "customer_mobile", FieldType.TEXT),
    FieldDefinition("Address Line 1", "address_line1", FieldType.TEXT),
    FieldDefinition("Address Line 2", "address_line2", FieldType.TEXT),
    FieldDefinition("Address City", "address_city", FieldType.TEXT),
    FieldDefinition("Address State", "address_state", FieldType.TEXT),
    FieldDefinition("Address Pincode", "address_pincode", FieldType.TEXT),
    FieldDefinition("Payment Method", "payment_method", FieldType.TEXT),
    FieldDefinition("Product Price", "product_price", FieldType.CURRENCY),
    FieldDefinition("Discount Value", "discount_value", FieldType.CURRENCY),
    FieldDefinition("Weight (KG)", "weight", FieldType.NUMBER, False, ["Weight"]),
    FieldDefinition("Charged Weight", "charged_weight", FieldType.NUMBER),
    FieldDefinition("Pickup Location ID", "pickup_location_id", FieldType.TEXT),
    # The aggregator's export spells it "Payble"
    FieldDefinition("COD Payble Amount", "cod_payable_amount", FieldType.CURRENCY, False, ["COD Payable Amount"]),
    FieldDefinition("Remitted Amount", "remitted_amount", FieldType.CURRENCY),
    FieldDefinition("COD Charges", "cod_charges", FieldType.CURRENCY),
    FieldDefinition("Shipping Charges", "shipping_charges", FieldType.CURRENCY),
    FieldDefinition("Freight Total Amount", "freight_total_amount", FieldType.CURRENCY),
    FieldDefinition("Pickup Pincode", "pickup_pincode", FieldType.TEXT),
]

SHIPPING_ORDERS = CsvSchema(
    key="shipping_orders",
    label="Shipping",
    row_model=ShipmentRecord,
    fields=SHIPPING_ORDER_FIELDS,
    date_field="ship_date",
    template_rows=[
        ["SR-10021", "2023-01-01", "DELIVERED", "Delhivery", "1499.00", "1234567890123", "Shopify",
         "KURTA-M", "KURTA-M", "Cotton Kurta - M", "Apparel", "1", "Asha Rao", "asha@example.com",
         "9876543210", "12 MG Road", "", "Pune", "Maharashtra", "411001", "COD", "1499.00", "0",
         "0.5", "0.5", "PUNE-WH1", "1499.00", "1499.00", "35.00", "65.00", "100.00", "411014"],
        ["SR-10022", "2023-01-02", "RTO DELIVERED", "Xpressbees", "2198.00", "9876543210987", "Shopify",
         "SHIRT-L", "SHIRT-L", "Linen Shirt - L", "Apparel", "2", "Ravi Kumar", "ravi@example.com",
         "9123456780", "4 Residency Road", "Flat 2B", "Bengaluru", "Karnataka", "560025", "Prepaid",
         "1099.00", "100", "1.0", "1.5", "PUNE-WH1", "0", "0", "0", "90.00", "90.00", "411014"],
    ],
)


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

SCHEMAS: Dict[str, CsvSchema] = {s.key: s for s in (META_ADS, SHOPIFY_ORDERS, SHIPPING_ORDERS)}


def get_schema(key: str) -> CsvSchema | None:
    """Look up a schema by key."""
    return SCHEMAS.get(key)
