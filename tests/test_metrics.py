"""Dashboard aggregations over ad, order and shipment rows."""

from app.analyzer.ad_metrics import (
    ad_set_performance,
    calculate_metrics,
    campaign_performance,
    fetch_ad_records,
    metrics_by_date,
    unique_campaigns,
)
from app.analyzer.order_metrics import calculate_order_metrics, orders_by_date, product_performance
from app.analyzer.shipping_metrics import (
    calculate_shipping_metrics,
    courier_performance,
    shipment_outcome,
    shipments_by_date,
)
from app.models.row_models import AdRecord, OrderRecord, ShipmentRecord
from app.ingest.pipeline import ingest
from conftest import meta_row, run


def _ad(**kw):
    base = dict(id="r", upload_id="u", user_id="u1", date="2023-01-01", campaign_name="A", ad_set_name="S1")
    base.update(kw)
    return AdRecord(**base)


def test_calculate_metrics():
    records = [
        _ad(impressions=1000, clicks=10, spend=100.0, purchase_value=400.0, purchases=2, results=2, objective="Sales"),
        _ad(impressions=1000, clicks=30, spend=100.0, purchase_value=0.0, purchases=0, results=5, objective="Traffic"),
    ]
    m = calculate_metrics(records)
    assert m.total_impressions == 2000
    assert m.total_clicks == 40
    assert m.ctr == 2.0
    assert m.cpc == 5.0
    assert m.cpm == 100.0
    assert m.roas == 2.0
    assert m.total_orders == 2
    assert m.cvr == 5.0


def test_zero_denominators_yield_zero():
    m = calculate_metrics([])
    assert (m.ctr, m.cpc, m.cpm, m.roas, m.cost_per_result, m.cvr) == (0, 0, 0, 0, 0, 0)


def test_groupings():
    records = [
        _ad(date="2023-01-02", campaign_name="A", ad_set_name="S1", spend=10.0),
        _ad(date="2023-01-01", campaign_name="B", ad_set_name="S2", spend=50.0),
        _ad(date="2023-01-01", campaign_name="A", ad_set_name="S3", spend=5.0),
    ]
    assert [d.date for d in metrics_by_date(records)] == ["2023-01-01", "2023-01-02"]
    assert [c.campaign_name for c in campaign_performance(records)] == ["B", "A"]
    assert [a.ad_set_name for a in ad_set_performance(records, "A")] == ["S1", "S3"]
    assert unique_campaigns(records) == ["A", "B"]


def test_fetch_filters_by_user_and_dates(store):
    rows = [meta_row(day="2023-01-01"), meta_row(day="2023-01-05"), meta_row(day="2023-01-09")]
    run(ingest(store, rows, user_id="u1", file_name="a.csv"))
    run(ingest(store, rows, user_id="u2", file_name="b.csv"))

    records = fetch_ad_records(store, "u1", start_date="2023-01-02", end_date="2023-01-09")
    assert [r.date for r in records] == ["2023-01-05", "2023-01-09"]


def _line(**kw):
    base = dict(id=kw.get("name", "x") + kw.get("lineitem_name", ""), upload_id="u", user_id="u1",
                order_date="2023-01-01", lineitem_quantity=1)
    base.update(kw)
    return OrderRecord(**base)


def test_order_metrics_count_each_order_once():
    records = [
        _line(name="#1", lineitem_name="Kurta", lineitem_price=500.0, lineitem_quantity=2, total=1100.0,
              fulfillment_status="fulfilled", payment_method="Razorpay", shipping_province_name="Maharashtra"),
        _line(name="#1", lineitem_name="Scarf", lineitem_price=100.0),
        _line(name="#2", order_date="2023-01-02", lineitem_name="Kurta", lineitem_price=500.0, total=500.0,
              discount_amount=50.0, payment_method="Cash on Delivery (COD)",
              notes="user-agent: Mozilla/5.0 (Linux; Android 13)"),
    ]
    m = calculate_order_metrics(records)
    assert m.total_orders == 2
    assert m.total_revenue == 1600.0
    assert m.average_order_value == 800.0
    assert m.fulfillment_rate == 50.0
    assert m.device_breakdown == {"Unknown": 1, "Android": 1}
    assert m.payment_method_breakdown["Razorpay"] == 1

    products = product_performance(records)
    assert products[0].name == "Kurta"
    assert products[0].quantity == 3
    assert products[0].revenue == 1500.0

    days = orders_by_date(records)
    assert [(d.date, d.count) for d in days] == [("2023-01-01", 1), ("2023-01-02", 1)]


def test_order_metrics_empty():
    assert calculate_order_metrics([]).total_orders == 0


def _shipment(**kw):
    base = dict(id=kw.get("order_id", "s"), upload_id="u", user_id="u1", ship_date="2023-01-01")
    base.update(kw)
    return ShipmentRecord(**base)


def test_rto_delivered_counts_as_rto():
    assert shipment_outcome("RTO DELIVERED") == "rto"
    assert shipment_outcome("Delivered") == "delivered"
    assert shipment_outcome("IN TRANSIT") == "open"


def test_shipping_metrics_and_couriers():
    records = [
        _shipment(order_id="1", status="DELIVERED", courier_company="Delhivery", order_total=1000.0,
                  payment_method="COD", cod_payable_amount=1000.0, remitted_amount=1000.0, cod_charges=30.0,
                  freight_total_amount=100.0, weight=0.5, charged_weight=1.0, customer_email="a@x.com"),
        _shipment(order_id="2", status="RTO DELIVERED", courier_company="Delhivery", order_total=500.0,
                  payment_method="cod", cod_payable_amount=500.0, cod_charges=20.0,
                  freight_total_amount=60.0, customer_email="a@x.com"),
        _shipment(order_id="3", ship_date="2023-01-02", status="IN TRANSIT", courier_company="Xpressbees",
                  order_total=500.0, discount_value=50.0, payment_method="Prepaid", freight_total_amount=80.0,
                  customer_email="b@x.com"),
    ]
    m = calculate_shipping_metrics(records)
    assert m.total_orders == 3
    assert m.total_revenue == 2000.0
    assert m.delivery_rate == 33.33
    assert m.rto_rate == 33.33
    assert m.cod.cod_orders == 2
    assert m.cod.collection_rate == 66.67
    assert m.cod.avg_cod_charges == 25.0
    assert m.unique_customers == 2
    assert m.repeat_customers == 1
    assert m.weight_discrepancy == round(0.5 / 3, 3)

    couriers = courier_performance(records)
    assert couriers[0].name == "Delhivery"
    assert (couriers[0].delivered, couriers[0].rto, couriers[0].avg_cost) == (1, 1, 80.0)
    assert couriers[1].delivery_rate == 0.0

    assert [(d.date, d.count) for d in shipments_by_date(records)] == [("2023-01-01", 2), ("2023-01-02", 1)]


def test_shipping_metrics_empty():
    assert calculate_shipping_metrics([]).total_orders == 0
