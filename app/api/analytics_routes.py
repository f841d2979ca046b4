"""AdPulse — Analytics API Routes.

Dashboard reads over the rows persisted by CSV uploads.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.analyzer.ad_metrics import (
    ad_set_performance,
    calculate_metrics,
    campaign_performance,
    fetch_ad_records,
    metrics_by_date,
    unique_ad_sets,
    unique_campaigns,
)
from app.analyzer.order_metrics import (
    calculate_order_metrics,
    fetch_order_records,
    orders_by_date,
    product_performance,
)
from app.analyzer.shipping_metrics import (
    calculate_shipping_metrics,
    courier_performance,
    fetch_shipment_records,
    shipments_by_date,
    shipped_products,
)
from app.api.deps import get_current_user_id, get_store
from app.store.record_store import RecordStore

router = APIRouter(prefix="/analytics", tags=["Analytics"])

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


# ── Shared Filters ──


class RowFilters:
    """Date window and upload scope accepted by every dashboard route."""

    def __init__(
        self,
        start_date: Optional[str] = Query(None, pattern=DATE_PATTERN, description="YYYY-MM-DD, inclusive"),
        end_date: Optional[str] = Query(None, pattern=DATE_PATTERN, description="YYYY-MM-DD, inclusive"),
        upload_id: Optional[str] = Query(None, description="Restrict to one upload"),
    ):
        self.start_date = start_date
        self.end_date = end_date
        self.upload_id = upload_id


class AdFilters(RowFilters):
    def __init__(
        self,
        start_date: Optional[str] = Query(None, pattern=DATE_PATTERN, description="YYYY-MM-DD, inclusive"),
        end_date: Optional[str] = Query(None, pattern=DATE_PATTERN, description="YYYY-MM-DD, inclusive"),
        upload_id: Optional[str] = Query(None, description="Restrict to one upload"),
        campaign_name: Optional[str] = None,
        ad_set_name: Optional[str] = None,
    ):
        super().__init__(start_date, end_date, upload_id)
        self.campaign_name = campaign_name
        self.ad_set_name = ad_set_name


def _ads(store: RecordStore, user_id: str, f: AdFilters):
    return fetch_ad_records(
        store, user_id, f.start_date, f.end_date, f.campaign_name, f.ad_set_name, f.upload_id
    )


def _orders(store: RecordStore, user_id: str, f: RowFilters):
    return fetch_order_records(store, user_id, f.start_date, f.end_date, f.upload_id)


# ── Ads ──


@router.get("/ads")
async def list_ad_rows(
    filters: AdFilters = Depends(),
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    """Raw normalized ad rows matching the filters."""
    records = _ads(store, user_id, filters)
    return {
        "status": "success",
        "count": len(records),
        "records": [r.to_document() for r in records],
    }


@router.get("/ads/summary")
async def ads_summary(
    filters: AdFilters = Depends(),
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    """Overall KPIs plus the campaign and ad set names in range."""
    records = _ads(store, user_id, filters)
    return {
        "status": "success",
        "metrics": calculate_metrics(records),
        "campaigns": unique_campaigns(records),
        "ad_sets": unique_ad_sets(records, filters.campaign_name),
    }


@router.get("/ads/by-date")
async def ads_by_date(
    filters: AdFilters = Depends(),
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    records = _ads(store, user_id, filters)
    return {"status": "success", "days": metrics_by_date(records)}


@router.get("/ads/campaigns")
async def ads_campaigns(
    filters: AdFilters = Depends(),
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    records = _ads(store, user_id, filters)
    return {"status": "success", "campaigns": campaign_performance(records)}


@router.get("/ads/ad-sets")
async def ads_ad_sets(
    filters: AdFilters = Depends(),
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    records = _ads(store, user_id, filters)
    return {"status": "success", "ad_sets": ad_set_performance(records, filters.campaign_name)}


# ── Orders ──


@router.get("/orders/summary")
async def orders_summary(
    filters: RowFilters = Depends(),
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    records = _orders(store, user_id, filters)
    return {"status": "success", "metrics": calculate_order_metrics(records)}


@router.get("/orders/products")
async def orders_products(
    filters: RowFilters = Depends(),
    limit: int = Query(20, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    """Top products by line revenue."""
    records = _orders(store, user_id, filters)
    return {"status": "success", "products": product_performance(records)[:limit]}


@router.get("/orders/by-date")
async def orders_daily(
    filters: RowFilters = Depends(),
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    records = _orders(store, user_id, filters)
    return {"status": "success", "days": orders_by_date(records)}


# ── Shipping ──


@router.get("/shipping/summary")
async def shipping_summary(
    filters: RowFilters = Depends(),
    courier_company: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    """Delivery, RTO, COD and customer metrics for shipments in range."""
    records = fetch_shipment_records(
        store, user_id, filters.start_date, filters.end_date, courier_company, filters.upload_id
    )
    return {"status": "success", "metrics": calculate_shipping_metrics(records)}


@router.get("/shipping/couriers")
async def shipping_couriers(
    filters: RowFilters = Depends(),
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    records = fetch_shipment_records(store, user_id, filters.start_date, filters.end_date, upload_id=filters.upload_id)
    return {"status": "success", "couriers": courier_performance(records)}


@router.get("/shipping/products")
async def shipping_products(
    filters: RowFilters = Depends(),
    courier_company: Optional[str] = None,
    limit: int = Query(10, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    records = fetch_shipment_records(
        store, user_id, filters.start_date, filters.end_date, courier_company, filters.upload_id
    )
    return {"status": "success", "products": shipped_products(records)[:limit]}


@router.get("/shipping/by-date")
async def shipping_daily(
    filters: RowFilters = Depends(),
    courier_company: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    records = fetch_shipment_records(
        store, user_id, filters.start_date, filters.end_date, courier_company, filters.upload_id
    )
    return {"status": "success", "days": shipments_by_date(records)}
