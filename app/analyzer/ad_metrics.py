"""AdPulse — Ad Metrics Engine.

Aggregates normalized Meta Ads rows into dashboard metrics:
CTR, CPC, CPM, ROAS, Cost per Result and CVR, overall, per day, per
campaign and per ad set.
"""

from collections import defaultdict
from typing import Dict, List, Optional

from app.models.analysis_models import AdMetrics, AdSetPerformance, CampaignPerformance, DateMetrics
from app.models.row_models import AdRecord
from app.store.record_store import RecordStore
from app.core.logging import get_logger

logger = get_logger("analyzer.ads")


def fetch_ad_records(
    store: RecordStore,
    user_id: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    campaign_name: Optional[str] = None,
    ad_set_name: Optional[str] = None,
    upload_id: Optional[str] = None,
) -> List[AdRecord]:
    """Load a user's ad rows matching the optional filters."""
    conditions = [AdRecord.user_id == user_id]
    if start_date:
        conditions.append(AdRecord.date >= start_date)
    if end_date:
        conditions.append(AdRecord.date <= end_date)
    if campaign_name:
        conditions.append(AdRecord.campaign_name == campaign_name)
    if ad_set_name:
        conditions.append(AdRecord.ad_set_name == ad_set_name)
    if upload_id:
        conditions.append(AdRecord.upload_id == upload_id)

    records = store.query(AdRecord, *conditions, order_by=AdRecord.date)
    logger.info(f"Retrieved {len(records)} ad records", extra={"user_id": user_id})
    return records


def calculate_metrics(records: List[AdRecord]) -> AdMetrics:
    """Sum volumes and derive rates; any zero denominator yields 0."""
    impressions = sum(r.impressions for r in records)
    clicks = sum(r.clicks for r in records)
    spend = sum(r.spend for r in records)
    sales = sum(r.purchase_value for r in records)
    purchases = sum(r.purchases for r in records)
    results = sum(r.results for r in records)
    # Only results of sales-objective rows are orders
    orders = sum(r.results for r in records if "sales" in (r.objective or "").lower())

    return AdMetrics(
        total_impressions=impressions,
        total_clicks=clicks,
        total_spend=round(spend, 2),
        total_sales=round(sales, 2),
        total_purchases=purchases,
        total_results=results,
        total_orders=orders,
        total_visitors=clicks,
        ctr=round((clicks / impressions * 100) if impressions > 0 else 0, 4),
        cpc=round((spend / clicks) if clicks > 0 else 0, 4),
        cpm=round((spend / impressions * 1000) if impressions > 0 else 0, 4),
        roas=round((sales / spend) if spend > 0 else 0, 4),
        cost_per_result=round((spend / results) if results > 0 else 0, 4),
        cvr=round((purchases / clicks * 100) if clicks > 0 else 0, 4),
    )


def _group(records: List[AdRecord], key: str) -> Dict[str, List[AdRecord]]:
    groups: Dict[str, List[AdRecord]] = defaultdict(list)
    for r in records:
        groups[getattr(r, key)].append(r)
    return groups


def metrics_by_date(records: List[AdRecord]) -> List[DateMetrics]:
    """Per-day metrics, oldest first."""
    groups = _group(records, "date")
    return [DateMetrics(date=d, metrics=calculate_metrics(groups[d])) for d in sorted(groups)]


def campaign_performance(records: List[AdRecord]) -> List[CampaignPerformance]:
    """Per-campaign metrics, highest spend first."""
    rows = [
        CampaignPerformance(campaign_name=name, metrics=calculate_metrics(items))
        for name, items in _group(records, "campaign_name").items()
    ]
    return sorted(rows, key=lambda c: c.metrics.total_spend, reverse=True)


def ad_set_performance(records: List[AdRecord], campaign_name: Optional[str] = None) -> List[AdSetPerformance]:
    """Per-ad-set metrics, optionally within one campaign, highest spend first."""
    if campaign_name:
        records = [r for r in records if r.campaign_name == campaign_name]
    rows = [
        AdSetPerformance(
            ad_set_name=name,
            campaign_name=items[0].campaign_name if items else "",
            metrics=calculate_metrics(items),
        )
        for name, items in _group(records, "ad_set_name").items()
    ]
    return sorted(rows, key=lambda a: a.metrics.total_spend, reverse=True)


def unique_campaigns(records: List[AdRecord]) -> List[str]:
    return list(dict.fromkeys(r.campaign_name for r in records))


def unique_ad_sets(records: List[AdRecord], campaign_name: Optional[str] = None) -> List[str]:
    return list(
        dict.fromkeys(r.ad_set_name for r in records if not campaign_name or r.campaign_name == campaign_name)
    )
