"""Shared fixtures: an isolated in-memory database per test."""

import asyncio

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

import app.models.row_models  # noqa: F401
import app.models.upload_models  # noqa: F401
from app.config import settings
from app.store.record_store import RecordStore


def run(coro):
    """Run an async coroutine in a sync test."""
    return asyncio.run(coro)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return RecordStore(engine)


@pytest.fixture(autouse=True)
def no_retry_delay(monkeypatch):
    monkeypatch.setattr(settings, "batch_retry_base_delay", 0.0)


META_HEADER = (
    "Date,Campaign name,Ad set name,Amount spent (INR),Results,Cost per result,"
    "Purchases conversion value,Purchase ROAS,CPC (cost per link click),CTR (All),"
    "Link clicks,Impressions,Objective,Purchases"
)


def meta_row(day="2023-01-01", campaign="Summer Sale", ad_set="Women 25-34", spend="100",
             results="2", purchase_value="400", clicks="10", impressions="1000",
             objective="Sales", purchases="2"):
    return {
        "Date": day,
        "Campaign name": campaign,
        "Ad set name": ad_set,
        "Amount spent (INR)": spend,
        "Results": results,
        "Cost per result": "50",
        "Purchases conversion value": purchase_value,
        "Purchase ROAS": "4",
        "CPC (cost per link click)": "10",
        "CTR (All)": "1%",
        "Link clicks": clicks,
        "Impressions": impressions,
        "Objective": objective,
        "Purchases": purchases,
    }
