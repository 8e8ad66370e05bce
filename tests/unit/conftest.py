"""Unit test configuration - shared market fixtures, no network"""

import pytest

from polysearch.catalog import CatalogStore, Document


@pytest.fixture
def market_documents():
    """Two-market catalog used by the end-to-end resolver tests"""
    return [
        Document(id="bitcoin-100k-2026", title="Bitcoin to hit $100k in 2026?", volume=500),
        Document(id="fed-rate-cut-march", title="Next Fed rate cut in March?", volume=100),
    ]


@pytest.fixture
def store(market_documents):
    """Catalog store with market_documents published as version 1"""
    return CatalogStore(market_documents)


@pytest.fixture
def gamma_event():
    """Raw Gamma event bundling three sub-markets (one closed)"""
    return {
        "id": "9001",
        "slug": "fed-decision-in-march",
        "title": "Fed decision in March?",
        "icon": "https://example.com/fed.png",
        "volume": "1234567.8",
        "endDate": "2026-03-18T00:00:00Z",
        "active": True,
        "closed": False,
        "markets": [
            {
                "question": "Fed cuts 25 bps in March?",
                "conditionId": "0xaaa",
                "outcomes": "[\"Yes\", \"No\"]",
                "outcomePrices": "[\"0.30\", \"0.70\"]",
                "clobTokenIds": "[\"111\", \"112\"]",
                "active": True,
                "closed": False,
            },
            {
                "question": "No change in Fed rates in March?",
                "conditionId": "0xbbb",
                "outcomes": "[\"Yes\", \"No\"]",
                "outcomePrices": "[\"0.85\", \"0.15\"]",
                "clobTokenIds": "[\"221\", \"222\"]",
                "active": True,
                "closed": False,
            },
            {
                "question": "Fed hikes in March?",
                "conditionId": "0xccc",
                "outcomes": ["Yes", "No"],
                "outcomePrices": ["0.99", "0.01"],
                "active": True,
                "closed": True,
            },
        ],
    }
