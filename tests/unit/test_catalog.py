"""
Unit tests for catalog models, Gamma record normalization and the catalog store.
"""

import pytest
from pydantic import ValidationError

from polysearch.catalog import CatalogStore, CorpusVersion, Document
from polysearch.catalog.normalizer import (
    is_open,
    leading_outcome,
    normalize_event,
    normalize_market,
    normalize_record,
    normalize_records,
    select_consensus_market,
)

pytestmark = pytest.mark.unit


class TestDocument:
    """Test canonical document model"""

    def test_searchable_text(self):
        """Test title + question + choice, duplicates collapsed"""
        doc = Document(id="x", title="Fed decision in March?", question="No change?", choice="25 bps")
        assert doc.searchable_text == "Fed decision in March? No change? 25 bps"

        same = Document(id="y", title="Fed cut?", question="Fed cut?")
        assert same.searchable_text == "Fed cut?"

        padded = Document(id="z", title="Bitcoin", question="Bitcoin ")
        assert padded.searchable_text == "Bitcoin"

    def test_display_title(self):
        """Test non Yes/No choice is appended to the question"""
        doc = Document(id="x", title="Bitcoin daily", question="Bitcoin Up or Down on March 3?", choice="Up")
        assert doc.display_title == "Bitcoin Up or Down on March 3? (Up)"

        binary = Document(id="y", title="Fed cut?", choice="Yes")
        assert binary.display_title == "Fed cut?"

    def test_frozen(self):
        """Test documents cannot be mutated after creation"""
        doc = Document(id="x", title="Fed cut?")
        with pytest.raises(ValidationError):
            doc.title = "changed"

    def test_validation(self):
        """Test invalid documents are rejected"""
        with pytest.raises(ValidationError):
            Document(id="", title="Fed cut?")
        with pytest.raises(ValidationError):
            Document(id="x", title="Fed cut?", price=250)

    def test_url(self):
        assert Document(id="x", title="t", slug="fed-cut").url == "https://polymarket.com/event/fed-cut"
        assert Document(id="x", title="t").url is None


class TestCorpusVersion:
    """Test immutable snapshot"""

    def test_build(self, market_documents):
        corpus = CorpusVersion.build(market_documents, version=7)
        assert corpus.version == 7
        assert len(corpus) == 2
        assert corpus.stats.document_count == 2

    def test_search_maps_positions_to_documents(self, market_documents):
        corpus = CorpusVersion.build(market_documents)
        assert [d.id for d in corpus.search("bitcoin")] == ["bitcoin-100k-2026"]

    def test_empty(self):
        corpus = CorpusVersion.empty()
        assert len(corpus) == 0
        assert corpus.search("anything") == []


class TestNormalizer:
    """Test raw Gamma shapes -> Document"""

    def test_event_picks_consensus_market(self, gamma_event):
        """Test highest single-outcome price among open sub-markets wins"""
        doc = normalize_event(gamma_event)
        assert doc.id == "fed-decision-in-march"
        assert doc.title == "Fed decision in March?"
        assert doc.question == "No change in Fed rates in March?"
        assert doc.condition_id == "0xbbb"
        assert doc.price == 85
        assert doc.volume == 1234568
        assert doc.clob_token_ids == ("221", "222")
        assert doc.choice is None  # "Yes" is not a choice

    def test_event_closed_market_ignored(self, gamma_event):
        """Test the closed 0.99 sub-market is not selected"""
        market, price, _ = select_consensus_market(gamma_event["markets"])
        assert market["conditionId"] == "0xbbb"
        assert price == pytest.approx(0.85)

    def test_event_non_binary_outcome_becomes_choice(self):
        event = {
            "slug": "btc-daily",
            "title": "Bitcoin daily direction",
            "markets": [{
                "question": "Bitcoin Up or Down on March 3?",
                "outcomes": ["Up", "Down"],
                "outcomePrices": ["0.62", "0.38"],
            }],
        }
        doc = normalize_event(event)
        assert doc.choice == "Up"
        assert doc.display_title == "Bitcoin Up or Down on March 3? (Up)"
        assert "Up" in doc.searchable_text

    def test_closed_event(self, gamma_event):
        gamma_event["closed"] = True
        assert normalize_event(gamma_event) is None

    def test_event_without_open_markets(self, gamma_event):
        for market in gamma_event["markets"]:
            market["active"] = False
        assert normalize_event(gamma_event) is None

    def test_market_with_parent_event(self):
        market = {
            "question": "Will Solana reach $300?",
            "conditionId": "0x5",
            "slug": "sol-300",
            "events": [{"slug": "solana-price-targets", "title": "Solana price targets", "icon": "e.png"}],
            "outcomes": "[\"Yes\", \"No\"]",
            "outcomePrices": "[\"0.12\", \"0.88\"]",
            "volumeNum": 5000.4,
        }
        doc = normalize_market(market)
        assert doc.id == "solana-price-targets"
        assert doc.title == "Solana price targets"
        assert doc.question == "Will Solana reach $300?"
        assert doc.price == 12
        assert doc.volume == 5000
        assert doc.icon == "e.png"

    def test_flat_record(self):
        doc = normalize_record({"title": "Bitcoin to hit $100k in 2026?", "slug": "btc-100k", "price": "64", "volume": 500})
        assert doc.id == "btc-100k"
        assert doc.price == 64
        assert doc.question is None

    def test_record_without_identity(self):
        assert normalize_record({"title": "Orphan market"}) is None

    def test_record_without_text(self):
        assert normalize_record({"slug": "blank", "title": ""}) is None

    def test_normalize_records_skips_bad_and_duplicates(self, gamma_event):
        records = [
            gamma_event,
            {"title": "Fed decision duplicate", "slug": "fed-decision-in-march"},
            {"title": "Bad price", "slug": "bad", "price": 250},
            {"title": "Inactive", "slug": "inactive", "active": False},
            "not a record",
            {"title": "Bitcoin to hit $100k", "slug": "btc-100k"},
        ]
        docs = normalize_records(records)
        assert [d.id for d in docs] == ["fed-decision-in-march", "btc-100k"]

    def test_market_named_outcome_uses_its_own_price(self):
        """Test the price reported belongs to the outcome shown as the choice"""
        doc = normalize_record({
            "slug": "btc-updown",
            "question": "Bitcoin up or down today?",
            "outcomes": ["Up", "Down"],
            "outcomePrices": ["0.3", "0.7"],
        })
        assert (doc.choice, doc.price) == ("Down", 70)

    def test_market_binary_outcome_keeps_yes_price(self):
        doc = normalize_record({
            "slug": "fed-cut",
            "question": "Fed cut in March?",
            "outcomes": ["Yes", "No"],
            "outcomePrices": ["0.3", "0.7"],
        })
        assert doc.choice is None
        assert doc.price == 30

    def test_normalize_records_skips_unexpected_shapes(self):
        """Test non-string outcome labels and non-finite numbers do not abort the batch"""
        records = [
            {"slug": "bad-labels", "title": "Broken outcome labels", "outcomes": [100, 200],
             "outcomePrices": ["0.2", "0.8"]},
            {"slug": "inf-volume", "title": "Infinite volume", "volume": "inf", "price": "inf"},
            {"slug": "btc-100k", "title": "Bitcoin to hit $100k"},
        ]
        docs = normalize_records(records)
        assert [d.id for d in docs] == ["bad-labels", "inf-volume", "btc-100k"]
        assert docs[0].choice is None
        assert docs[1].volume == 0

    def test_normalize_records_contains_any_record_error(self, monkeypatch):
        """Test an unexpected exception from one record only skips that record"""
        from polysearch.catalog import normalizer

        real = normalizer.normalize_record

        def flaky(record):
            if record.get("slug") == "boom":
                raise AttributeError("unexpected shape")
            return real(record)

        monkeypatch.setattr(normalizer, "normalize_record", flaky)
        docs = normalizer.normalize_records([{"slug": "boom", "title": "x"}, {"slug": "ok", "title": "Fed cut?"}])
        assert [d.id for d in docs] == ["ok"]

    def test_leading_outcome(self):
        assert leading_outcome({"outcomes": ["Yes", "No"], "outcomePrices": ["0.2", "0.8"]}) == (0.8, "No")
        assert leading_outcome({"outcomePrices": "not json"}) == (0.0, None)

    def test_is_open(self):
        assert is_open({})
        assert not is_open({"closed": True})
        assert not is_open({"active": False})


class TestCatalogStore:
    """Test versioned publication"""

    def test_starts_empty(self):
        store = CatalogStore()
        assert store.version == 0
        assert len(store.current) == 0

    def test_publish_swaps_version(self, market_documents):
        store = CatalogStore()
        first = store.publish(market_documents[:1])
        second = store.publish(market_documents)
        assert second.version == first.version + 1
        assert store.current is second
        # Old snapshot is untouched
        assert len(first) == 1
        assert first.search("fed") == []

    def test_reader_snapshot_survives_publish(self, store):
        snapshot = store.current
        store.publish([Document(id="other", title="Ethereum above $5k?")])
        assert [d.id for d in snapshot.search("bitcoin")] == ["bitcoin-100k-2026"]
        assert store.current.search("bitcoin") == []

    def test_refresh_normalizes_dedupes_and_orders(self, gamma_event):
        store = CatalogStore()
        records = [
            {"title": "Bitcoin to hit $100k", "slug": "btc-100k", "volume": 10},
            gamma_event,
            {"title": "Bitcoin to hit $100k again", "slug": "btc-100k", "volume": 99999999},
            Document(id="eth-5k", title="Ethereum above $5k?", volume=5000),
        ]
        corpus = store.refresh(lambda: records)
        assert corpus is store.current
        assert [d.id for d in corpus.documents] == ["fed-decision-in-march", "eth-5k", "btc-100k"]

    def test_refresh_failure_keeps_current(self, store):
        before = store.current

        def broken():
            raise RuntimeError("gamma down")

        assert store.refresh(broken) is before
        assert store.current is before

    def test_refresh_skips_malformed_records(self, store):
        """Test one bad record is dropped while the rest of the catalog is published"""
        records = [
            {"title": "Ethereum above $5k?", "slug": "eth-5k", "volume": 5000},
            {"slug": "bad", "title": "Broken outcome labels", "outcomes": [100, 200],
             "outcomePrices": ["0.2", "0.8"], "volume": "inf"},
        ]
        corpus = store.refresh(lambda: records)
        assert corpus is store.current
        assert [d.id for d in corpus.documents] == ["eth-5k", "bad"]

    def test_refresh_normalization_failure_keeps_current(self, store, monkeypatch):
        """Test a failure while normalizing is contained like a failed fetch"""
        from polysearch.catalog import store as store_module

        def broken(records):
            raise RuntimeError("normalizer bug")

        monkeypatch.setattr(store_module, "normalize_records", broken)
        before = store.current
        assert store.refresh(lambda: [{"slug": "eth-5k", "title": "Ethereum above $5k?"}]) is before

    def test_refresh_empty_keeps_current(self, store):
        before = store.current
        assert store.refresh(lambda: []) is before

    def test_get_corpus_stats(self, store):
        stats = store.get_corpus_stats()
        assert stats["version"] == 1
        assert stats["document_count"] == 2
        assert stats["average_document_length"] > 0
        assert all(v >= 0 for v in stats["idf"].values())
