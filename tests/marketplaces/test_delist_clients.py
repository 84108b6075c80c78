"""Tests for the eBay and StockX delist clients and the dispatcher."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from flipledger.common.config import MarketplaceSettings
from flipledger.common.models import Marketplace
from flipledger.marketplaces.base import BatchDelistResult, DelistOutcome
from flipledger.marketplaces.dispatcher import DelistDispatcher
from flipledger.marketplaces.ebay import EbayDelistClient
from flipledger.marketplaces.http_client import MarketplaceHTTPClient
from flipledger.marketplaces.stockx import StockXDelistClient

CONFIG = MarketplaceSettings(
    ebay_api_base="https://api.ebay.test",
    stockx_api_base="https://api.stockx.test/",
    stockx_api_key="sx-key",
)


def _response(status: int, text: str = "") -> MagicMock:
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.text = text
    return resp


@pytest.fixture
def http() -> MagicMock:
    mock = MagicMock(spec=MarketplaceHTTPClient)
    mock.config = CONFIG
    mock.request.return_value = _response(200)
    return mock


@pytest.fixture
def ebay(http) -> EbayDelistClient:
    return EbayDelistClient(http)


@pytest.fixture
def stockx(http) -> StockXDelistClient:
    return StockXDelistClient(http)


class TestEbayWithdraw:
    def test_request_shape(self, ebay, http):
        outcome = ebay.delist("tok", "9876543210")

        assert outcome == DelistOutcome(success=True)
        method, url = http.request.call_args.args
        headers = http.request.call_args.kwargs["headers"]
        assert method == "POST"
        assert url == "https://api.ebay.test/sell/inventory/v1/offer/9876543210/withdraw"
        assert headers["Authorization"] == "Bearer tok"
        assert headers["X-EBAY-C-MARKETPLACE-ID"] == "EBAY_US"
        assert headers["Content-Language"] == "en-US"

    def test_offer_id_is_url_encoded(self, ebay, http):
        ebay.delist("tok", "a/b c")
        url = http.request.call_args.args[1]
        assert url.endswith("/offer/a%2Fb%20c/withdraw")

    def test_404_is_already_removed(self, ebay, http):
        http.request.return_value = _response(404)
        outcome = ebay.delist("tok", "1")
        assert outcome.success and outcome.already_removed

    def test_not_found_body_is_already_removed(self, ebay, http):
        http.request.return_value = _response(400, '{"errors":[{"message":"Offer Not Found"}]}')
        assert ebay.delist("tok", "1").already_removed

    def test_unpublished_offer_is_success(self, ebay, http):
        http.request.return_value = _response(
            400, '{"errors":[{"message":"The offer cannot be withdrawn"}]}'
        )
        outcome = ebay.delist("tok", "1")
        assert outcome.success and outcome.not_published

    def test_other_error_fails(self, ebay, http):
        http.request.return_value = _response(500, "oops")
        outcome = ebay.delist("tok", "1")
        assert not outcome.success
        assert outcome.error == "Withdraw failed: 500"


class TestEbayDeleteOffer:
    def test_withdraws_then_deletes(self, ebay, http):
        http.request.side_effect = [_response(200), _response(204)]

        assert ebay.delete_offer("tok", "42").success

        calls = [c.args for c in http.request.call_args_list]
        assert calls == [
            ("POST", "https://api.ebay.test/sell/inventory/v1/offer/42/withdraw"),
            ("DELETE", "https://api.ebay.test/sell/inventory/v1/offer/42"),
        ]

    def test_delete_404_is_success(self, ebay, http):
        http.request.side_effect = [_response(404), _response(404)]
        assert ebay.delete_offer("tok", "42").success

    def test_failed_withdraw_skips_delete(self, ebay, http):
        http.request.return_value = _response(500)
        outcome = ebay.delete_offer("tok", "42")
        assert outcome.error == "Withdraw failed: 500"
        assert http.request.call_count == 1

    def test_delete_error(self, ebay, http):
        http.request.side_effect = [_response(200), _response(409)]
        assert ebay.delete_offer("tok", "42").error == "Delete failed: 409"

    def test_delete_transport_error(self, ebay, http):
        http.request.side_effect = [_response(200), requests.ConnectionError("reset")]
        outcome = ebay.delete_offer("tok", "42")
        assert not outcome.success
        assert "reset" in outcome.error


class TestStockX:
    def test_request_shape(self, stockx, http):
        assert stockx.delist("tok", "L123").success

        method, url = http.request.call_args.args
        headers = http.request.call_args.kwargs["headers"]
        assert method == "DELETE"
        assert url == "https://api.stockx.test/v2/selling/listings/L123"
        assert headers == {"Authorization": "Bearer tok", "x-api-key": "sx-key"}

    def test_404_is_already_removed(self, stockx, http):
        http.request.return_value = _response(404)
        assert stockx.delist("tok", "L123") == DelistOutcome(success=True, already_removed=True)

    def test_other_error_fails(self, stockx, http):
        http.request.return_value = _response(403)
        assert stockx.delist("tok", "L123").error == "Delete failed: 403"


class TestCommonBehaviour:
    def test_missing_credential(self, stockx, http):
        outcome = stockx.delist(None, "L123")
        assert outcome.error == "No StockX credential available"
        http.request.assert_not_called()

    def test_missing_listing_id(self, ebay, http):
        outcome = ebay.delist("tok", "")
        assert not outcome.success and outcome.not_found
        http.request.assert_not_called()

    def test_transport_error_is_captured(self, ebay, http):
        http.request.side_effect = requests.Timeout("timed out")
        outcome = ebay.delist("tok", "1")
        assert outcome == DelistOutcome.failed("timed out")

    def test_request_building_error_is_captured(self, ebay, http):
        http.request.side_effect = UnicodeEncodeError(
            "latin-1", "Bearer tok\u20ac", 10, 11, "ordinal not in range(256)"
        )
        outcome = ebay.delist("tok\u20ac", "1")
        assert not outcome.success
        assert outcome.error.startswith("UnicodeEncodeError")

    def test_unreadable_response_is_captured(self, stockx, http):
        http.request.return_value = object()
        outcome = stockx.delist("tok", "L123")
        assert not outcome.success
        assert outcome.error.startswith("AttributeError")

    def test_batch_delist(self, stockx, http):
        http.request.side_effect = [_response(200), _response(500), _response(404)]

        result = stockx.batch_delist("tok", ["a", "b", "c"])

        assert result.deleted == 2
        assert result.failed == 1
        assert result.errors == [{"listing_id": "b", "error": "Delete failed: 500"}]
        assert result.success

    def test_batch_all_failed(self):
        assert not BatchDelistResult(deleted=0, failed=2).success
        assert BatchDelistResult().success


class TestDispatcher:
    def test_default_registers_both_marketplaces(self, http):
        dispatcher = DelistDispatcher.default(CONFIG, http=http)
        assert isinstance(dispatcher.client_for(Marketplace.EBAY), EbayDelistClient)
        assert isinstance(dispatcher.client_for(Marketplace.STOCKX), StockXDelistClient)

    def test_routes_to_marketplace(self, http):
        dispatcher = DelistDispatcher.default(CONFIG, http=http)
        dispatcher.delist(Marketplace.STOCKX, "tok", "L1")
        assert http.request.call_args.args[0] == "DELETE"

    def test_unregistered_marketplace(self, ebay):
        dispatcher = DelistDispatcher([ebay])
        outcome = dispatcher.delist(Marketplace.STOCKX, "tok", "L1")
        assert outcome.error == "No delist client registered for stockx"
        with pytest.raises(ValueError):
            dispatcher.client_for(Marketplace.STOCKX)
