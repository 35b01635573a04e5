from __future__ import annotations

import re
from urllib.parse import parse_qs

import pytest

pytest.importorskip("pytest_httpx")

from listings.connectors.base import EbayApiError, PermanentError, TransientError
from listings.connectors.ebay_auth import EbayTokenClient
from listings.connectors.ebay_finding import EbayFindingClient
from listings.settings import Settings

FINDING_URL = re.compile(r"https://svcs\.ebay\.com/services/search/FindingService/v1\?.*")
TOKEN_URL = "https://api.ebay.com/identity/v1/oauth2/token"


def _make_settings(**overrides) -> Settings:
    values = dict(ebay_store_name="vintage-finds", ebay_app_id="app-123", ebay_cert_id="cert-456")
    values.update(overrides)
    return Settings(**values)


def _finding_payload(items):
    return {
        "findItemsIneBayStoresResponse": [
            {
                "ack": ["Success"],
                "searchResult": [{"@count": str(len(items)), "item": items}],
            }
        ]
    }


def _item(item_id: str, title: str):
    return {
        "itemId": [item_id],
        "title": [title],
        "galleryURL": [f"https://thumbs.ebaystatic.com/thumbs/{item_id}-thumb.jpg"],
        "pictureURLLarge": [f"https://i.ebayimg.com/images/g/{item_id}/s-l500.jpg"],
        "viewItemURL": [f"https://www.ebay.com/itm/{item_id}"],
        "sellingStatus": [
            {
                "currentPrice": [{"@currencyId": "USD", "__value__": "19.99"}],
                "convertedCurrentPrice": [{"@currencyId": "USD", "__value__": "19.99"}],
            }
        ],
        "condition": [{"conditionId": ["3000"], "conditionDisplayName": ["Used"]}],
    }


def test_token_client_posts_client_credentials(httpx_mock):
    httpx_mock.add_response(
        method="POST",
        url=TOKEN_URL,
        json={"access_token": "v^1.1#abc", "expires_in": 7200, "token_type": "Application Access Token"},
    )

    token = EbayTokenClient(_make_settings()).fetch_token()

    assert token == "v^1.1#abc"
    request = httpx_mock.get_request()
    assert request.headers["Authorization"].startswith("Basic ")
    assert b"grant_type=client_credentials" in request.content


def test_token_request_body_carries_only_grant_type_and_scope(httpx_mock, monkeypatch):
    monkeypatch.setenv("EBAY_REDIRECT_URI", "Seller-App-PRD-ru")
    monkeypatch.setenv("EBAY_AUTH_TOKEN", "v^1.1#user")
    httpx_mock.add_response(method="POST", url=TOKEN_URL, json={"access_token": "t"})

    EbayTokenClient(_make_settings()).fetch_token()

    form = parse_qs(httpx_mock.get_request().content.decode("utf-8"))
    assert form == {
        "grant_type": ["client_credentials"],
        "scope": ["https://api.ebay.com/oauth/api_scope"],
    }


def test_token_client_rejects_missing_access_token(httpx_mock):
    httpx_mock.add_response(method="POST", url=TOKEN_URL, json={})

    with pytest.raises(PermanentError):
        EbayTokenClient(_make_settings()).fetch_token()


def test_token_client_server_error_is_transient(httpx_mock):
    httpx_mock.add_response(method="POST", url=TOKEN_URL, status_code=503)

    with pytest.raises(TransientError):
        EbayTokenClient(_make_settings()).fetch_token()


def test_finding_page_parses_items(httpx_mock):
    httpx_mock.add_response(
        method="GET",
        url=FINDING_URL,
        json=_finding_payload([_item("111", "Lamp"), _item("222", "Vase")]),
    )

    items = EbayFindingClient(_make_settings()).find_page("vintage-finds", 10, 1)

    assert [i.item_id for i in items] == ["111", "222"]
    first = items[0]
    assert first.title == "Lamp"
    assert first.current_price is not None and first.current_price.value == "19.99"
    assert first.current_price.currency_id == "USD"
    assert first.condition_display_name == "Used"
    assert first.gallery_url.endswith("111-thumb.jpg")
    assert first.picture_urls == ["https://i.ebayimg.com/images/g/111/s-l500.jpg"]

    request = httpx_mock.get_request()
    assert request.url.params["OPERATION-NAME"] == "findItemsIneBayStores"
    assert request.url.params["storeName"] == "vintage-finds"
    assert request.url.params["paginationInput.entriesPerPage"] == "10"
    assert request.url.params["paginationInput.pageNumber"] == "1"
    assert request.url.params["SECURITY-APPNAME"] == "app-123"


def test_finding_page_without_search_result_is_empty(httpx_mock):
    httpx_mock.add_response(
        method="GET",
        url=FINDING_URL,
        json={"findItemsIneBayStoresResponse": [{"ack": ["Success"], "searchResult": [{"@count": "0"}]}]},
    )

    assert EbayFindingClient(_make_settings()).find_page("vintage-finds", 10, 1) == []


def test_finding_ack_failure_raises(httpx_mock):
    httpx_mock.add_response(
        method="GET",
        url=FINDING_URL,
        json={
            "findItemsIneBayStoresResponse": [
                {
                    "ack": ["Failure"],
                    "errorMessage": [
                        {"error": [{"errorId": ["11002"], "message": ["Invalid store name."], "severity": ["Error"]}]}
                    ],
                }
            ]
        },
    )

    with pytest.raises(EbayApiError) as exc:
        EbayFindingClient(_make_settings()).find_page("nope", 10, 1)

    assert exc.value.errors[0].error_code == "11002"


def test_finding_rate_limit_is_transient(httpx_mock):
    httpx_mock.add_response(method="GET", url=FINDING_URL, status_code=429)

    with pytest.raises(TransientError):
        EbayFindingClient(_make_settings()).find_page("vintage-finds", 10, 1)
