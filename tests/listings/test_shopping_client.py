from __future__ import annotations

from typing import List

import httpx
import pytest

from listings.connectors.base import AuthenticationError, EbayApiError, PermanentError
from listings.connectors.ebay_auth import ApplicationTokenSession
from listings.connectors.ebay_shopping import EbayShoppingClient, build_request_body
from listings.services.rate_limiter import MinIntervalRateLimiter
from listings.settings import Settings

ITEM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<GetSingleItemResponse xmlns="urn:ebay:apis:eBLBaseComponents">
  <Timestamp>2025-01-01T00:00:00.000Z</Timestamp>
  <Ack>Success</Ack>
  <Version>967</Version>
  <Item>
    <ItemID>111</ItemID>
    <Title>Brass Desk Lamp</Title>
    <Description>&lt;p&gt;Lovely lamp&lt;/p&gt;</Description>
    <GalleryURL>https://i.ebayimg.com/thumbs/images/g/111/s-l140.jpg</GalleryURL>
    <PictureURL>https://i.ebayimg.com/images/g/111/s-l500.jpg</PictureURL>
    <PictureURL>https://i.ebayimg.com/images/g/112/s-l500.jpg</PictureURL>
    <Quantity>3</Quantity>
    <ItemSpecifics>
      <NameValueList><Name>Brand</Name><Value>Acme</Value></NameValueList>
      <NameValueList><Name>Color</Name><Value>Gold</Value><Value>Brass</Value></NameValueList>
    </ItemSpecifics>
    <ReturnPolicy>
      <ReturnsAccepted>Returns Accepted</ReturnsAccepted>
      <ReturnsWithin>30 Days</ReturnsWithin>
      <Refund>Money Back</Refund>
      <ShippingCostPaidBy>Buyer</ShippingCostPaidBy>
    </ReturnPolicy>
    <Variations>
      <Pictures>
        <VariationSpecificName>Color</VariationSpecificName>
        <VariationSpecificPictureSet>
          <VariationSpecificValue>Gold</VariationSpecificValue>
          <PictureURL>https://i.ebayimg.com/images/g/gold/s-l64.jpg</PictureURL>
        </VariationSpecificPictureSet>
      </Pictures>
    </Variations>
  </Item>
</GetSingleItemResponse>"""

FAILURE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<GetSingleItemResponse xmlns="urn:ebay:apis:eBLBaseComponents">
  <Ack>Failure</Ack>
  <Errors>
    <ShortMessage>Invalid token.</ShortMessage>
    <LongMessage>Invalid token. Please specify a valid token as HTTP header.</LongMessage>
    <ErrorCode>{code}</ErrorCode>
    <SeverityCode>Error</SeverityCode>
  </Errors>
</GetSingleItemResponse>"""


def _make_settings() -> Settings:
    return Settings(ebay_store_name="store", ebay_app_id="app-123")


class CountingProvider:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        return f"token-{self.calls}"


def _client(responses: List[httpx.Response], seen: List[httpx.Request]):
    queue = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return queue.pop(0)

    return httpx.Client(transport=httpx.MockTransport(handler))


def _shopping(responses, seen, provider=None):
    session = ApplicationTokenSession(provider or CountingProvider())
    limiter = MinIntervalRateLimiter(0.001, sleep=lambda _s: None)
    client = EbayShoppingClient(_make_settings(), session, limiter, client=_client(responses, seen))
    return client, session


def test_build_request_body_escapes_item_id():
    body = build_request_body("1<2")
    assert "<ItemID>1&lt;2</ItemID>" in body
    assert "<IncludeSelector>Details,Description,ItemSpecifics,Variations,PictureURLs</IncludeSelector>" in body


def test_get_item_parses_detail_and_sends_token_headers():
    seen: List[httpx.Request] = []
    client, _ = _shopping([httpx.Response(200, text=ITEM_XML)], seen)

    detail = client.get_item("111")

    assert detail is not None
    assert detail.title == "Brass Desk Lamp"
    assert detail.description == "<p>Lovely lamp</p>"
    assert detail.quantity == "3"
    assert detail.picture_urls == [
        "https://i.ebayimg.com/images/g/111/s-l500.jpg",
        "https://i.ebayimg.com/images/g/112/s-l500.jpg",
    ]
    assert detail.variation_picture_sets == [["https://i.ebayimg.com/images/g/gold/s-l64.jpg"]]
    assert [(s.name, s.values) for s in detail.item_specifics] == [("Brand", ["Acme"]), ("Color", ["Gold", "Brass"])]
    assert detail.return_policy is not None and detail.return_policy.shipping_cost_paid_by == "Buyer"

    request = seen[0]
    assert request.headers["X-EBAY-API-CALL-NAME"] == "GetSingleItem"
    assert request.headers["X-EBAY-API-IAF-TOKEN"] == "token-1"
    assert request.headers["Authorization"] == "Bearer token-1"
    assert request.headers["X-EBAY-API-APP-ID"] == "app-123"


def test_response_without_item_returns_none():
    seen: List[httpx.Request] = []
    xml = '<GetSingleItemResponse xmlns="urn:ebay:apis:eBLBaseComponents"><Ack>Success</Ack></GetSingleItemResponse>'
    client, _ = _shopping([httpx.Response(200, text=xml)], seen)

    assert client.get_item("111") is None


def test_invalid_token_body_refreshes_and_retries_once():
    seen: List[httpx.Request] = []
    client, session = _shopping(
        [httpx.Response(401, text="Invalid token"), httpx.Response(200, text=ITEM_XML)],
        seen,
    )

    detail = client.get_item("111")

    assert detail is not None and detail.item_id == "111"
    assert len(seen) == 2
    assert seen[0].headers["X-EBAY-API-IAF-TOKEN"] == "token-1"
    assert seen[1].headers["X-EBAY-API-IAF-TOKEN"] == "token-2"
    assert session.refresh_count == 2


def test_second_auth_failure_is_not_retried_again():
    seen: List[httpx.Request] = []
    client, _ = _shopping(
        [httpx.Response(401, text="Token not available"), httpx.Response(401, text="Token not available")],
        seen,
    )

    with pytest.raises(AuthenticationError):
        client.get_item("111")
    assert len(seen) == 2


@pytest.mark.parametrize("code", ["1.32", "1.33"])
def test_ack_failure_with_token_code_refreshes_and_raises(code):
    seen: List[httpx.Request] = []
    provider = CountingProvider()
    client, session = _shopping([httpx.Response(200, text=FAILURE_XML.format(code=code))], seen, provider)

    with pytest.raises(EbayApiError) as exc:
        client.get_item("111")

    assert exc.value.errors[0].error_code == code
    assert provider.calls == 2
    assert session.token == "token-2"
    assert len(seen) == 1


def test_ack_failure_with_other_code_does_not_refresh():
    seen: List[httpx.Request] = []
    provider = CountingProvider()
    client, _ = _shopping([httpx.Response(200, text=FAILURE_XML.format(code="10.12"))], seen, provider)

    with pytest.raises(EbayApiError):
        client.get_item("111")
    assert provider.calls == 1


def test_malformed_xml_is_permanent_error():
    seen: List[httpx.Request] = []
    client, _ = _shopping([httpx.Response(200, text="<not-xml")], seen)

    with pytest.raises(PermanentError):
        client.get_item("111")
