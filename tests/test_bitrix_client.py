"""Unit tests for the Bitrix24 webhook client."""

import json

import httpx
import pytest

from lead_ingest.crm.bitrix import BitrixClient
from lead_ingest.errors import CrmOperationError

WEBHOOK = "https://crm.test/rest/1/secret/"


def _client(handler, **kwargs) -> BitrixClient:
    return BitrixClient(WEBHOOK, client=httpx.Client(transport=httpx.MockTransport(handler)), **kwargs)


def _recording_handler(result, calls: list):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.url.path, json.loads(request.content or b"{}")))
        return httpx.Response(200, json={"result": result})

    return handler


class TestBitrixCall:
    def test_posts_json_to_method_url(self) -> None:
        calls: list = []
        client = _client(_recording_handler(17, calls))
        assert client.call("crm.deal.add", {"fields": {"TITLE": "x"}}) == 17
        assert calls == [("/rest/1/secret/crm.deal.add.json", {"fields": {"TITLE": "x"}})]

    def test_error_payload_raises(self) -> None:
        client = _client(
            lambda r: httpx.Response(
                400, json={"error": "INVALID_REQUEST", "error_description": "Bad filter"}
            )
        )
        with pytest.raises(CrmOperationError) as exc:
            client.call("user.get", {})
        assert exc.value.method == "user.get"
        assert exc.value.description == "Bad filter"

    def test_error_with_200_status_raises(self) -> None:
        client = _client(lambda r: httpx.Response(200, json={"error": "QUERY_LIMIT_EXCEEDED"}))
        with pytest.raises(CrmOperationError, match="QUERY_LIMIT_EXCEEDED"):
            client.call("crm.deal.add", {})

    def test_http_error_without_payload_raises(self) -> None:
        client = _client(lambda r: httpx.Response(502, text="Bad gateway"))
        with pytest.raises(CrmOperationError, match="HTTP 502"):
            client.call("crm.deal.add", {})

    def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(CrmOperationError, match="timed out"):
            _client(handler).call("crm.deal.add", {})

    def test_requires_webhook(self) -> None:
        with pytest.raises(ValueError):
            BitrixClient("")


class TestBitrixOperations:
    def test_create_deal_returns_int(self) -> None:
        client = _client(_recording_handler("345", []))
        assert client.create_deal({"TITLE": "x"}) == 345

    def test_create_deal_unexpected_result(self) -> None:
        client = _client(_recording_handler(None, []))
        with pytest.raises(CrmOperationError):
            client.create_deal({"TITLE": "x"})

    def test_lookup_user_first_match(self) -> None:
        calls: list = []
        client = _client(_recording_handler([{"ID": "12"}, {"ID": "13"}], calls))
        assert client.lookup_user({"EMAIL": "a@x.test"}) == 12
        assert calls[0][1] == {"filter": {"EMAIL": "a@x.test"}}

    def test_lookup_user_non_numeric_id_raises(self) -> None:
        client = _client(_recording_handler([{"ID": "abc"}], []))
        with pytest.raises(CrmOperationError, match="user.get"):
            client.lookup_user({"EMAIL": "a@x.test"})

    def test_lookup_user_no_match(self) -> None:
        assert _client(_recording_handler([], [])).lookup_user({"EMAIL": "a@x.test"}) is None

    def test_lookup_listing(self) -> None:
        calls: list = []
        client = _client(_recording_handler({"items": [{"id": 1, "ufCrm37OwnerId": "5"}]}, calls), listing_entity_type_id=99)
        listing = client.lookup_listing({"ufCrm37ReferenceNumber": "R"}, select=["ufCrm37OwnerId"])
        assert listing == {"id": 1, "ufCrm37OwnerId": "5"}
        assert calls[0][0].endswith("/crm.item.list.json")
        assert calls[0][1] == {
            "entityTypeId": 99,
            "filter": {"ufCrm37ReferenceNumber": "R"},
            "select": ["ufCrm37OwnerId"],
        }

    def test_lookup_listing_empty(self) -> None:
        assert _client(_recording_handler({"items": []}, [])).lookup_listing({"x": 1}) is None

    def test_register_call_returns_call_id(self) -> None:
        calls: list = []
        client = _client(_recording_handler({"CALL_ID": "externalCall.abc"}, calls))
        assert client.register_call({"TYPE": 2}) == "externalCall.abc"
        assert calls[0][0].endswith("/telephony.externalcall.register.json")

    def test_register_call_without_id(self) -> None:
        assert _client(_recording_handler({}, [])).register_call({"TYPE": 2}) is None

    def test_finish_and_attach_methods(self) -> None:
        calls: list = []
        client = _client(_recording_handler(True, calls))
        client.finish_call({"CALL_ID": "c"})
        client.attach_recording({"CALL_ID": "c"})
        assert [path.rsplit("/", 1)[-1] for path, _ in calls] == [
            "telephony.externalcall.finish.json",
            "telephony.externalcall.attachRecord.json",
        ]
