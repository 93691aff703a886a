"""
Test Suite: HTTP balance fetching and JSON path extraction
"""

import pytest
import requests

from balance_monitor.config import AuthConfig, RequestConfig, ResponseConfig, ServiceConfig
from balance_monitor.errors import FetchError
from balance_monitor.fetcher import BalanceClient, expand_placeholders, extract_path


def _service(response: ResponseConfig, auth=None, request=None) -> ServiceConfig:
    return ServiceConfig(
        name="Provider",
        history_file="data/provider.json",
        request=request or RequestConfig(url="https://api.example.com/balance"),
        response=response,
        auth=auth,
    )


class TestExtractPath:

    @pytest.fixture
    def payload(self):
        return {
            "data": {"balance": "12.5", "currency": "USD"},
            "accounts": [
                {"amount": 1, "ccy": "EUR"},
                {"amount": 2, "ccy": "GBP"},
            ],
        }

    def test_nested_key(self, payload):
        assert extract_path(payload, "data.balance") == "12.5"

    def test_list_index(self, payload):
        assert extract_path(payload, "accounts.1.ccy") == "GBP"

    def test_hash_collects_across_items(self, payload):
        assert extract_path(payload, "accounts.#.amount") == [1, 2]

    def test_missing_path(self, payload):
        missing = extract_path(payload, "data.nope")
        assert missing is extract_path(payload, "accounts.5")
        assert missing is not None


def test_expand_placeholders(monkeypatch):
    monkeypatch.setenv("API_KEY", "secret")
    body = {"key": "$API_KEY", "nested": [{"k": "${API_KEY}-x"}], "n": 3}
    assert expand_placeholders(body) == {"key": "secret", "nested": [{"k": "secret-x"}], "n": 3}


class TestBalanceClient:

    def test_single_balance_with_scale_and_currency(self, make_session, make_response):
        session = make_session(make_response({"data": {"balance": 1250, "currency": " USD "}}))
        client = BalanceClient(session=session)

        entries = client.fetch_balance(_service(ResponseConfig(
            balance_path="data.balance", balance_scale=0.01, currency_field="data.currency",
        )))

        assert len(entries) == 1
        assert entries[0].amount == pytest.approx(12.5)
        assert entries[0].currency == "USD"
        assert session.calls[0]["method"] == "GET"
        assert session.calls[0]["timeout"] == 30

    def test_multiple_balances_with_currency_array(self, make_session, make_response):
        payload = {"balances": [10, "20.5", 30], "currencies": ["USD", "EUR"]}
        client = BalanceClient(session=make_session(make_response(payload)))

        entries = client.fetch_balance(_service(ResponseConfig(
            balance_path="balances", currency_field="currencies", multiple=True,
        )))

        assert [e.amount for e in entries] == [10.0, 20.5, 30.0]
        assert [e.currency for e in entries] == ["USD", "EUR", ""]

    def test_multiple_requires_array(self, make_session, make_response):
        client = BalanceClient(session=make_session(make_response({"balances": 5})))
        with pytest.raises(FetchError, match="is not an array"):
            client.fetch_balance(_service(ResponseConfig(balance_path="balances", multiple=True)))

    def test_empty_array_is_an_error(self, make_session, make_response):
        client = BalanceClient(session=make_session(make_response({"balances": []})))
        with pytest.raises(FetchError, match="no balances found"):
            client.fetch_balance(_service(ResponseConfig(balance_path="balances", multiple=True)))

    def test_missing_balance_path(self, make_session, make_response):
        client = BalanceClient(session=make_session(make_response({"other": 1})))
        with pytest.raises(FetchError, match="balance path 'data.balance' not found"):
            client.fetch_balance(_service(ResponseConfig(balance_path="data.balance")))

    def test_unexpected_status(self, make_session, make_response):
        client = BalanceClient(session=make_session(make_response({}, status_code=503)))
        with pytest.raises(FetchError, match="unexpected status 503"):
            client.fetch_balance(_service(ResponseConfig(balance_path="balance")))

    def test_transport_error_wrapped(self, make_session):
        client = BalanceClient(session=make_session(requests.ConnectionError("refused")))
        with pytest.raises(FetchError, match="refused"):
            client.fetch_balance(_service(ResponseConfig(balance_path="balance")))

    def test_invalid_json(self, make_session, make_response):
        client = BalanceClient(session=make_session(make_response(ValueError("bad json"))))
        with pytest.raises(FetchError, match="invalid JSON"):
            client.fetch_balance(_service(ResponseConfig(balance_path="balance")))

    def test_request_settings_are_expanded(self, monkeypatch, make_session, make_response):
        monkeypatch.setenv("ACCOUNT", "acc-1")
        monkeypatch.setenv("KEY", "k-123")
        session = make_session(make_response({"balance": 1}))
        request = RequestConfig(
            url="https://api.example.com/$ACCOUNT",
            method="POST",
            headers={"X-Key": "$KEY"},
            query={"account": "${ACCOUNT}"},
            body={"key": "$KEY"},
            timeout_seconds=5,
        )

        BalanceClient(session=session).fetch_balance(
            _service(ResponseConfig(balance_path="balance"), request=request)
        )

        call = session.calls[0]
        assert call["url"] == "https://api.example.com/acc-1"
        assert call["method"] == "POST"
        assert call["headers"] == {"X-Key": "k-123"}
        assert call["params"] == {"account": "acc-1"}
        assert call["json"] == {"key": "k-123"}
        assert call["timeout"] == 5

    def test_auth_token_exchange(self, make_session, make_response):
        session = make_session(
            make_response({"data": {"token": "tok-1"}}),
            make_response({"balance": 3}),
        )
        auth = AuthConfig(
            request=RequestConfig(url="https://api.example.com/login", method="POST"),
            token_path="data.token",
            header="Authorization",
            prefix="Bearer ",
        )

        entries = BalanceClient(session=session).fetch_balance(
            _service(ResponseConfig(balance_path="balance"), auth=auth)
        )

        assert entries[0].amount == 3.0
        assert session.calls[0]["url"] == "https://api.example.com/login"
        assert session.calls[1]["headers"]["Authorization"] == "Bearer tok-1"

    @pytest.mark.parametrize("payload,message", [
        ({"data": {}}, "token path 'data.token' not found"),
        ({"data": {"token": "  "}}, "token is empty"),
    ])
    def test_auth_token_errors(self, make_session, make_response, payload, message):
        auth = AuthConfig(
            request=RequestConfig(url="https://api.example.com/login", method="POST"),
            token_path="data.token",
            header="Authorization",
        )
        client = BalanceClient(session=make_session(make_response(payload)))
        with pytest.raises(FetchError, match=message):
            client.fetch_balance(_service(ResponseConfig(balance_path="balance"), auth=auth))
