from __future__ import annotations

import pytest
import responses
from responses import matchers

from meteo.errors import ErrorCode, ProviderError
from meteo.http.socrata import SocrataClient, soql_quote


BASE = "https://socrata.test"
RESOURCE_URL = f"{BASE}/resource/nzvn-apee.json"


def _client(fetch_client, token=None):
    return SocrataClient(fetch_client, base_url=BASE, app_token=token, provider="xema-transparencia")


def test_soql_quote_escapes_single_quotes():
    assert soql_quote("L'Hospitalet") == "'L''Hospitalet'"


def test_query_sends_soql_parameters_and_token(fetch_client):
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            RESOURCE_URL,
            json=[{"codi_variable": "32"}],
            match=[
                matchers.query_param_matcher(
                    {
                        "$select": "codi_variable",
                        "$where": "codi_estacio = 'X4'",
                        "$order": "data_lectura ASC",
                        "$limit": "10",
                    }
                ),
                matchers.header_matcher({"X-App-Token": "token"}),
            ],
        )

        rows = _client(fetch_client, token="token").query(
            "nzvn-apee",
            select="codi_variable",
            where="codi_estacio = 'X4'",
            order="data_lectura ASC",
            limit=10,
        )

    assert rows == [{"codi_variable": "32"}]


def test_fetch_all_pages_stops_on_short_page(fetch_client):
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            RESOURCE_URL,
            json=[{"n": 1}, {"n": 2}],
            match=[matchers.query_param_matcher({"$limit": "2", "$offset": "0"})],
        )
        rsps.add(
            responses.GET,
            RESOURCE_URL,
            json=[{"n": 3}, {"n": 4}],
            match=[matchers.query_param_matcher({"$limit": "2", "$offset": "2"})],
        )
        rsps.add(
            responses.GET,
            RESOURCE_URL,
            json=[{"n": 5}],
            match=[matchers.query_param_matcher({"$limit": "2", "$offset": "4"})],
        )

        rows = _client(fetch_client).fetch_all_pages("nzvn-apee", page_size=2)

        assert len(rsps.calls) == 3
    assert [row["n"] for row in rows] == [1, 2, 3, 4, 5]


def test_exact_multiple_needs_one_empty_page(fetch_client):
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            RESOURCE_URL,
            json=[{"n": 1}, {"n": 2}],
            match=[matchers.query_param_matcher({"$limit": "2", "$offset": "0"})],
        )
        rsps.add(
            responses.GET,
            RESOURCE_URL,
            json=[],
            match=[matchers.query_param_matcher({"$limit": "2", "$offset": "2"})],
        )

        rows = _client(fetch_client).fetch_all_pages("nzvn-apee", page_size=2)

    assert len(rows) == 2


def test_failing_page_aborts_fetch(fetch_client):
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(
            responses.GET,
            RESOURCE_URL,
            json=[{"n": 1}, {"n": 2}],
            match=[matchers.query_param_matcher({"$limit": "2", "$offset": "0"})],
        )
        rsps.add(
            responses.GET,
            RESOURCE_URL,
            status=404,
            match=[matchers.query_param_matcher({"$limit": "2", "$offset": "2"})],
        )

        with pytest.raises(ProviderError) as excinfo:
            _client(fetch_client).fetch_all_pages("nzvn-apee", page_size=2)

    assert excinfo.value.code is ErrorCode.NOT_FOUND


def test_non_list_payload_is_rejected(fetch_client):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, RESOURCE_URL, json={"error": True, "message": "bad query"})

        with pytest.raises(ProviderError) as excinfo:
            _client(fetch_client).query("nzvn-apee")

    assert excinfo.value.code is ErrorCode.PROVIDER_ERROR
