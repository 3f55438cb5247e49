"""Tests for the DPE energy-diagnostic client."""

import asyncio
from datetime import date

import httpx
import pytest

from vacancy_radar.acquisition import DPEClient, InvalidResponseError, TargetArea
from vacancy_radar.acquisition.dpe_client import DPE_SELECT_FIELDS, parse_geopoint


def _row(**overrides):
    row = {
        "N°DPE": "2344E0123456X",
        "Etiquette_DPE": "f",
        "Etiquette_GES": "E",
        "Date_établissement_DPE": "2023-05-10",
        "Année_construction": 1890,
        "Type_bâtiment": "appartement",
        "Surface_habitable_logement": 42.5,
        "_geopoint": "47.2138,-1.5535",
    }
    row.update(overrides)
    return row


def _fetch(config, handler):
    async def go():
        async with DPEClient(config, transport=httpx.MockTransport(handler)) as client:
            return await client.fetch_records(TargetArea())

    return asyncio.run(go())


class TestGeopoint:
    def test_lat_lon_order(self):
        assert parse_geopoint("47.2138,-1.5535") == (47.2138, -1.5535)

    def test_tolerates_spaces(self):
        assert parse_geopoint("47.2138, -1.5535") == (47.2138, -1.5535)

    @pytest.mark.parametrize("value", [None, "", "47.2", "a,b", "1,2,3"])
    def test_invalid(self, value):
        assert parse_geopoint(value) == (None, None)


class TestDPEClient:
    def test_query_parameters(self, fast_retry_config):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"total": 0, "results": []})

        assert _fetch(fast_retry_config, handler) == []
        assert seen["path"].endswith("/dpe03existant/lines")
        assert seen["params"]["q"] == "Nantes"
        assert seen["params"]["q_fields"] == "commune"
        assert seen["params"]["bbox"] == "-1.5595,47.2105,-1.5465,47.2175"
        assert seen["params"]["select"] == ",".join(DPE_SELECT_FIELDS)

    def test_parses_rows(self, fast_retry_config):
        payload = {"results": [_row()]}
        records = _fetch(fast_retry_config, lambda request: httpx.Response(200, json=payload))

        assert len(records) == 1
        d = records[0]
        assert d.energy_class == "F"
        assert d.is_failing
        assert d.year_built == 1890
        assert d.established_date == date(2023, 5, 10)
        assert (d.latitude, d.longitude) == (47.2138, -1.5535)
        assert d.diagnostic_id == "2344E0123456X"

    def test_drops_rows_without_position_or_valid_class(self, fast_retry_config):
        payload = {
            "results": [
                _row(),
                _row(_geopoint=None),
                _row(Etiquette_DPE="H"),
                _row(Etiquette_DPE=None),
            ]
        }
        records = _fetch(fast_retry_config, lambda request: httpx.Response(200, json=payload))
        assert len(records) == 1

    def test_non_json_body(self, fast_retry_config):
        with pytest.raises(InvalidResponseError):
            _fetch(fast_retry_config, lambda request: httpx.Response(200, text="<html>"))

    def test_json_array_body(self, fast_retry_config):
        with pytest.raises(InvalidResponseError):
            _fetch(fast_retry_config, lambda request: httpx.Response(200, json=[1, 2]))
