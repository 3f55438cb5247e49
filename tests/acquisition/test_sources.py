"""Tests for record sources and the remote-with-fallback policy."""

import asyncio
from datetime import date

import httpx

from vacancy_radar.acquisition import (
    RemoteRecordSource,
    ServerError,
    StaticRecordSource,
    TargetArea,
    dpe_source,
    dvf_source,
    load_all,
)


class TestRemoteRecordSource:
    def test_success_returns_fetched_records(self):
        async def fetch():
            return ["remote"]

        source = RemoteRecordSource(fetch, lambda: ["fallback"], name="test")
        assert asyncio.run(source.load()) == ["remote"]
        assert source.used_fallback is False
        assert source.last_error is None

    def test_acquisition_error_uses_fallback(self):
        async def fetch():
            raise ServerError("registry down", status_code=503)

        source = RemoteRecordSource(fetch, lambda: ["fallback"], name="test")
        assert asyncio.run(source.load()) == ["fallback"]
        assert source.used_fallback is True
        assert "registry down" in source.last_error

    def test_recovery_clears_error(self):
        attempts = []

        async def fetch():
            attempts.append(1)
            if len(attempts) == 1:
                raise ServerError("first call fails", status_code=500)
            return ["remote"]

        source = RemoteRecordSource(fetch, lambda: [], name="test")
        asyncio.run(source.load())
        assert source.used_fallback
        assert asyncio.run(source.load()) == ["remote"]
        assert source.last_error is None
        assert not source.used_fallback


class TestFactories:
    def test_dvf_source_falls_back_to_synthetic_sales(self, fast_retry_config):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        source = dvf_source(
            TargetArea(),
            now=date(2025, 6, 1),
            seed=4,
            config=fast_retry_config,
            transport=transport,
        )
        records = asyncio.run(source.load())

        assert source.used_fallback
        assert len(records) == 18
        assert all(r.has_coordinates for r in records)

    def test_dpe_source_uses_remote_records(self, fast_retry_config):
        payload = {"results": [{"Etiquette_DPE": "G", "_geopoint": "47.214,-1.553"}]}
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
        source = dpe_source(TargetArea(), config=fast_retry_config, transport=transport)
        records = asyncio.run(source.load())

        assert not source.used_fallback
        assert [r.energy_class for r in records] == ["G"]


class TestLoadAll:
    def test_preserves_argument_order(self):
        first = StaticRecordSource([1, 2], name="a")
        second = StaticRecordSource([3], name="b")
        assert asyncio.run(load_all(first, second)) == ([1, 2], [3])

    def test_static_source_returns_copies(self):
        source = StaticRecordSource([1, 2])
        records = asyncio.run(source.load())
        records.append(3)
        assert asyncio.run(source.load()) == [1, 2]


class TestMalformedResponses:
    def test_redirect_loop_falls_back(self, fast_retry_config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, headers={"Location": str(request.url)})

        source = dvf_source(
            TargetArea(),
            now=date(2025, 6, 1),
            seed=4,
            config=fast_retry_config,
            transport=httpx.MockTransport(handler),
        )
        records = asyncio.run(source.load())

        assert source.used_fallback
        assert "Unusable response" in source.last_error
        assert len(records) == 18

    def test_non_object_dvf_rows_are_skipped(self, fast_retry_config):
        payload = {"results": ["oops", None, 3]}
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
        source = dvf_source(TargetArea(), config=fast_retry_config, transport=transport)

        assert asyncio.run(source.load()) == []
        assert not source.used_fallback

    def test_non_object_dpe_rows_are_skipped(self, fast_retry_config):
        payload = {"results": ["oops", None, {"Etiquette_DPE": "F", "_geopoint": "47.214,-1.553"}]}
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
        source = dpe_source(TargetArea(), config=fast_retry_config, transport=transport)

        assert [r.energy_class for r in asyncio.run(source.load())] == ["F"]

    def test_results_that_are_not_a_list(self, fast_retry_config):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"results": "oops"}))
        source = dpe_source(TargetArea(), config=fast_retry_config, transport=transport)

        assert asyncio.run(source.load()) == []
