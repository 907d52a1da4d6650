"""Tests for counter fetching and the refresh pipeline."""

from datetime import date

import httpx
import pytest

from printledger.core.config import settings
from printledger.models.enums import DeviceStatus, FetchFailure
from printledger.services import counter_source
from printledger.services.counter_source import (
    CounterFetchError,
    build_client,
    decode_body,
    fetch_counter,
    parse_counter,
)
from printledger.services.readings import get_reading, upsert_reading
from printledger.services.refresh import refresh_all, refresh_one

TODAY = date(2024, 1, 10)


def _handler(request: httpx.Request) -> httpx.Response:
    host = request.url.host
    if host == "ok.local":
        return httpx.Response(200, text="<html><body><td>Total</td><td>1,250</td></body></html>")
    if host == "json.local":
        return httpx.Response(200, text='var info = {"model": "M404", "total_pages": "98765"};')
    if host == "slow.local":
        raise httpx.ConnectTimeout("timed out", request=request)
    if host == "refused.local":
        raise httpx.ConnectError("Connection refused", request=request)
    if host == "broken.local":
        return httpx.Response(500, text="Internal Server Error")
    return httpx.Response(200, text="<html><body>Status: ready</body></html>")


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(_handler))


class TestParsing:
    def test_json_counter(self) -> None:
        assert parse_counter('{"total_counter": 4321, "color": 12}') == 4321

    def test_html_fragment(self) -> None:
        assert parse_counter("<span class='cnt'>12,345</span>") == 12345

    def test_scripts_are_ignored_in_html(self) -> None:
        text = "<script>var v = 3;</script><p>Pages 777</p>"
        assert parse_counter(text) == 777

    def test_no_number(self) -> None:
        with pytest.raises(CounterFetchError) as exc_info:
            parse_counter("<p>Sleeping</p>")
        assert exc_info.value.kind == FetchFailure.PARSE_FAILURE

    def test_gbk_body(self) -> None:
        body = "<p>总页数: 5678</p>".encode("gbk")
        text = decode_body(body, "text/html; charset=GBK")
        assert "总页数" in text
        assert parse_counter(text) == 5678

    def test_meta_charset(self) -> None:
        body = b'<meta charset="gb2312">' + "计数 42".encode("gb2312")
        assert "计数" in decode_body(body)

    def test_header_charset_wins_over_meta(self) -> None:
        body = b'<meta charset="gb2312">' + "总页数 42".encode("utf-8")
        assert "总页数" in decode_body(body, "text/html; charset=utf-8")

    def test_client_requires_timeout(self) -> None:
        with pytest.raises(ValueError):
            build_client(timeout=0)

    def test_client_tls_verification_follows_settings(self, monkeypatch) -> None:
        captured = {}

        def fake_client(**kwargs):
            captured.update(kwargs)

        monkeypatch.setattr(counter_source.httpx, "AsyncClient", fake_client)
        build_client()
        assert captured["verify"] is settings.FETCH_VERIFY_TLS
        build_client(verify=True)
        assert captured["verify"] is True


class TestFetchCounter:
    @pytest.mark.asyncio
    async def test_success(self) -> None:
        async with _client() as client:
            assert await fetch_counter(client, "http://ok.local/status") == 1250
            assert await fetch_counter(client, "http://json.local/info.js") == 98765

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("url", "kind"),
        [
            ("http://slow.local/", FetchFailure.TIMEOUT),
            ("http://refused.local/", FetchFailure.CONNECTION_REFUSED),
            ("http://broken.local/", FetchFailure.HTTP_ERROR),
            ("http://idle.local/", FetchFailure.PARSE_FAILURE),
            ("http://printer:abc/", FetchFailure.RESOLVE_FAILURE),
        ],
    )
    async def test_failures_are_classified(self, url: str, kind: FetchFailure) -> None:
        async with _client() as client:
            with pytest.raises(CounterFetchError) as exc_info:
                await fetch_counter(client, url)
        assert exc_info.value.kind == kind


class TestRefresh:
    @pytest.mark.asyncio
    async def test_success_records_reading_and_delta(self, test_db, make_device) -> None:
        device = make_device(target_url="http://ok.local/status")
        upsert_reading(test_db, device.id, date(2024, 1, 9), 1200)

        async with _client() as client:
            result = await refresh_one(test_db, device.id, today=TODAY, client=client)

        assert result.success is True
        assert result.counter == 1250
        assert result.delta == 50
        assert get_reading(test_db, device.id, TODAY).cumulative_counter == 1250
        test_db.refresh(device)
        assert device.status == DeviceStatus.ONLINE
        assert device.last_updated is not None
        assert device.last_error is None

    @pytest.mark.asyncio
    async def test_first_fetch_has_no_delta(self, test_db, make_device) -> None:
        device = make_device(target_url="http://ok.local/status")
        async with _client() as client:
            result = await refresh_one(test_db, device.id, today=TODAY, client=client)
        assert result.success is True
        assert result.delta is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("url", "status", "kind"),
        [
            ("http://slow.local/", DeviceStatus.OFFLINE, FetchFailure.TIMEOUT),
            ("http://refused.local/", DeviceStatus.OFFLINE, FetchFailure.CONNECTION_REFUSED),
            ("http://broken.local/", DeviceStatus.ERROR, FetchFailure.HTTP_ERROR),
            ("http://idle.local/", DeviceStatus.ERROR, FetchFailure.PARSE_FAILURE),
        ],
    )
    async def test_failure_sets_status(self, test_db, make_device, url, status, kind) -> None:
        device = make_device(target_url=url)

        async with _client() as client:
            result = await refresh_one(test_db, device.id, today=TODAY, client=client)

        assert result.success is False
        assert result.status == status
        assert result.error_kind == kind
        assert get_reading(test_db, device.id, TODAY) is None
        test_db.refresh(device)
        assert device.status == status
        assert device.last_error

    @pytest.mark.asyncio
    async def test_missing_target_url(self, test_db, make_device) -> None:
        device = make_device(target_url=None)
        async with _client() as client:
            result = await refresh_one(test_db, device.id, today=TODAY, client=client)
        assert result.status == DeviceStatus.OFFLINE
        assert result.error_kind == FetchFailure.RESOLVE_FAILURE

    @pytest.mark.asyncio
    async def test_one_failure_does_not_abort_batch(self, test_db, make_device) -> None:
        broken = make_device("Broken", target_url="http://broken.local/")
        healthy = make_device("Healthy", target_url="http://ok.local/status")
        make_device("Retired", target_url="http://ok.local/status", is_active=False)

        async with _client() as client:
            results = await refresh_all(test_db, today=TODAY, client=client)

        assert [(r.display_name, r.success) for r in results] == [
            ("Broken", False),
            ("Healthy", True),
        ]
        assert get_reading(test_db, healthy.id, TODAY) is not None
        assert get_reading(test_db, broken.id, TODAY) is None

    @pytest.mark.asyncio
    async def test_malformed_url_does_not_abort_batch(self, test_db, make_device) -> None:
        bad = make_device("A bad port", target_url="http://printer:abc/")
        good = make_device("B good", target_url="http://ok.local/status")

        async with _client() as client:
            results = await refresh_all(test_db, today=TODAY, client=client)

        assert [(r.display_name, r.success) for r in results] == [
            ("A bad port", False),
            ("B good", True),
        ]
        assert results[0].error_kind == FetchFailure.RESOLVE_FAILURE
        assert results[0].status == DeviceStatus.OFFLINE
        assert get_reading(test_db, bad.id, TODAY) is None
        assert get_reading(test_db, good.id, TODAY).cumulative_counter == 1250
