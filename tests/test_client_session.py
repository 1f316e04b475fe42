import asyncio
import itertools
import json
from datetime import date

import httpx
import pytest
from shapely.geometry import LineString, Point, Polygon

from geomeasure.client.api import MeasurementApiError, MeasurementsClient
from geomeasure.client.geometry import from_lonlat
from geomeasure.client.session import Drawing, DrawingSession


def _mock_client(handler) -> MeasurementsClient:
    return MeasurementsClient(base_url="http://api.test/api", transport=httpx.MockTransport(handler))


def _run(coro):
    return asyncio.run(coro)


_ids = itertools.count(1)


def _echo_create(request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content)
    body.update({"_id": next(_ids), "createdAt": "2026-01-01T00:00:00", "updatedAt": "2026-01-01T00:00:00"})
    return httpx.Response(201, json=body)


def test_finishing_a_line_posts_one_linestring():
    posted = []

    def handler(request):
        assert request.method == "POST"
        assert request.url.path == "/api/measurements"
        posted.append(json.loads(request.content))
        return _echo_create(request)

    session = DrawingSession()
    session.set_draw_mode("LineString")
    session.add_drawing(from_lonlat(LineString([(4.35, 50.85), (4.36, 50.85)])))

    async def go():
        async with _mock_client(handler) as client:
            return await session.save_pending(client)

    assert _run(go()) is True
    assert len(posted) == 1
    assert posted[0]["type"] == "LineString"
    assert posted[0]["unit"] == "m"
    assert 600 < posted[0]["value"] < 800
    assert session.pending == []
    assert len(session.saved) == 1
    assert session.saved[0].record["_id"]
    assert session.status.startswith("Saved 1")


def test_batch_with_one_network_failure_keeps_failed_pending():
    def handler(request):
        body = json.loads(request.content)
        if body["type"] == "Polygon":
            raise httpx.ConnectError("connection refused", request=request)
        return _echo_create(request)

    session = DrawingSession()
    session.add_drawing(from_lonlat(LineString([(4.35, 50.85), (4.36, 50.85)])))
    failing = session.add_drawing(from_lonlat(Polygon([(4.35, 50.85), (4.36, 50.85), (4.36, 50.86)])))
    session.add_drawing(from_lonlat(LineString([(4.36, 50.86), (4.37, 50.86)])))

    async def go():
        async with _mock_client(handler) as client:
            return await session.save_pending(client)

    assert _run(go()) is False
    assert len(session.saved) == 2
    assert session.pending == [failing]
    assert session.status.startswith("Save failed for 1 of 3")


def test_degenerate_drawings_are_not_submitted():
    calls = []

    def handler(request):
        calls.append(request)
        return _echo_create(request)

    session = DrawingSession()
    session.add_drawing(LineString([(0, 0), (0, 0)]))

    async def go():
        async with _mock_client(handler) as client:
            return await session.save_pending(client)

    assert _run(go()) is True
    assert calls == []
    assert session.pending == []
    assert session.saved == []


def test_draw_mode():
    session = DrawingSession()
    session.set_draw_mode("Polygon")
    assert session.draw_mode == "Polygon"
    session.stop_drawing()
    assert session.draw_mode is None
    with pytest.raises(ValueError):
        session.set_draw_mode("Circle")


def test_delete_latest_not_found_sets_status():
    def handler(request):
        return httpx.Response(404, json={"error": "No measurements to delete"})

    session = DrawingSession()

    async def go():
        async with _mock_client(handler) as client:
            return await session.delete_latest(client)

    assert _run(go()) is False
    assert session.status == "Delete failed: No measurements to delete"


def test_refresh_reports_store_unavailable():
    def handler(request):
        return httpx.Response(503, json={"error": "Database unavailable", "details": "boom"})

    session = DrawingSession()

    async def go():
        async with _mock_client(handler) as client:
            return await session.refresh(client)

    assert _run(go()) is False
    assert session.status == "Could not load measurements: Database unavailable: boom"


def test_client_raises_api_error_with_status():
    def handler(request):
        return httpx.Response(400, json={"error": "Invalid payload"})

    async def go():
        async with _mock_client(handler) as client:
            await client.create_measurement({"type": "LineString"})

    with pytest.raises(MeasurementApiError) as excinfo:
        _run(go())
    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "Invalid payload"


def test_download_writes_dated_json(tmp_path):
    items = [{"_id": 2, "type": "Polygon"}, {"_id": 1, "type": "LineString"}]

    def handler(request):
        assert request.url.path == "/api/measurements"
        return httpx.Response(200, json=items)

    session = DrawingSession()

    async def go():
        async with _mock_client(handler) as client:
            return await session.download(client, tmp_path)

    out = _run(go())
    assert out.name == f"measurements-{date.today().isoformat()}.json"
    assert json.loads(out.read_text(encoding="utf-8")) == items


def test_add_drawing_rejects_unsupported_kinds():
    session = DrawingSession()
    with pytest.raises(ValueError):
        session.add_drawing(Point(0, 0))
    with pytest.raises(ValueError):
        session.add_drawing({"type": "Point", "coordinates": [0, 0]})
    assert session.pending == []


def test_unconvertible_drawing_does_not_block_the_rest_of_the_batch():
    posted = []

    def handler(request):
        posted.append(json.loads(request.content))
        return _echo_create(request)

    session = DrawingSession()
    line = session.add_drawing(from_lonlat(LineString([(4.35, 50.85), (4.36, 50.85)])))
    point = Drawing(geometry=Point(0, 0))
    session.pending.append(point)

    async def go():
        async with _mock_client(handler) as client:
            return await session.save_pending(client)

    assert _run(go()) is False
    assert [p["type"] for p in posted] == ["LineString"]
    assert session.saved == [line]
    assert session.pending == [point]
    assert session.status.startswith("Save failed for 1 of 2")


def test_unexpected_create_error_keeps_drawing_pending():
    def handler(request):
        body = json.loads(request.content)
        if body["type"] == "Polygon":
            return httpx.Response(201, content=b"not json")
        return _echo_create(request)

    session = DrawingSession()
    line = session.add_drawing(from_lonlat(LineString([(4.35, 50.85), (4.36, 50.85)])))
    poly = session.add_drawing(from_lonlat(Polygon([(4.35, 50.85), (4.36, 50.85), (4.36, 50.86)])))

    async def go():
        async with _mock_client(handler) as client:
            return await session.save_pending(client)

    assert _run(go()) is False
    assert session.saved == [line]
    assert session.pending == [poly]
    assert session.status.startswith("Save failed for 1 of 2")
