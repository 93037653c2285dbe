from httpx import ASGITransport, AsyncClient

from brewhaven.main import app


async def test_root_endpoint_basic_response():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/")
    assert resp.status_code == 200
    body = resp.json()
    assert body.get("message") == "Brew Haven API"
    assert body.get("status") == "operational"


async def test_health_pings_database():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["database"] == "connected"


async def test_orders_require_authentication():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/api/orders")
    assert resp.status_code == 401
