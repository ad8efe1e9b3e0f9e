import io
from typing import Dict, Iterator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from doctavende.api.deps import get_request_gateway
from doctavende.main import app


def bearer(user_id: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer token-{user_id}"}


@pytest.fixture
def client(gateway) -> Iterator[TestClient]:
    # Sin context manager: el lifespan intentaría conectarse a Supabase
    app.dependency_overrides[get_request_gateway] = lambda: gateway
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def owner_headers() -> Dict[str, str]:
    return bearer("owner-1")


@pytest.fixture
def other_owner_headers() -> Dict[str, str]:
    return bearer("owner-2")


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return bearer("admin-1")


@pytest.fixture
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (300, 300), (20, 120, 200)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def seeded(supabase_client, make_business, make_promotion):
    supabase_client.table("businesses").rows = [
        make_business(id="biz-1", created_at="2026-01-01T00:00:00+00:00"),
        make_business(
            id="biz-2",
            owner_id="owner-2",
            name="Boutique Luna",
            description=None,
            category="Moda",
            phone=None,
            created_at="2026-02-01T00:00:00+00:00",
        ),
        make_business(
            id="biz-3",
            name="Rotisería Oculta",
            active=False,
            subscription_expires_at="2025-01-01T00:00:00+00:00",
            created_at="2026-03-01T00:00:00+00:00",
        ),
    ]
    supabase_client.table("promotions").rows = [
        make_promotion(id="promo-1", business_id="biz-1", days_of_week=[1, 3]),
        make_promotion(
            id="promo-2",
            business_id="biz-2",
            title="Liquidación de invierno",
            description=None,
            days_of_week=[5, 6],
            created_at="2026-02-02T00:00:00+00:00",
        ),
        make_promotion(
            id="promo-3",
            business_id="biz-3",
            title="Pollo entero",
            days_of_week=[0, 1, 2, 3, 4, 5, 6],
            created_at="2026-03-02T00:00:00+00:00",
        ),
    ]
    return supabase_client
