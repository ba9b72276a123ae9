"""
Shared fixtures for NutriScan tests.

Backend payloads mirror what the scoring backend returns for a
plate photographed three times (overall score 72).
"""

from typing import Any, Callable, Dict, Iterator, List
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
import structlog

from nutriscan.application.session.session_store import SessionStore
from nutriscan.domain.session.events import SessionEnded
from nutriscan.domain.session.ports import IAuthGateway
from nutriscan.infrastructure.events.in_memory_bus import InMemoryEventBus
from nutriscan.infrastructure.http.api_client import NutriScanApiClient
from nutriscan.infrastructure.storage.in_memory_store import InMemoryKeyValueStore

TEST_BASE_URL = "http://backend.test/api"


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Undo configure_logging so no test logs to a closed capture stream."""
    yield
    structlog.reset_defaults()


# ═══════════════════════════════════════════════════════════
# BACKEND PAYLOADS
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def auth_payload() -> Dict[str, Any]:
    """Successful /auth/login body."""
    return {
        "token": "tok-123",
        "user": {
            "id": "u1",
            "email": "ada@example.com",
            "weight_kg": 80,
            "height_cm": 180,
        },
    }


@pytest.fixture
def scan_response() -> Dict[str, Any]:
    """Successful /scan/enhanced body."""
    return {
        "nutritionData": {
            "calories": 540,
            "totalFat": 22.5,
            "sodium": 480,
            "sugars": 12,
            "protein": 31,
            "servingSize": "1 plate",
            "glycemicIndex": 55,
        },
        "healthScore": {
            "overallScore": 72,
            "breakdown": {
                "sugarScore": 80,
                "fatScore": 55,
                "sodiumScore": 65,
                "calorieScore": 88,
            },
            "warnings": ["High in saturated fat"],
            "recommendations": ["Add a side of vegetables"],
            "category": "Good",
        },
        "aiAdvice": {
            "explanation": "Balanced plate with moderate fat.",
            "healthyAlternatives": ["Grilled chicken salad"],
            "detailedAdvice": "Swap the fries for a baked potato.",
        },
        "scanType": "enhanced",
        "foodName": "Chicken with fries",
        "confidence": "high",
        "disclaimer": "Not medical advice.",
    }


# ═══════════════════════════════════════════════════════════
# SESSION FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def ended_events(event_bus: InMemoryEventBus) -> List[SessionEnded]:
    """Collects every SessionEnded published on the bus."""
    events: List[SessionEnded] = []

    async def collect(event: SessionEnded) -> None:
        events.append(event)

    event_bus.subscribe(SessionEnded, collect)
    return events


@pytest.fixture
def mock_auth_gateway(auth_payload: Dict[str, Any]) -> Any:
    """Auth gateway answering every login/register with auth_payload."""
    gateway = AsyncMock(spec=IAuthGateway)
    gateway.login = AsyncMock(return_value=auth_payload)
    gateway.register = AsyncMock(return_value=auth_payload)
    return gateway


@pytest.fixture
def session_store(
    mock_auth_gateway: Any,
    kv_store: InMemoryKeyValueStore,
    event_bus: InMemoryEventBus,
) -> SessionStore:
    """Session store without a live session."""
    return SessionStore(mock_auth_gateway, kv_store, event_bus)


@pytest_asyncio.fixture
async def logged_in_store(session_store: SessionStore) -> SessionStore:
    """Session store holding token tok-123."""
    await session_store.login("ada@example.com", "secret1")
    return session_store


# ═══════════════════════════════════════════════════════════
# HTTP FIXTURES
# ═══════════════════════════════════════════════════════════


Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def recorded_requests() -> List[httpx.Request]:
    """Requests seen by the mock transport, in order."""
    return []


@pytest.fixture
def make_client(recorded_requests: List[httpx.Request]) -> Callable[[Handler], NutriScanApiClient]:
    """Factory for an API client backed by httpx.MockTransport.

    Every request is recorded (body read) before the handler runs.
    """

    def factory(handler: Handler, **kwargs: Any) -> NutriScanApiClient:
        def recording(request: httpx.Request) -> httpx.Response:
            request.read()
            recorded_requests.append(request)
            return handler(request)

        kwargs.setdefault("retry_backoff", 0)
        return NutriScanApiClient(
            base_url=TEST_BASE_URL,
            transport=httpx.MockTransport(recording),
            **kwargs,
        )

    return factory
