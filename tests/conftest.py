# ============================================================================
# FILE: tests/conftest.py
# ============================================================================
"""
Pytest configuration and shared fixtures for testing.
"""

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from src.medibill_client.core.storage import LocalStorage
from src.medibill_client.core.transport import ApiTransport


@pytest_asyncio.fixture
async def backend():
    """
    Start in-process aiohttp backends.

    Usage:
        base_url = await backend(web.get("/profile", handler), ...)
    """
    servers = []

    async def start(*routes):
        app = web.Application()
        app.add_routes(list(routes))
        server = TestServer(app)
        await server.start_server()
        servers.append(server)
        return str(server.make_url(""))

    yield start

    for server in servers:
        await server.close()


@pytest_asyncio.fixture
async def make_transport():
    """Create ApiTransports that are closed after the test."""
    transports = []

    def make(base_url, **kwargs):
        transport = ApiTransport(base_url=base_url, **kwargs)
        transports.append(transport)
        return transport

    yield make

    for transport in transports:
        await transport.close()


@pytest.fixture
def storage(tmp_path):
    """Local storage backed by a temp file"""
    return LocalStorage(tmp_path / "local_storage.json")


@pytest.fixture
def sample_profile():
    return {"profile": {"user_id": 42, "username": "asha", "email": "asha@example.com"}}


@pytest.fixture
def make_report():
    """Build an analysis report like the one the backend returns"""
    def make(compliance_score=0.95, flag_count=0):
        return {
            "file_id": "f-001",
            "extracted_id": "x-001",
            "file": {
                "filename": "bill.pdf",
                "storage_path": "uploads/bill.pdf",
                "uploaded_at": "2024-01-15T10:00:00",
                "size": 2048,
            },
            "raw_text": "City Hospital Invoice",
            "structured": {
                "line_items": [
                    {"description": "Room charges", "quantity": 2, "unit_price": 1500.0, "total": 3000.0}
                ],
                "meta": {"detected_hospital": "City Hospital"},
            },
            "validation": {
                "flags": [
                    {
                        "id": f"flag-{i}",
                        "rule": "duplicate_charge",
                        "severity": "warning",
                        "description": "Possible duplicate line item",
                        "evidence": "Room charges",
                        "created_at": "2024-01-15T10:00:01",
                    }
                    for i in range(flag_count)
                ],
                "summary": {
                    "compliance_score": compliance_score,
                    "issues_found": [],
                    "recommendations": ["Verify room charges"],
                },
            },
            "confidence_scores": {
                "ocr_confidence": 0.9,
                "extraction_confidence": 0.85,
                "overall_confidence": 0.87,
            },
            "report": {"report_path": "reports/f-001.html", "report_type": "html"},
        }

    return make
