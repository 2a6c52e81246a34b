"""
Tests for the studio HTTP server.

Covers:
1. State and health endpoints
2. Logo generation and upload endpoints
3. Animation endpoint validation and busy handling
4. Credential selection
5. Media endpoints

Run with:
    python -m pytest tests/test_server.py -v
"""

import asyncio
import os
import sys
import time
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Config
from core.credentials import EnvCredentialProvider
from services.generation.models import ImageArtifact
from services.generation.uploads import INVALID_IMAGE_MESSAGE
from services.orchestrator import server
from services.orchestrator.state import EMPTY_PROMPT_MESSAGE, NO_IMAGE_MESSAGE
from services.orchestrator.studio import LogoStudio


class FakeGateway:
    def __init__(self):
        self.on_progress = None
        self.generate_image = AsyncMock(
            return_value=ImageArtifact.from_bytes(b"\x89PNG generated", "image/png")
        )
        self.animate_image = AsyncMock()
        self.close = MagicMock()


def wait_for_state(client: TestClient, predicate, timeout: float = 2.0) -> dict:
    """Poll /state until the predicate holds."""
    deadline = time.monotonic() + timeout
    while True:
        state = client.get("/state").json()
        if predicate(state) or time.monotonic() > deadline:
            return state
        time.sleep(0.01)


@pytest.fixture
def config(tmp_path):
    cfg = Config()
    cfg.polling.interval_seconds = 0
    cfg.studio.status_interval_seconds = 0.01
    cfg.studio.output_dir = str(tmp_path)
    return cfg


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def credentials():
    return EnvCredentialProvider(api_key="test-key")


@pytest.fixture
def client(gateway, credentials, config):
    server._studio = LogoStudio(gateway=gateway, credentials=credentials, config=config)
    with TestClient(server.app) as test_client:
        yield test_client
    server._studio = None


class TestInfoEndpoints:
    """Test read-only endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "POST /animate" in response.json()["endpoints"]

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["busy"] is False

    def test_state_reflects_credential_refresh(self, client, config):
        state = client.get("/state").json()
        assert state["credential_selected"] is True
        assert state["prompt"] == config.studio.default_prompt
        assert state["aspect_ratio"] == "16:9"
        assert state["actions_enabled"] is True

    def test_media_404_before_results(self, client):
        assert client.get("/image").status_code == 404
        assert client.get("/video").status_code == 404


class TestLogoEndpoints:
    """Test generation and upload."""

    def test_blank_description_is_validation_error(self, client, gateway):
        response = client.post("/logo", json={"description": "   "})

        assert response.status_code == 200
        assert response.json()["error"] == EMPTY_PROMPT_MESSAGE
        gateway.generate_image.assert_not_awaited()

    def test_generate_runs_in_background(self, client, gateway):
        response = client.post("/logo", json={"description": "A minimalist owl icon"})
        assert response.status_code == 202

        state = wait_for_state(client, lambda s: s["image_phase"] == "ready")

        assert state["has_image"] is True
        gateway.generate_image.assert_awaited_once_with("A minimalist owl icon")

        image = client.get("/image")
        assert image.status_code == 200
        assert image.headers["content-type"] == "image/png"
        assert image.content == b"\x89PNG generated"

    def test_upload_rejects_non_image(self, client):
        response = client.post("/upload", files={"file": ("notes.txt", b"hello", "text/plain")})

        assert response.status_code == 200
        assert response.json()["error"] == INVALID_IMAGE_MESSAGE
        assert response.json()["has_image"] is False

    def test_upload_png(self, client):
        response = client.post("/upload", files={"file": ("logo.png", b"\x89PNG up", "image/png")})

        assert response.status_code == 200
        assert response.json()["has_image"] is True
        assert client.get("/image").content == b"\x89PNG up"


class TestAnimateEndpoint:
    """Test the animation endpoint."""

    def test_without_image(self, client, gateway):
        response = client.post("/animate", json={})

        assert response.status_code == 200
        assert response.json()["error"] == NO_IMAGE_MESSAGE
        gateway.animate_image.assert_not_awaited()

    def test_invalid_aspect_ratio(self, client):
        response = client.post("/animate", json={"aspect_ratio": "4:3"})
        assert response.status_code == 422

    def test_busy_studio_rejects_actions(self, client, gateway):
        async def animate(image, aspect_ratio):
            await asyncio.sleep(60)

        gateway.animate_image.side_effect = animate
        client.post("/upload", files={"file": ("logo.png", b"\x89PNG up", "image/png")})

        response = client.post("/animate", json={"aspect_ratio": "9:16"})
        assert response.status_code == 202

        state = wait_for_state(client, lambda s: s["is_generating_video"])
        assert state["is_generating_video"] is True
        assert state["aspect_ratio"] == "9:16"

        assert client.post("/logo", json={"description": "owl"}).status_code == 409
        assert client.post("/animate", json={}).status_code == 409


class TestCredentialEndpoint:
    """Test API key selection."""

    @pytest.fixture
    def credentials(self, monkeypatch):
        monkeypatch.delenv("API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        return EnvCredentialProvider()

    def test_select_key(self, client, credentials):
        assert client.get("/state").json()["credential_selected"] is False

        response = client.post("/credentials", json={"api_key": "new-key"})

        assert response.status_code == 200
        assert response.json()["credential_selected"] is True
        assert credentials.get_api_key() == "new-key"

    def test_blank_key_rejected(self, client):
        response = client.post("/credentials", json={"api_key": "  "})
        assert response.status_code == 422
