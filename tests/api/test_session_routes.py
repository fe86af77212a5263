"""
End-to-end tests for the session API with a mocked Gemini client.

The real ImageEditService, ImageEncoder and SessionStore run; only the
GenAI client is replaced.
"""

import base64
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from fakes import image_part, make_image_bytes, make_response, text_part
from main import create_app

RESULT_BYTES = b"\x89PNG\r\n\x1a\nedited"


@pytest.fixture
def genai_client() -> MagicMock:
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=make_response(image_part(RESULT_BYTES)))
    return client


@pytest.fixture
def client(genai_client, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    with patch("main.genai.Client", return_value=genai_client):
        with TestClient(create_app()) as test_client:
            yield test_client


def _new_session(client: TestClient) -> str:
    response = client.post("/api/sessions")
    assert response.status_code == 200
    return response.json()["session_id"]


def _upload(client: TestClient, session_id: str, data: bytes, content_type: str = "image/jpeg"):
    return client.post(
        f"/api/sessions/{session_id}/image",
        files={"image": ("photo.jpg", data, content_type)},
    )


class TestSessionLifecycle:
    def test_new_session_is_idle_with_default_instruction(self, client: TestClient) -> None:
        state = client.post("/api/sessions").json()

        assert state["phase"] == "IDLE"
        assert "IT company office" in state["instruction"]
        assert state["source_image"] is None
        assert state["can_generate"] is False

    def test_unknown_session(self, client: TestClient) -> None:
        assert client.get("/api/sessions/missing").status_code == 404
        assert client.post("/api/sessions/missing/reset").status_code == 404
        assert client.delete("/api/sessions/missing").status_code == 404

    def test_discard(self, client: TestClient) -> None:
        session_id = _new_session(client)

        assert client.delete(f"/api/sessions/{session_id}").json()["discarded"] is True
        assert client.get(f"/api/sessions/{session_id}").status_code == 404


class TestImageSelect:
    def test_upload_jpeg(self, client: TestClient) -> None:
        session_id = _new_session(client)
        raw = make_image_bytes("JPEG", size=(96, 96))

        state = _upload(client, session_id, raw).json()

        assert state["applied"] is True
        assert state["source_mime_type"] == "image/jpeg"
        assert state["source_image"].startswith("data:image/jpeg;base64,")
        assert base64.b64decode(state["source_image"].split(",", 1)[1]) == raw
        assert state["can_generate"] is True

    def test_non_image_rejected(self, client: TestClient) -> None:
        session_id = _new_session(client)

        response = _upload(client, session_id, b"hello", "text/plain")

        assert response.status_code == 415
        assert client.get(f"/api/sessions/{session_id}").json()["source_image"] is None

    def test_mislabelled_image_rejected(self, client: TestClient, png_bytes: bytes) -> None:
        session_id = _new_session(client)

        response = _upload(client, session_id, png_bytes, "image/jpeg")

        assert response.status_code == 400
        assert "does not match" in response.json()["detail"]


class TestGenerate:
    def test_success(self, client: TestClient, genai_client: MagicMock, jpeg_bytes: bytes) -> None:
        session_id = _new_session(client)
        _upload(client, session_id, jpeg_bytes)

        state = client.post(f"/api/sessions/{session_id}/generate", json={"instruction": "make it blue"}).json()

        assert state["submitted"] is True
        assert state["phase"] == "SUCCESS"
        assert state["instruction"] == "make it blue"
        assert state["generated_image"] == "data:image/png;base64," + base64.b64encode(RESULT_BYTES).decode()
        genai_client.aio.models.generate_content.assert_awaited_once()

    def test_guard_without_image(self, client: TestClient, genai_client: MagicMock) -> None:
        session_id = _new_session(client)

        state = client.post(f"/api/sessions/{session_id}/generate").json()

        assert state["submitted"] is False
        assert state["phase"] == "IDLE"
        genai_client.aio.models.generate_content.assert_not_awaited()

    def test_guard_with_blank_instruction(self, client: TestClient, genai_client: MagicMock, jpeg_bytes: bytes) -> None:
        session_id = _new_session(client)
        _upload(client, session_id, jpeg_bytes)
        client.put(f"/api/sessions/{session_id}/instruction", json={"instruction": "  "})

        state = client.post(f"/api/sessions/{session_id}/generate").json()

        assert state["submitted"] is False
        genai_client.aio.models.generate_content.assert_not_awaited()

    def test_instruction_kept_while_edit_running(
        self, client: TestClient, genai_client: MagicMock, jpeg_bytes: bytes
    ) -> None:
        session_id = _new_session(client)
        _upload(client, session_id, jpeg_bytes)
        client.put(f"/api/sessions/{session_id}/instruction", json={"instruction": "make it blue"})
        client.app.state.session_store.get(session_id).begin_generate()

        state = client.post(f"/api/sessions/{session_id}/generate", json={"instruction": "make it red"}).json()

        assert state["submitted"] is False
        assert state["phase"] == "LOADING"
        assert state["instruction"] == "make it blue"
        genai_client.aio.models.generate_content.assert_not_awaited()

    def test_network_error(self, client: TestClient, genai_client: MagicMock, jpeg_bytes: bytes) -> None:
        genai_client.aio.models.generate_content.side_effect = ConnectionError("Network unreachable")
        session_id = _new_session(client)
        _upload(client, session_id, jpeg_bytes)

        response = client.post(f"/api/sessions/{session_id}/generate")
        state = response.json()

        assert response.status_code == 200
        assert state["phase"] == "ERROR"
        assert state["error_kind"] == "service"
        assert "Network unreachable" in state["error"]

    def test_no_image_in_response(self, client: TestClient, genai_client: MagicMock, jpeg_bytes: bytes) -> None:
        genai_client.aio.models.generate_content.return_value = make_response(text_part("Sorry."))
        session_id = _new_session(client)
        _upload(client, session_id, jpeg_bytes)

        state = client.post(f"/api/sessions/{session_id}/generate").json()

        assert state["phase"] == "ERROR"
        assert state["error_kind"] == "empty_result"
        assert "No image generated" in state["error"]

    def test_reset_after_success(self, client: TestClient, jpeg_bytes: bytes) -> None:
        session_id = _new_session(client)
        uploaded = _upload(client, session_id, jpeg_bytes).json()
        client.post(f"/api/sessions/{session_id}/generate", json={"instruction": "make it blue"})

        state = client.post(f"/api/sessions/{session_id}/reset").json()

        assert state["phase"] == "IDLE"
        assert state["generated_image"] is None
        assert state["source_image"] == uploaded["source_image"]
        assert state["instruction"] == "make it blue"


class TestDownload:
    def test_download_generated_png(self, client: TestClient, jpeg_bytes: bytes) -> None:
        session_id = _new_session(client)
        _upload(client, session_id, jpeg_bytes)
        client.post(f"/api/sessions/{session_id}/generate")

        response = client.get(f"/api/sessions/{session_id}/result")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert "enhanced-profile.png" in response.headers["content-disposition"]
        assert response.content == RESULT_BYTES

    def test_download_without_result(self, client: TestClient) -> None:
        session_id = _new_session(client)

        assert client.get(f"/api/sessions/{session_id}/result").status_code == 404


def test_health(client: TestClient) -> None:
    body = client.get("/health").json()

    assert body["ok"] is True
    assert body["genai_available"] is True


def test_index_served(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert "DevProfile" in response.text
