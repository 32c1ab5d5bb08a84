"""
Tests for flow store backends.

Tests both FileFlowStore and HttpFlowStore (with the HTTP layer mocked),
plus the backend factory.
"""

import json
import pytest
from unittest.mock import MagicMock, patch

import requests

from flowcanvas.storage.protocol import FlowStore, PersistenceError
from flowcanvas.storage.file_backend import FileFlowStore
from flowcanvas.storage.http_backend import HttpFlowStore
from flowcanvas.storage.factory import create_backend, get_backend_type

SAMPLE_DOC = {
    "nodes": [{"id": "s", "type": "start", "position": {"x": 0, "y": 0}, "data": {"label": "START"}}],
    "edges": [],
}


def make_response(status_code=200, body=None):
    """Build a fake requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.content = json.dumps(body).encode() if body is not None else b""
    response.json.return_value = body
    response.text = json.dumps(body) if body is not None else ""
    return response


class TestFileFlowStore:
    """Tests for the local JSON store."""

    @pytest.fixture
    def store(self, tmp_path):
        return FileFlowStore(tmp_path / "db")

    def test_conforms_to_protocol(self, store):
        assert isinstance(store, FlowStore)
        assert store.backend_type == "file"

    def test_missing_flow_loads_empty(self, store):
        assert store.load_flow("new-bot") == {"nodes": [], "edges": []}

    def test_save_then_load(self, store):
        store.save_flow("bot-1", SAMPLE_DOC)
        assert store.load_flow("bot-1") == SAMPLE_DOC
        assert (store.flows_dir / "bot-1.json").exists()
        assert not (store.flows_dir / "bot-1.json.tmp").exists()

    def test_last_writer_wins(self, store):
        store.save_flow("bot-1", SAMPLE_DOC)
        store.save_flow("bot-1", {"nodes": [], "edges": []})
        assert store.load_flow("bot-1") == {"nodes": [], "edges": []}

    def test_publish_copies_saved_flow(self, store):
        store.save_flow("bot-1", SAMPLE_DOC)
        result = store.publish_flow("bot-1")
        assert result["published"] is True
        with open(store.published_dir / "bot-1.json", encoding="utf-8") as f:
            assert json.load(f) == SAMPLE_DOC

    def test_publish_unsaved_flow_fails(self, store):
        with pytest.raises(PersistenceError):
            store.publish_flow("never-saved")

    @pytest.mark.parametrize("flow_id", ["", "../escape", "a/b", ".."])
    def test_invalid_flow_ids(self, store, flow_id):
        with pytest.raises(PersistenceError):
            store.load_flow(flow_id)

    def test_corrupt_file_raises(self, store):
        (store.flows_dir / "bad.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError) as exc:
            store.load_flow("bad")
        assert exc.value.operation == "load_flow"

    def test_reference_lists(self, store):
        queues = [{"id": "q1", "name": "Sales", "color": "#f00"}]
        (store.reference_dir / "queues.json").write_text(json.dumps(queues), encoding="utf-8")
        assert store.list_queues() == queues
        assert store.list_tags() == []
        assert store.list_users() == []


class TestHttpFlowStore:
    """Tests for the REST store with requests mocked out."""

    @pytest.fixture
    def session(self):
        return requests.Session()

    @pytest.fixture
    def store(self, session):
        return HttpFlowStore("https://crm.example.com/", token="secret", timeout=5, session=session)

    def test_bearer_token_header(self, store, session):
        assert session.headers["Authorization"] == "Bearer secret"
        assert store.backend_type == "http"
        assert isinstance(store, FlowStore)

    def test_save_posts_wrapped_document(self, store, session):
        with patch.object(session, "request", return_value=make_response(200, {"ok": True})) as request:
            store.save_flow("bot-9", SAMPLE_DOC)

        request.assert_called_once_with(
            "POST", "https://crm.example.com/api/bots/bot-9/flow", timeout=5, json={"flow": SAMPLE_DOC}
        )

    def test_load_unwraps_flow_key(self, store, session):
        with patch.object(session, "request", return_value=make_response(200, {"flow": SAMPLE_DOC})) as request:
            assert store.load_flow("bot-9") == SAMPLE_DOC
        assert request.call_args[0] == ("GET", "https://crm.example.com/api/bots/bot-9/flow")

    def test_load_empty_body(self, store, session):
        with patch.object(session, "request", return_value=make_response(204)):
            assert store.load_flow("bot-9") == {"nodes": [], "edges": []}

    def test_publish(self, store, session):
        with patch.object(session, "request", return_value=make_response(200, {"status": "live"})) as request:
            assert store.publish_flow("bot-9") == {"status": "live"}
        assert request.call_args[0] == ("POST", "https://crm.example.com/api/bots/bot-9/publish")

    def test_http_error_raises_with_status(self, store, session):
        response = make_response(403, {"error": "Forbidden"})
        with patch.object(session, "request", return_value=response):
            with pytest.raises(PersistenceError) as exc:
                store.save_flow("bot-9", SAMPLE_DOC)
        assert exc.value.status_code == 403
        assert "Forbidden" in str(exc.value)

    def test_network_error_raises(self, store, session):
        with patch.object(session, "request", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(PersistenceError) as exc:
                store.load_flow("bot-9")
        assert exc.value.operation == "load_flow"

    def test_invalid_json_raises(self, store, session):
        response = make_response(200, {"x": 1})
        response.json.side_effect = ValueError("bad json")
        with patch.object(session, "request", return_value=response):
            with pytest.raises(PersistenceError):
                store.load_flow("bot-9")

    def test_reference_lists_accept_wrapped_and_bare(self, store, session):
        queues = [{"id": "q1", "name": "Support", "color": "#0f0"}]
        with patch.object(session, "request", return_value=make_response(200, {"queues": queues})):
            assert store.list_queues() == queues
        with patch.object(session, "request", return_value=make_response(200, queues)):
            assert store.list_tags() == queues


class TestFactory:

    def test_file_backend_by_default(self, tmp_path):
        store = create_backend({"storage_backend": "file", "data_dir": str(tmp_path)})
        assert isinstance(store, FileFlowStore)
        assert store.root == tmp_path

    def test_http_backend(self):
        store = create_backend({
            "storage_backend": "http",
            "api_base_url": "http://api.local",
            "api_token": None,
            "request_timeout": 3,
        })
        assert isinstance(store, HttpFlowStore)
        assert store.base_url == "http://api.local"
        assert store.timeout == 3.0

    def test_unknown_backend_falls_back_to_file(self):
        assert get_backend_type({"storage_backend": "supabase"}) == "file"
        assert get_backend_type({}) == "file"
