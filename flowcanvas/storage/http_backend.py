"""
HTTP Flow Store.

Implements the FlowStore protocol against the CRM's REST API:
- GET  {base}/api/bots/{id}/flow       -> flow document
- POST {base}/api/bots/{id}/flow       <- {"flow": document}
- POST {base}/api/bots/{id}/publish
- GET  {base}/api/queues | tags | users -> reference lists

Requests are blocking; the app runs them through nicegui's run.io_bound.
"""

import logging
from typing import Dict, Any, List, Optional

import requests

from flowcanvas.storage.protocol import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class HttpFlowStore:
    """Flow store backed by the remote API."""

    def __init__(self, base_url: str, token: Optional[str] = None,
                 timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None):
        """
        Args:
            base_url: API root, e.g. https://crm.example.com
            token: Optional bearer token sent with every request
            timeout: Per-request timeout in seconds
            session: Optional requests.Session (shared connection pool)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    @property
    def backend_type(self) -> str:
        return "http"

    def _request(self, method: str, path: str, operation: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{operation}: {method} {url} failed: {e}")
            raise PersistenceError(f"Could not reach the server: {e}", operation)

        if not response.ok:
            detail = ""
            try:
                body = response.json()
                if isinstance(body, dict):
                    detail = body.get("error") or body.get("message") or ""
            except ValueError:
                detail = response.text[:200]
            logger.error(f"{operation}: {method} {url} returned {response.status_code} {detail}")
            raise PersistenceError(
                f"Server returned {response.status_code}" + (f": {detail}" if detail else ""),
                operation,
                response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise PersistenceError(f"Invalid JSON in response: {e}", operation, response.status_code)

    # --- Flow Operations ---

    def load_flow(self, flow_id: str) -> Dict[str, Any]:
        data = self._request("GET", f"/api/bots/{flow_id}/flow", "load_flow")
        if data is None:
            return {"nodes": [], "edges": []}
        if not isinstance(data, dict):
            raise PersistenceError("Flow response is not an object", "load_flow")
        # Accept {"flow": {...}} as well as a bare document
        if isinstance(data.get("flow"), dict):
            data = data["flow"]
        return data

    def save_flow(self, flow_id: str, document: Dict[str, Any]) -> None:
        self._request("POST", f"/api/bots/{flow_id}/flow", "save_flow", json={"flow": document})
        logger.info(f"Saved flow {flow_id} ({len(document.get('nodes', []))} nodes)")

    def publish_flow(self, flow_id: str) -> Dict[str, Any]:
        data = self._request("POST", f"/api/bots/{flow_id}/publish", "publish_flow")
        logger.info(f"Published flow {flow_id}")
        return data if isinstance(data, dict) else {}

    # --- Reference Lists ---

    def _list(self, name: str) -> List[Dict[str, Any]]:
        data = self._request("GET", f"/api/{name}", f"list_{name}")
        if isinstance(data, dict):
            data = data.get(name, data.get("data"))
        return data if isinstance(data, list) else []

    def list_queues(self) -> List[Dict[str, Any]]:
        return self._list("queues")

    def list_tags(self) -> List[Dict[str, Any]]:
        return self._list("tags")

    def list_users(self) -> List[Dict[str, Any]]:
        return self._list("users")
