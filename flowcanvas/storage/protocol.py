"""
FlowStore Protocol Definition.

This module defines the interface every flow persistence backend implements.
Both FileFlowStore (local JSON) and HttpFlowStore (REST API) conform to it.
Failures are reported by raising PersistenceError.
"""

from typing import Protocol, Dict, Any, List, runtime_checkable


class PersistenceError(Exception):
    """A flow store operation failed (network, HTTP status, missing or unreadable data)."""
    def __init__(self, message: str, operation: str = "", status_code: int = 0):
        self.operation = operation
        self.status_code = status_code
        super().__init__(message)


@runtime_checkable
class FlowStore(Protocol):
    """
    Abstract protocol for flow persistence.

    The editor never assumes anything about how flows are stored; it only
    loads, saves and publishes whole documents through this interface.
    """

    # --- Backend Information ---

    @property
    def backend_type(self) -> str:
        """Return the backend type identifier ('file' or 'http')."""
        ...

    # --- Flow Operations ---

    def load_flow(self, flow_id: str) -> Dict[str, Any]:
        """
        Load a flow document.

        Returns:
            Dict with 'nodes' and 'edges' lists. The records may use the
            legacy snake_case shape; callers normalize them. An unknown
            flow id returns an empty document.
        """
        ...

    def save_flow(self, flow_id: str, document: Dict[str, Any]) -> None:
        """
        Replace the stored flow with `document` (last writer wins).

        Args:
            flow_id: Flow (bot) identifier
            document: Canonical document with 'nodes' and 'edges'
        """
        ...

    def publish_flow(self, flow_id: str) -> Dict[str, Any]:
        """
        Mark the stored flow as the live version.

        Returns:
            Backend response (may be empty)
        """
        ...

    # --- Reference Lists (read-only) ---

    def list_queues(self) -> List[Dict[str, Any]]:
        """Return queues as dicts with 'id', 'name' and optional 'color'."""
        ...

    def list_tags(self) -> List[Dict[str, Any]]:
        """Return tags as dicts with 'id' and 'name'."""
        ...

    def list_users(self) -> List[Dict[str, Any]]:
        """Return agents as dicts with 'id' and 'name'."""
        ...
