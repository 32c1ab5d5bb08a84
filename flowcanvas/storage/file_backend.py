"""
File-based Flow Store.

Implements the FlowStore protocol with plain JSON files so the editor can be
used without the backend API (local development, demos, tests).

Structure:
- {root}/flows/{flow_id}.json: one document per flow
- {root}/published/{flow_id}.json: copy of the last published document
- {root}/reference/{queues,tags,users}.json: reference lists
"""

import json
import logging
import re
import shutil
from pathlib import Path
from typing import Dict, Any, List, Union

from flowcanvas.paths import store_dirs
from flowcanvas.storage.protocol import PersistenceError

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r'^[A-Za-z0-9_.-]+$')


class FileFlowStore:
    """Local JSON file flow store."""

    def __init__(self, root: Union[str, Path]):
        """
        Args:
            root: Directory holding flows/, published/ and reference/
        """
        self.root = Path(root)
        dirs = store_dirs(self.root)
        self.flows_dir = dirs["flows"]
        self.published_dir = dirs["published"]
        self.reference_dir = dirs["reference"]

    @property
    def backend_type(self) -> str:
        return "file"

    def _flow_path(self, flow_id: str) -> Path:
        if not flow_id or not _SAFE_ID.match(flow_id) or flow_id in ('.', '..'):
            raise PersistenceError(f"Invalid flow id: {flow_id!r}", "flow_path")
        return self.flows_dir / f"{flow_id}.json"

    def _read_json(self, path: Path, operation: str) -> Any:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to read {path.name}: {e}", operation)

    # --- Flow Operations ---

    def load_flow(self, flow_id: str) -> Dict[str, Any]:
        path = self._flow_path(flow_id)
        if not path.exists():
            logger.info(f"No stored flow {flow_id}, starting empty")
            return {"nodes": [], "edges": []}
        data = self._read_json(path, "load_flow")
        if not isinstance(data, dict):
            raise PersistenceError(f"Flow file {path.name} does not contain an object", "load_flow")
        return data

    def save_flow(self, flow_id: str, document: Dict[str, Any]) -> None:
        path = self._flow_path(flow_id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to save flow {flow_id}: {e}", "save_flow")
        logger.info(f"Saved flow {flow_id} to {path}")

    def publish_flow(self, flow_id: str) -> Dict[str, Any]:
        path = self._flow_path(flow_id)
        if not path.exists():
            raise PersistenceError(f"Flow {flow_id} has not been saved yet", "publish_flow")
        try:
            shutil.copyfile(path, self.published_dir / path.name)
        except OSError as e:
            raise PersistenceError(f"Failed to publish flow {flow_id}: {e}", "publish_flow")
        logger.info(f"Published flow {flow_id}")
        return {"published": True, "flow_id": flow_id}

    # --- Reference Lists ---

    def _load_reference(self, name: str) -> List[Dict[str, Any]]:
        path = self.reference_dir / f"{name}.json"
        if not path.exists():
            return []
        data = self._read_json(path, f"list_{name}")
        return data if isinstance(data, list) else []

    def list_queues(self) -> List[Dict[str, Any]]:
        return self._load_reference("queues")

    def list_tags(self) -> List[Dict[str, Any]]:
        return self._load_reference("tags")

    def list_users(self) -> List[Dict[str, Any]]:
        return self._load_reference("users")
