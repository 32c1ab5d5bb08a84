"""
Backend Factory for FlowCanvas.

Creates the flow store selected by the `storage_backend` setting:
- "file": FileFlowStore under the configured data directory (default)
- "http": HttpFlowStore against the configured API
"""

import logging
from typing import Optional, TYPE_CHECKING

from flowcanvas.config import get_settings
from flowcanvas.storage.file_backend import FileFlowStore
from flowcanvas.storage.http_backend import HttpFlowStore

if TYPE_CHECKING:
    from flowcanvas.storage.protocol import FlowStore

logger = logging.getLogger(__name__)

DEFAULT_BACKEND = "file"

BACKEND_TYPES = ("file", "http")


def get_backend_type(settings: Optional[dict] = None) -> str:
    """
    Get the configured storage backend type.

    Unknown values fall back to the file store with a warning.
    """
    settings = settings if settings is not None else get_settings()
    backend_type = str(settings.get("storage_backend") or DEFAULT_BACKEND).lower()
    if backend_type not in BACKEND_TYPES:
        logger.warning(f"Unknown storage backend '{backend_type}', using '{DEFAULT_BACKEND}'")
        return DEFAULT_BACKEND
    return backend_type


def create_backend(settings: Optional[dict] = None) -> "FlowStore":
    """
    Create the flow store for the current configuration.

    Args:
        settings: Resolved settings (see config.get_settings); read from
            config.json and the environment when omitted

    Returns:
        A FlowStore implementation
    """
    settings = settings if settings is not None else get_settings()
    backend_type = get_backend_type(settings)

    if backend_type == "http":
        logger.info(f"Using HTTP flow store at {settings.get('api_base_url')}")
        return HttpFlowStore(
            base_url=settings.get("api_base_url"),
            token=settings.get("api_token"),
            timeout=float(settings.get("request_timeout") or 10.0),
        )

    logger.info(f"Using file flow store in {settings.get('data_dir')}")
    return FileFlowStore(settings.get("data_dir"))
