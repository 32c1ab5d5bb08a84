"""
Flow persistence for FlowCanvas.

Supports multiple backends:
- FileFlowStore: local JSON files (default)
- HttpFlowStore: the CRM REST API
"""

from flowcanvas.storage.protocol import FlowStore, PersistenceError
from flowcanvas.storage.file_backend import FileFlowStore
from flowcanvas.storage.http_backend import HttpFlowStore
from flowcanvas.storage.factory import create_backend, get_backend_type

__all__ = [
    'FlowStore',
    'PersistenceError',
    'FileFlowStore',
    'HttpFlowStore',
    'create_backend',
    'get_backend_type',
]
