"""Async client for the EPO Open Patent Services (OPS) REST API."""

from patent_ops.core.config import OPSConfig, get_config
from patent_ops.core.errors import (
    AuthenticationError,
    CallTimeoutError,
    ErrorKind,
    GenericApiError,
    NetworkError,
    OPSError,
    RateLimitError,
    ValidationError,
)
from patent_ops.core.retry import RetryPolicy
from patent_ops.core.types import ClassificationOptions, PatentReference, SearchOptions
from patent_ops.tools.ops_client import PatentApiClient

__all__ = [
    "PatentApiClient",
    "OPSConfig",
    "get_config",
    "RetryPolicy",
    "PatentReference",
    "SearchOptions",
    "ClassificationOptions",
    "ErrorKind",
    "OPSError",
    "AuthenticationError",
    "RateLimitError",
    "ValidationError",
    "NetworkError",
    "GenericApiError",
    "CallTimeoutError",
]
