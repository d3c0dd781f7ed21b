"""
European Patent Office (EPO OPS) API client.

This module provides the `PatentApiClient` class, one async method per OPS
capability. Every call follows the same sequence:

- validate caller input against its schema;
- make sure a valid access token is held (single-flight refresh);
- run the HTTP request under the retry policy, with transport outcomes
  classified into the client error taxonomy;
- normalize the `ops:world-patent-data` envelope into a candidate record;
- validate that record before returning it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
from urllib.parse import quote

import httpx

from patent_ops.core.auth import TokenManager
from patent_ops.core.config import OPSConfig, get_config
from patent_ops.core.errors import (
    CallTimeoutError,
    OPSError,
    ValidationError,
    classify_response,
    classify_transport_error,
)
from patent_ops.core.retry import RetryExecutor, RetryPolicy
from patent_ops.core.schemas import (
    BibliographicData,
    Claims,
    ClassificationOptionsSchema,
    ClassificationResponse,
    ClassificationSymbolSchema,
    FamilyMember,
    FamilyMemberList,
    LegalStatus,
    LegalStatusList,
    NumberConversionRequestSchema,
    NumberConversionResponse,
    PatentReferenceSchema,
    SearchOptionsSchema,
    SearchQuerySchema,
    SearchResponse,
)
from patent_ops.core.throttle import RequestThrottle
from patent_ops.core.types import ClassificationOptions, PatentReference, SearchOptions
from patent_ops.core.validation import Schema, validate_input, validate_output
from patent_ops.tools import normalizers

logger = logging.getLogger("OPSClient")

ReferenceInput = Union[PatentReference, Dict[str, Any]]
Transform = Callable[[Any, int], Any]


def _query_params(values: Dict[str, Any]) -> Dict[str, str]:
    """Drop unset values and render booleans the way OPS expects."""
    params: Dict[str, str] = {}
    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, bool):
            params[key] = "true" if value else "false"
        else:
            params[key] = str(value)
    return params


class PatentApiClient:
    """
    Async client for the EPO Open Patent Services (OPS) REST API.

    Use as an async context manager, or call `close()` when done. An
    injected `httpx.AsyncClient` is left open for its owner to close.
    """

    def __init__(
        self,
        consumer_key: Optional[str] = None,
        consumer_secret: Optional[str] = None,
        *,
        config: Optional[OPSConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize the OPS client.

        Args:
            consumer_key: EPO OPS consumer key. If omitted, loaded from config.
            consumer_secret: EPO OPS consumer secret. If omitted, loaded from config.
            config: Client configuration. Defaults to the environment singleton.
            http_client: Optional pre-built transport (e.g. with a mock transport).
            retry_policy: Default retry policy; built from config when omitted.
            clock: Wall-clock source in epoch seconds, used for token expiry.
            sleep: Awaitable sleep used for backoff and throttle waits.
        """
        self.config = config or get_config()
        self.consumer_key = consumer_key or self.config.epo_consumer_key
        self.consumer_secret = consumer_secret or self.config.epo_consumer_secret
        self.base_url = self.config.epo_ops_base_url.rstrip("/")
        self.auth_url = self.config.epo_ops_auth_url
        self.call_timeout_seconds = self.config.epo_call_timeout_seconds

        if not self.consumer_key or not self.consumer_secret:
            logger.warning(
                "⚠️ No valid EPO OPS credentials configured. API calls will fail."
            )

        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=float(self.config.epo_request_timeout_seconds)
        )
        self._tokens = TokenManager(
            self._http,
            self.consumer_key,
            self.consumer_secret,
            self.auth_url,
            clock=clock,
        )
        self._retry = RetryExecutor(
            retry_policy or RetryPolicy.from_config(self.config),
            sleep=sleep,
        )
        self._throttle = RequestThrottle(self.config.max_requests_per_minute, sleep=sleep)

    async def __aenter__(self) -> "PatentApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry.default_policy

    # === Request pipeline ===

    async def _send(self, path: str, params: Optional[Dict[str, str]] = None) -> httpx.Response:
        """Issue one authenticated GET; non-2xx and transport failures raise classified errors."""
        token = await self._tokens.ensure_valid()
        await self._throttle.acquire()

        url = f"{self.base_url}{path}"
        headers = {
            "Authorization": token.authorization_header,
            "Accept": "application/json",
        }
        try:
            response = await self._http.get(url, params=params, headers=headers)
        except httpx.RequestError as exc:
            logger.error("OPS request error for %s: %s", path, exc)
            raise classify_transport_error(exc) from exc

        if not response.is_success:
            if response.status_code == 401:
                self._tokens.invalidate(token)
            error = classify_response(response.status_code, response.text, response.headers)
            logger.warning(
                "OPS request failed: GET %s -> %s (%s)",
                path,
                response.status_code,
                error.kind.value,
            )
            raise error

        logger.debug("OPS GET %s -> %s", path, response.status_code)
        return response

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ValidationError(
                "OPS response is not valid JSON",
                status=response.status_code,
                details=response.text[:800],
            ) from exc

    async def _execute(
        self,
        path: str,
        params: Optional[Dict[str, str]],
        transform: Transform,
        schema: Schema,
        policy: Optional[RetryPolicy],
    ) -> Any:
        await self._tokens.ensure_valid()

        async def attempt() -> Any:
            response = await self._send(path, params)
            candidate = transform(self._decode(response), response.status_code)
            return validate_output(schema, candidate)

        operation = self._retry.run(attempt, policy)
        if not self.call_timeout_seconds:
            return await operation
        try:
            return await asyncio.wait_for(operation, self.call_timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise CallTimeoutError(
                f"OPS call to {path} exceeded {self.call_timeout_seconds}s"
            ) from exc

    @staticmethod
    def _reference(reference: ReferenceInput) -> PatentReference:
        valid = validate_input(PatentReferenceSchema, reference)
        return PatentReference(kind=valid.kind, format=valid.format, number=valid.number)

    # === Capabilities ===

    async def search_patents(
        self,
        query: str,
        options: Optional[Union[SearchOptions, Dict[str, Any]]] = None,
        *,
        policy: Optional[RetryPolicy] = None,
    ) -> SearchResponse:
        """
        Run an OPS bibliographic search.

        Args:
            query: OPS CQL query string (e.g. `ti=computer`).
            options: Optional `range` and `constituent` parameters.
            policy: Optional retry policy for this call.

        Returns:
            Validated `SearchResponse`; `data.query` echoes `query`.
        """
        validate_input(SearchQuerySchema, {"query": query})
        valid_options = validate_input(SearchOptionsSchema, options)
        params = _query_params({"q": query, **valid_options.model_dump()})

        logger.info("🔎 OPS search: %s", query)
        return await self._execute(
            "/published-data/search",
            params,
            lambda payload, status: normalizers.normalize_search(payload, query, status),
            SearchResponse,
            policy,
        )

    async def get_bibliographic_data(
        self,
        reference: ReferenceInput,
        *,
        policy: Optional[RetryPolicy] = None,
    ) -> BibliographicData:
        """Fetch bibliographic data for one publication, application or priority."""
        ref = self._reference(reference)
        return await self._execute(
            f"/published-data/{ref.path}/biblio",
            None,
            lambda payload, status: normalizers.normalize_bibliographic_data(payload),
            BibliographicData,
            policy,
        )

    async def get_claims(
        self,
        reference: ReferenceInput,
        *,
        policy: Optional[RetryPolicy] = None,
    ) -> Claims:
        """Fetch claims, split into independent and dependent claims."""
        ref = self._reference(reference)
        return await self._execute(
            f"/published-data/{ref.path}/claims",
            None,
            lambda payload, status: normalizers.normalize_claims(payload),
            Claims,
            policy,
        )

    async def get_family(
        self,
        reference: ReferenceInput,
        *,
        policy: Optional[RetryPolicy] = None,
    ) -> List[FamilyMember]:
        """Fetch the patent family members of a document."""
        ref = self._reference(reference)
        return await self._execute(
            f"/family/{ref.path}",
            None,
            lambda payload, status: normalizers.normalize_family(payload),
            FamilyMemberList,
            policy,
        )

    async def get_legal_status(
        self,
        reference: ReferenceInput,
        *,
        policy: Optional[RetryPolicy] = None,
    ) -> List[LegalStatus]:
        """Fetch legal status events of a document."""
        ref = self._reference(reference)
        return await self._execute(
            f"/legal/{ref.path}",
            None,
            lambda payload, status: normalizers.normalize_legal_status(payload),
            LegalStatusList,
            policy,
        )

    async def get_classification(
        self,
        cpc_class: str,
        options: Optional[Union[ClassificationOptions, Dict[str, Any]]] = None,
        *,
        policy: Optional[RetryPolicy] = None,
    ) -> ClassificationResponse:
        """
        Look up a CPC class with its child items.

        Args:
            cpc_class: CPC symbol, e.g. `H04W`.
            options: Optional `ancestors`, `navigation` and `depth` parameters.
            policy: Optional retry policy for this call.
        """
        validate_input(ClassificationSymbolSchema, {"symbol": cpc_class})
        valid_options = validate_input(ClassificationOptionsSchema, options)
        return await self._execute(
            f"/classification/{quote(cpc_class, safe='/')}",
            _query_params(valid_options.model_dump()),
            normalizers.normalize_classification,
            ClassificationResponse,
            policy,
        )

    async def convert_number(
        self,
        kind: str,
        source_format: str,
        number: str,
        target_format: str,
        *,
        policy: Optional[RetryPolicy] = None,
    ) -> NumberConversionResponse:
        """Convert a patent number between the docdb and epodoc formats."""
        request = validate_input(
            NumberConversionRequestSchema,
            {
                "kind": kind,
                "source_format": source_format,
                "number": number,
                "target_format": target_format,
            },
        )
        reference = PatentReference(
            kind=request.kind, format=request.source_format, number=request.number
        )
        return await self._execute(
            f"/number/convert/{reference.path}/{request.target_format}",
            None,
            lambda payload, status: normalizers.normalize_number_conversion(
                payload, reference, request.target_format, status
            ),
            NumberConversionResponse,
            policy,
        )

    async def search_classification(
        self,
        query: str,
        *,
        policy: Optional[RetryPolicy] = None,
    ) -> ClassificationResponse:
        """
        Search the CPC scheme by keyword.

        A query with no hits returns the "No results found" record rather
        than raising.
        """
        validate_input(SearchQuerySchema, {"query": query})
        return await self._execute(
            "/classification/cpc/search",
            {"q": query},
            normalizers.normalize_classification_search,
            ClassificationResponse,
            policy,
        )

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform a lightweight OPS connectivity health check.

        This check validates credential presence and OAuth token retrieval
        without executing a data query.

        Returns:
            Dictionary containing health status details.
        """
        if not self.consumer_key or not self.consumer_secret:
            return {
                "provider": "epo",
                "ok": False,
                "message": "Missing EPO consumer credentials.",
            }

        try:
            await self._tokens.ensure_valid(force_refresh=True)
        except OPSError as exc:
            return {
                "provider": "epo",
                "ok": False,
                "message": str(exc),
            }
        return {
            "provider": "epo",
            "ok": True,
            "message": "EPO OAuth token retrieved successfully.",
        }
