"""
CMS Client - HTTP access from the public website to the CMS API
"""
import logging
from typing import Any, Optional

import httpx

from config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class MissingCmsApiKeyError(Exception):
    def __init__(self):
        super().__init__("CMS_API_KEY is not configured.")


class CmsClient:
    """
    Thin async wrapper over httpx for CMS calls.

    ``require_key`` calls fail with MissingCmsApiKeyError before any
    network traffic when no key is configured; other calls send the key
    only when one exists.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key or ""
        self.transport = transport
        self.timeout = timeout

    def build_url(self, path: str) -> str:
        if not path.startswith("/"):
            raise ValueError(f"CMS path must start with '/': {path}")
        return f"{self.base_url}{path}"

    async def request(
        self,
        method: str,
        path: str,
        require_key: bool = True,
        json: Any = None,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> httpx.Response:
        if require_key and not self.api_key:
            raise MissingCmsApiKeyError()

        request_headers = {"Content-Type": "application/json"}
        if self.api_key:
            request_headers["x-cms-api-key"] = self.api_key
        request_headers.update(headers or {})

        url = self.build_url(path)
        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            response = await client.request(method, url, json=json, params=params, headers=request_headers)

        logger.debug(f"CMS {method} {path} -> {response.status_code}")
        return response

    async def get(self, path: str, require_key: bool = True, **kwargs) -> httpx.Response:
        return await self.request("GET", path, require_key=require_key, **kwargs)

    async def post(self, path: str, require_key: bool = True, **kwargs) -> httpx.Response:
        return await self.request("POST", path, require_key=require_key, **kwargs)


def build_cms_client(settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None) -> CmsClient:
    settings = settings or get_settings()
    return CmsClient(settings.cms_base_url, settings.cms_api_key, transport=transport)


class CmsUpstreamError(Exception):
    """Non-2xx answer from the CMS."""

    def __init__(self, status_code: int, payload: Optional[dict] = None):
        super().__init__(f"CMS responded with {status_code}")
        self.status_code = status_code
        self.payload = payload or {}

    @property
    def error_message(self) -> Optional[str]:
        return self.payload.get("error") or self.payload.get("message")


def read_json(response: httpx.Response) -> Any:
    """Decoded body of a successful response; CmsUpstreamError otherwise."""
    if response.is_success:
        return response.json()
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    raise CmsUpstreamError(response.status_code, payload if isinstance(payload, dict) else {})
