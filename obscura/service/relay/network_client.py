"""
Network Client - Relay communication for decryption requests
"""
import asyncio
from typing import Any, Dict, List, Optional

import httpx

from obscura.config import RELAY_CONFIG
from obscura.errors import DECRYPTION_ERRORS, DecryptionError, IncompleteResponse, RelayUnavailable


class RelayNetworkClient:
    """Handles HTTP communication with the decryption relay"""

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        max_retries: int = None,
        backoff_base: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or RELAY_CONFIG["url"]).rstrip("/")
        self.timeout = timeout or RELAY_CONFIG["decrypt_request_timeout"]
        self.max_retries = RELAY_CONFIG["max_retries"] if max_retries is None else max_retries
        self.backoff_base = RELAY_CONFIG["backoff_base"] if backoff_base is None else backoff_base
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    @staticmethod
    def _raise_for_error(response: httpx.Response):
        """Map relay error bodies back onto the local exception taxonomy"""
        if response.status_code < 400:
            return
        if response.status_code >= 500:
            raise RelayUnavailable(f"Relay returned {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            body = {}
        kind = body.get("error") if isinstance(body, dict) else None
        detail = body.get("detail") if isinstance(body, dict) else None
        error_cls = DECRYPTION_ERRORS.get(kind, DecryptionError)
        raise error_cls(str(detail or f"Relay rejected request ({response.status_code})"))

    @staticmethod
    def _decode(response: httpx.Response, path: str) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise DecryptionError(f"Relay returned a non-JSON body for {path}") from e
        if not isinstance(data, dict):
            raise DecryptionError(f"Relay returned an unexpected body for {path}")
        return data

    @staticmethod
    def _field(data: Dict[str, Any], key: str, error_cls=DecryptionError) -> Any:
        if key not in data:
            raise error_cls(f"Relay response is missing '{key}'")
        return data[key]

    async def _request(self, method: str, path: str, payload: Dict[str, Any] = None) -> Dict[str, Any]:
        """Send one request, retrying only RelayUnavailable with exponential backoff"""
        attempt = 0
        while True:
            try:
                async with self._client() as client:
                    response = await client.request(method, path, json=payload)
                self._raise_for_error(response)
                return self._decode(response, path)
            except (httpx.TransportError, RelayUnavailable) as e:
                if attempt >= self.max_retries:
                    print(f"[Network] Relay unavailable at {self.base_url}{path}: {e}")
                    if isinstance(e, RelayUnavailable):
                        raise
                    raise RelayUnavailable(f"Relay unreachable: {e}") from e
                delay = self.backoff_base * (2 ** attempt)
                print(f"[Network] Relay {path} failed ({e}), retrying in {delay:.2f}s ({attempt + 1}/{self.max_retries})")
                await asyncio.sleep(delay)
                attempt += 1

    async def get_relay_public_key(self) -> str:
        data = await self._request("GET", "/relay_key")
        return self._field(data, "public_key")

    async def user_decrypt(self, payload: Dict[str, Any]) -> Dict[str, str]:
        """Submit a signed user decrypt request"""
        data = await self._request("POST", "/user_decrypt", payload)
        return self._field(data, "results", IncompleteResponse)

    async def public_decrypt(self, handles: List[str]) -> Dict[str, Any]:
        data = await self._request("POST", "/public_decrypt", {"handles": handles})
        return self._field(data, "results", IncompleteResponse)

    async def check_health(self) -> bool:
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=RELAY_CONFIG["connection_timeout"],
                                         transport=self.transport) as client:
                response = await client.get("/health")
                response.raise_for_status()
                return True
        except httpx.HTTPError:
            return False
