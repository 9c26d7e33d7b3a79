"""VK API ``messages.send`` over HTTPS.

Only the one method the callback layer needs. Authentication is a community
access token passed with every call.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from src.callback.errors import ApiError

logger = logging.getLogger(__name__)

_DEFAULT_API_URL = "https://api.vk.com"
_DEFAULT_API_VERSION = "5.199"
_DEFAULT_TIMEOUT_SECONDS = 30.0


class VkApiSender:
    """Sends messages through the VK API with a community token."""

    def __init__(
        self,
        access_token: str,
        api_version: str = _DEFAULT_API_VERSION,
        base_url: str = _DEFAULT_API_URL,
        timeout: float = _DEFAULT_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        self._access_token = access_token
        self._api_version = api_version
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(verify=True, timeout=timeout)

    @classmethod
    def from_env(cls) -> VkApiSender:
        """Create a sender from VK_* environment variables."""
        return cls(
            access_token=os.environ["VK_ACCESS_TOKEN"],
            api_version=os.environ.get("VK_API_VERSION", _DEFAULT_API_VERSION),
            base_url=os.environ.get("VK_API_URL", _DEFAULT_API_URL),
            timeout=float(os.environ.get("VK_API_TIMEOUT", str(_DEFAULT_TIMEOUT_SECONDS))),
        )

    def call(self, method: str, params: dict[str, str]) -> Any:
        """Invoke an API method and return the ``response`` member.

        HTTP-level failures raise ``httpx.HTTPStatusError``, network failures
        the corresponding ``httpx`` transport error, and an ``error`` body
        raises ApiError.
        """
        url = f"{self._base_url}/method/{method}"
        data = {**params, "access_token": self._access_token, "v": self._api_version}

        logger.debug("calling VK API method %s", method)
        resp = self._client.post(url, data=data)
        resp.raise_for_status()
        try:
            body = resp.json()
        except ValueError:
            raise ApiError(0, f"{method} returned a non-JSON body: {resp.text[:200]!r}") from None
        if not isinstance(body, dict):
            raise ApiError(0, f"{method} returned {type(body).__name__} instead of an object")

        error = body.get("error")
        if error is not None:
            if not isinstance(error, dict):
                raise ApiError(0, f"{method} returned a malformed error: {error!r}")
            raise ApiError(
                code=int(error.get("error_code", 0)),
                message=str(error.get("error_msg", "")),
                request_params=error.get("request_params"),
            )
        return body.get("response")

    def send_message(self, params: dict[str, str]) -> Any:
        return self.call("messages.send", params)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> VkApiSender:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
