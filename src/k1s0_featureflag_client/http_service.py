"""フラグサービス HTTP クライアント実装"""

from __future__ import annotations

import platform
from typing import Any
from urllib.parse import quote

import httpx

from .config import FeatureFlagClientConfig
from .exceptions import FeatureFlagClientError, FeatureFlagClientErrorCodes
from .models import Identity, ServiceState
from .service import FlagService

_CLIENT_VERSION = "0.1.0"

USER_AGENT = f"k1s0-featureflag-client/{_CLIENT_VERSION} python/{platform.python_version()}"


def _error_detail(resp: httpx.Response) -> tuple[str | None, str]:
    """エラーレスポンスの {"error": {"code", "message"}} からサービスのコードと詳細を取り出す。

    エンベロープがなければコードは None、詳細は本文そのまま。
    """
    try:
        data = resp.json()
    except ValueError:
        return None, resp.text
    error = data.get("error") if isinstance(data, dict) else None
    if not isinstance(error, dict):
        return None, resp.text
    code = error.get("code")
    service_code = code if isinstance(code, str) and code else None
    return service_code, f"{error.get('code', '')}: {error.get('message', '')}"


class HttpFlagService(FlagService):
    """httpx を使ったフラグサービス HTTP クライアント。

    API キーは Basic 認証のパスワードとして送る (ユーザー名は空)。
    """

    def __init__(self, config: FeatureFlagClientConfig) -> None:
        self._config = config
        self._headers: dict[str, str] = {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        self._auth = httpx.BasicAuth("", config.api_key)

    def _make_client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self._config.base_url,
            headers=self._headers,
            auth=self._auth,
            timeout=self._config.timeout_seconds,
        )

    def _handle_error(self, resp: httpx.Response, context: str, not_found_code: str) -> None:
        if resp.status_code < 400:
            return
        service_code, detail = _error_detail(resp)
        if resp.status_code == 404:
            raise FeatureFlagClientError(
                code=not_found_code,
                message=f"{context}: HTTP 404: {detail}",
                status_code=resp.status_code,
                service_code=service_code,
            )
        raise FeatureFlagClientError(
            code=FeatureFlagClientErrorCodes.HTTP_ERROR,
            message=f"{context}: HTTP {resp.status_code}: {detail}",
            status_code=resp.status_code,
            service_code=service_code,
        )

    def _get_json(self, path: str, context: str, not_found_code: str) -> Any:
        try:
            with self._make_client() as client:
                resp = client.get(path)
        except httpx.HTTPError as e:
            raise FeatureFlagClientError(
                code=FeatureFlagClientErrorCodes.HTTP_ERROR,
                message=f"{context}: request failed: {e}",
                cause=e,
            ) from e
        self._handle_error(resp, context, not_found_code)
        try:
            return resp.json()
        except ValueError as e:
            raise FeatureFlagClientError(
                code=FeatureFlagClientErrorCodes.DECODE_ERROR,
                message=f"{context}: invalid JSON response: {e}",
                cause=e,
            ) from e

    def fetch_state(self) -> ServiceState:
        """全フラグとグローバルオーバーライドを取得する。"""
        data = self._get_json(
            "/sdk/initialize", "fetch_state", FeatureFlagClientErrorCodes.HTTP_ERROR
        )
        return ServiceState.from_dict(data)

    def fetch_identity(self, identifier: str) -> Identity:
        """identifier のアイデンティティを取得する。"""
        data = self._get_json(
            f"/sdk/identities/{quote(identifier, safe='')}",
            f"fetch_identity({identifier})",
            FeatureFlagClientErrorCodes.IDENTITY_NOT_FOUND,
        )
        return Identity.from_dict(data)
