"""featureflag_client ライブラリの例外型定義"""

from __future__ import annotations


class FeatureFlagClientError(Exception):
    """featureflag_client ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
        status_code: int | None = None,
        service_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code
        # フラグサービスのエラーエンベロープの code
        self.service_code = service_code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class FeatureFlagClientErrorCodes:
    """FeatureFlagClientError のエラーコード定数。"""

    FLAG_NOT_FOUND: str = "FLAG_NOT_FOUND"
    INVALID_FLAG_TYPE: str = "INVALID_FLAG_TYPE"
    HTTP_ERROR: str = "HTTP_ERROR"
    DECODE_ERROR: str = "DECODE_ERROR"
    IDENTITY_NOT_FOUND: str = "IDENTITY_NOT_FOUND"
    INVALID_VALUE: str = "INVALID_VALUE"
    UNSUPPORTED_OPERATOR: str = "UNSUPPORTED_OPERATOR"
    CYCLIC_RULE: str = "CYCLIC_RULE"
    CONFIG_ERROR: str = "CONFIG_ERROR"
