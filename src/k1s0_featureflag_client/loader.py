"""設定ファイル読み込み"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from .config import FeatureFlagClientConfig
from .exceptions import FeatureFlagClientError, FeatureFlagClientErrorCodes


class FeatureFlagSection(BaseModel):
    """設定ファイルの featureflag セクション。"""

    base_url: str = Field(min_length=1)
    api_key: str = ""
    timeout_seconds: float = Field(default=60.0, gt=0)
    state_refresh_interval_seconds: float = Field(default=60.0, gt=0)
    identity_refresh_interval_seconds: float = Field(default=5.0, gt=0)

    def to_config(self) -> FeatureFlagClientConfig:
        return FeatureFlagClientConfig(**self.model_dump())


def _read_yaml(path: Path) -> dict[str, Any]:
    """YAML ファイルを読み込む。"""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FeatureFlagClientError(
            code=FeatureFlagClientErrorCodes.CONFIG_ERROR,
            message=f"Failed to read config file: {path}",
            cause=e,
        ) from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise FeatureFlagClientError(
            code=FeatureFlagClientErrorCodes.CONFIG_ERROR,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    if not isinstance(data, dict):
        raise FeatureFlagClientError(
            code=FeatureFlagClientErrorCodes.CONFIG_ERROR,
            message=f"Config root must be a mapping: {path}",
        )
    return data


def load_config(path: Path, section: str = "featureflag") -> FeatureFlagClientConfig:
    """設定ファイルの section を読み込んで FeatureFlagClientConfig を返す。"""
    data = _read_yaml(path)
    try:
        return FeatureFlagSection.model_validate(data.get(section, {})).to_config()
    except ValidationError as e:
        raise FeatureFlagClientError(
            code=FeatureFlagClientErrorCodes.CONFIG_ERROR,
            message=f"Config validation failed: {e}",
            cause=e,
        ) from e
