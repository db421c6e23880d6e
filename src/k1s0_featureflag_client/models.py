"""featureflag_client データモデル"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any, TypeVar

from .exceptions import FeatureFlagClientError, FeatureFlagClientErrorCodes

_E = TypeVar("_E", bound=StrEnum)


class FlagType(StrEnum):
    """フラグの値型。"""

    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"


class Operator(StrEnum):
    """動的ルールの比較演算子。"""

    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="


class EvaluationReason(StrEnum):
    """評価結果の決定理由。"""

    IDENTITY_OVERRIDE = "IDENTITY_OVERRIDE"
    GLOBAL_OVERRIDE = "GLOBAL_OVERRIDE"
    RULE_MATCH = "RULE_MATCH"
    DEFAULT = "DEFAULT"


@dataclass(frozen=True)
class FlagValue:
    """宣言型をタグとして持つフラグ値。

    生の値は ``of`` でのみ型付けされる。bool は number として扱わず、
    整数は float に広げる。型が一致しない値は INVALID_VALUE になる。
    """

    type: FlagType
    value: bool | float | str

    @classmethod
    def of(cls, flag_type: FlagType, raw: Any, source: str = "value") -> FlagValue:
        if flag_type is FlagType.BOOLEAN and isinstance(raw, bool):
            return cls(flag_type, raw)
        if (
            flag_type is FlagType.NUMBER
            and isinstance(raw, (int, float))
            and not isinstance(raw, bool)
        ):
            try:
                return cls(flag_type, float(raw))
            except OverflowError as e:
                raise FeatureFlagClientError(
                    code=FeatureFlagClientErrorCodes.INVALID_VALUE,
                    message=(
                        f"{source} is out of range for a number value "
                        f"({raw.bit_length()}-bit integer)"
                    ),
                    cause=e,
                ) from e
        if flag_type is FlagType.STRING and isinstance(raw, str):
            return cls(flag_type, raw)
        raise FeatureFlagClientError(
            code=FeatureFlagClientErrorCodes.INVALID_VALUE,
            message=f"{source} {raw!r} is not a valid {flag_type} value",
        )

    def as_bool(self) -> bool:
        if self.type is not FlagType.BOOLEAN or not isinstance(self.value, bool):
            raise self._mismatch(FlagType.BOOLEAN)
        return self.value

    def as_number(self) -> float:
        if self.type is not FlagType.NUMBER or not isinstance(self.value, float):
            raise self._mismatch(FlagType.NUMBER)
        return self.value

    def as_string(self) -> str:
        if self.type is not FlagType.STRING or not isinstance(self.value, str):
            raise self._mismatch(FlagType.STRING)
        return self.value

    def _mismatch(self, expected: FlagType) -> FeatureFlagClientError:
        return FeatureFlagClientError(
            code=FeatureFlagClientErrorCodes.INVALID_VALUE,
            message=f"expected {expected} value, got {self.type} {self.value!r}",
        )


def _field(data: Mapping[str, Any], key: str, context: str) -> Any:
    if not isinstance(data, Mapping):
        raise FeatureFlagClientError(
            code=FeatureFlagClientErrorCodes.DECODE_ERROR,
            message=f"{context}: expected object, got {type(data).__name__}",
        )
    if key not in data:
        raise FeatureFlagClientError(
            code=FeatureFlagClientErrorCodes.DECODE_ERROR,
            message=f"{context}: missing field '{key}'",
        )
    return data[key]


def _str_field(data: Mapping[str, Any], key: str, context: str) -> str:
    value = _field(data, key, context)
    if not isinstance(value, str):
        raise FeatureFlagClientError(
            code=FeatureFlagClientErrorCodes.DECODE_ERROR,
            message=f"{context}: field '{key}' must be a string",
        )
    return value


def _list_field(data: Mapping[str, Any], key: str, context: str) -> list[Any]:
    # null と欠落は空リストとして扱う
    value = data.get(key) if isinstance(data, Mapping) else None
    if value is None:
        return []
    if not isinstance(value, list):
        raise FeatureFlagClientError(
            code=FeatureFlagClientErrorCodes.DECODE_ERROR,
            message=f"{context}: field '{key}' must be a list",
        )
    return value


def _known(enum_type: type[_E], raw: str) -> _E | str:
    try:
        return enum_type(raw)
    except ValueError:
        return raw


@dataclass(frozen=True)
class Expression:
    """動的ルールの条件式。value は参照先フラグの型で評価時に型付けされる。

    未知の演算子は文字列のまま保持し、そのルールの評価時に UNSUPPORTED_OPERATOR になる。
    """

    flag_id: str
    op: Operator | str
    value: Any

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Expression:
        return cls(
            flag_id=_str_field(data, "flag_id", "expression"),
            op=_known(Operator, _str_field(data, "op", "expression")),
            value=_field(data, "value", "expression"),
        )


@dataclass(frozen=True)
class DynamicRule:
    """動的ルール。value は評価中のフラグの型で型付けされる。"""

    expression: Expression
    value: Any

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DynamicRule:
        return cls(
            expression=Expression.from_dict(_field(data, "expression", "dynamic_rule")),
            value=_field(data, "value", "dynamic_rule"),
        )


@dataclass(frozen=True)
class Flag:
    """フィーチャーフラグ定義。

    未知の型は文字列のまま保持し、そのフラグの評価時に INVALID_FLAG_TYPE になる。
    """

    id: str
    key: str
    type: FlagType | str
    value: Any
    dynamic_rules: tuple[DynamicRule, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Flag:
        """API レスポンス辞書から Flag を生成する。"""
        key = _str_field(data, "key", "flag")
        context = f"flag '{key}'"
        return cls(
            id=_str_field(data, "id", context),
            key=key,
            type=_known(FlagType, _str_field(data, "type", context)),
            value=_field(data, "value", context),
            dynamic_rules=tuple(
                DynamicRule.from_dict(r) for r in _list_field(data, "dynamic_rules", context)
            ),
        )


@dataclass(frozen=True)
class Override:
    """グローバルオーバーライド。"""

    id: str
    key: str
    value: Any

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Override:
        return cls(
            id=_str_field(data, "id", "override"),
            key=_str_field(data, "key", "override"),
            value=_field(data, "value", "override"),
        )


@dataclass(frozen=True)
class Identity:
    """サブジェクト単位のオーバーライド情報。"""

    id: str
    identifier: str
    overrides: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Identity:
        """API レスポンス辞書から Identity を生成する。"""
        overrides = data.get("overrides") if isinstance(data, Mapping) else None
        if overrides is None:
            overrides = {}
        if not isinstance(overrides, Mapping):
            raise FeatureFlagClientError(
                code=FeatureFlagClientErrorCodes.DECODE_ERROR,
                message="identity: field 'overrides' must be an object",
            )
        return cls(
            id=_str_field(data, "id", "identity"),
            identifier=_str_field(data, "identifier", "identity"),
            overrides=MappingProxyType(dict(overrides)),
        )


@dataclass(frozen=True)
class ServiceState:
    """フラグサービスから取得した全フラグとグローバルオーバーライド。"""

    flags: tuple[Flag, ...] = ()
    overrides: tuple[Override, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ServiceState:
        if not isinstance(data, Mapping):
            raise FeatureFlagClientError(
                code=FeatureFlagClientErrorCodes.DECODE_ERROR,
                message=f"state: expected object, got {type(data).__name__}",
            )
        return cls(
            flags=tuple(Flag.from_dict(f) for f in _list_field(data, "flags", "state")),
            overrides=tuple(
                Override.from_dict(o) for o in _list_field(data, "overrides", "state")
            ),
        )


@dataclass(frozen=True)
class EvaluationResult:
    """フラグ評価結果。"""

    flag_key: str
    value: FlagValue
    reason: EvaluationReason
