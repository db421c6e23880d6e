"""動的ルールの比較演算子テーブル"""

from __future__ import annotations

import operator
from collections.abc import Callable
from typing import Any

from .exceptions import FeatureFlagClientError, FeatureFlagClientErrorCodes
from .models import FlagType, FlagValue, Operator

_EQUALITY: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.EQ: operator.eq,
    Operator.NE: operator.ne,
}

_ORDERING: dict[Operator, Callable[[Any, Any], bool]] = {
    **_EQUALITY,
    Operator.LT: operator.lt,
    Operator.LE: operator.le,
    Operator.GT: operator.gt,
    Operator.GE: operator.ge,
}

# number は float 比較 (NaN を含む)、string は辞書順比較
_OPERATORS: dict[FlagType, dict[Operator, Callable[[Any, Any], bool]]] = {
    FlagType.BOOLEAN: _EQUALITY,
    FlagType.NUMBER: _ORDERING,
    FlagType.STRING: _ORDERING,
}


def supported_operators(flag_type: FlagType) -> frozenset[Operator]:
    """型ごとに利用可能な演算子を返す。"""
    return frozenset(_OPERATORS[flag_type])


def _operand(value: FlagValue, flag_type: FlagType) -> bool | float | str:
    if flag_type is FlagType.BOOLEAN:
        return value.as_bool()
    if flag_type is FlagType.NUMBER:
        return value.as_number()
    return value.as_string()


def compare(
    flag_type: FlagType, op: Operator | str, left: FlagValue, right: FlagValue
) -> bool:
    """flag_type の演算子テーブルで left と right を比較する。

    演算子がその型に定義されていない場合 (未知の演算子を含む) は UNSUPPORTED_OPERATOR、
    オペランドの型が flag_type と一致しない場合は INVALID_VALUE を送出する。
    """
    fn = _OPERATORS[flag_type].get(op)
    if fn is None:
        raise FeatureFlagClientError(
            code=FeatureFlagClientErrorCodes.UNSUPPORTED_OPERATOR,
            message=f"operator '{op}' is not supported for {flag_type} values",
        )
    return fn(_operand(left, flag_type), _operand(right, flag_type))
