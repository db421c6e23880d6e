"""featureflag_client テスト用ヘルパー"""

from typing import Any

from k1s0_featureflag_client import DynamicRule, Expression, Flag, FlagType, Operator


class FakeClock:
    """テスト用の手動で進める時計。"""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_flag(
    key: str,
    flag_type: FlagType,
    value: Any,
    rules: tuple[DynamicRule, ...] = (),
) -> Flag:
    return Flag(id=f"id-{key}", key=key, type=flag_type, value=value, dynamic_rules=rules)


def make_rule(flag_key: str, op: Operator, expected: Any, result: Any) -> DynamicRule:
    return DynamicRule(
        expression=Expression(flag_id=f"id-{flag_key}", op=op, value=expected),
        value=result,
    )
