"""フラグ評価エンジン

評価の優先順位は次の通り。

    1. アイデンティティのオーバーライド
    2. グローバルオーバーライド
    3. 動的ルール (宣言順、最初に一致したもの)
    4. フラグのデフォルト値

動的ルールは別のフラグを同じ identifier で再帰的に評価し、その値を条件式と比較する。
1 回の評価は再帰を含めて同じスナップショットを読み、アイデンティティの取得も高々 1 回に限る。
"""

from __future__ import annotations

from .exceptions import FeatureFlagClientError, FeatureFlagClientErrorCodes
from .identity_cache import IdentityCache
from .metrics import evaluation_errors_total, evaluation_total
from .models import EvaluationReason, EvaluationResult, Flag, FlagType, FlagValue, Identity
from .operators import compare
from .scheduler import RefreshPolicy
from .store import StateSnapshot, StateStore


class _Scope:
    """1 回の評価で共有する状態。"""

    __slots__ = ("snapshot", "identifier", "_identities", "_identity", "_identity_loaded")

    def __init__(
        self, snapshot: StateSnapshot, identifier: str, identities: IdentityCache
    ) -> None:
        self.snapshot = snapshot
        self.identifier = identifier
        self._identities = identities
        self._identity: Identity | None = None
        self._identity_loaded = False

    def identity(self) -> Identity | None:
        if not self.identifier:
            return None
        if not self._identity_loaded:
            self._identity = self._identities.fetch(self.identifier)
            self._identity_loaded = True
        return self._identity


class Evaluator:
    """スナップショットとアイデンティティからフラグ値を決定する。"""

    def __init__(
        self,
        store: StateStore,
        identities: IdentityCache,
        refresh_policy: RefreshPolicy,
    ) -> None:
        self._store = store
        self._identities = identities
        self._refresh_policy = refresh_policy

    def evaluate(
        self,
        key: str,
        identifier: str = "",
        expected_type: FlagType | None = None,
    ) -> EvaluationResult:
        """key のフラグを identifier について評価する。

        Args:
            key: フラグキー
            identifier: サブジェクト識別子。空文字ならアイデンティティを参照しない
            expected_type: 指定した場合、フラグの宣言型と一致しなければエラー

        Raises:
            FeatureFlagClientError: フラグが存在しない、型が一致しない、
                または状態・アイデンティティの取得に失敗した場合
        """
        try:
            self._refresh_policy.ensure_fresh()
            scope = _Scope(self._store.snapshot(), identifier, self._identities)
            flag = scope.snapshot.flags.get(key)
            if flag is None:
                raise FeatureFlagClientError(
                    code=FeatureFlagClientErrorCodes.FLAG_NOT_FOUND,
                    message=f"flag '{key}' does not exist",
                )
            if expected_type is not None and flag.type is not expected_type:
                raise FeatureFlagClientError(
                    code=FeatureFlagClientErrorCodes.INVALID_FLAG_TYPE,
                    message=f"flag '{key}' is of type {flag.type}, not {expected_type}",
                )
            result = self._resolve(scope, flag, (flag.key,))
        except FeatureFlagClientError as e:
            evaluation_errors_total.add(1, {"code": e.code})
            raise
        evaluation_total.add(1, {"flag_type": str(flag.type), "reason": str(result.reason)})
        return result

    def _resolve(self, scope: _Scope, flag: Flag, path: tuple[str, ...]) -> EvaluationResult:
        if not isinstance(flag.type, FlagType):
            raise FeatureFlagClientError(
                code=FeatureFlagClientErrorCodes.INVALID_FLAG_TYPE,
                message=f"flag '{flag.key}' has unsupported type '{flag.type}'",
            )
        identity = scope.identity()
        if identity is not None and flag.key in identity.overrides:
            return EvaluationResult(
                flag_key=flag.key,
                value=FlagValue.of(
                    flag.type,
                    identity.overrides[flag.key],
                    source=f"identity override of flag '{flag.key}'",
                ),
                reason=EvaluationReason.IDENTITY_OVERRIDE,
            )

        override = scope.snapshot.overrides.get(flag.key)
        if override is not None:
            return EvaluationResult(
                flag_key=flag.key,
                value=FlagValue.of(
                    flag.type, override.value, source=f"override of flag '{flag.key}'"
                ),
                reason=EvaluationReason.GLOBAL_OVERRIDE,
            )

        for index, rule in enumerate(flag.dynamic_rules):
            expression = rule.expression
            referenced = scope.snapshot.flags_by_id.get(expression.flag_id)
            if referenced is None:
                raise FeatureFlagClientError(
                    code=FeatureFlagClientErrorCodes.FLAG_NOT_FOUND,
                    message=(
                        f"rule {index} of flag '{flag.key}' references "
                        f"unknown flag id '{expression.flag_id}'"
                    ),
                )
            if referenced.key in path:
                raise FeatureFlagClientError(
                    code=FeatureFlagClientErrorCodes.CYCLIC_RULE,
                    message="dynamic rules form a cycle: "
                    + " -> ".join((*path, referenced.key)),
                )

            actual = self._resolve(scope, referenced, (*path, referenced.key)).value
            operand = FlagValue.of(
                referenced.type,
                expression.value,
                source=f"rule {index} expression value of flag '{flag.key}'",
            )
            if compare(referenced.type, expression.op, actual, operand):
                return EvaluationResult(
                    flag_key=flag.key,
                    value=FlagValue.of(
                        flag.type, rule.value, source=f"rule {index} value of flag '{flag.key}'"
                    ),
                    reason=EvaluationReason.RULE_MATCH,
                )

        return EvaluationResult(
            flag_key=flag.key,
            value=FlagValue.of(flag.type, flag.value, source=f"default of flag '{flag.key}'"),
            reason=EvaluationReason.DEFAULT,
        )
