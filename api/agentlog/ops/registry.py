"""Operation registry: resolves any incoming operation id to its canonical form.

The tables are assembled once at startup and never mutated. Lookups never
raise; an unknown id is returned unchanged and the caller decides whether
that is an error.
"""

from collections.abc import Iterable, Mapping
from typing import Optional

import structlog

from agentlog.ops.aliases import CANONICAL_OPERATIONS, OPERATION_ALIASES

log = structlog.get_logger(__name__)


class AliasConflictError(ValueError):
    """Raised at construction when the alias table is internally inconsistent."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("; ".join(problems))


class OperationRegistry:
    """Static canonical/alias table with consistency checking.

    Args:
        canonical: Canonical operation ids.
        aliases: Mapping of alias -> canonical id.
        strict: When True, raise AliasConflictError if check_consistency()
            reports any problem.
    """

    def __init__(
        self,
        canonical: Iterable[str] = CANONICAL_OPERATIONS,
        aliases: Mapping[str, str] = OPERATION_ALIASES,
        strict: bool = True,
    ):
        self._canonical = frozenset(canonical)
        self._aliases = dict(aliases)

        problems = self.check_consistency()
        if problems:
            if strict:
                raise AliasConflictError(problems)
            log.warning("operation_alias_conflicts", problems=problems)

    def to_canonical(self, op_id: str) -> str:
        if op_id in self._canonical:
            return op_id
        return self._aliases.get(op_id, op_id)

    def is_canonical(self, op_id: str) -> bool:
        return op_id in self._canonical

    def original_if_aliased(self, op_id: str) -> Optional[str]:
        """Return op_id when it resolves to something else, else None."""
        if self.is_canonical(op_id):
            return None
        return op_id if self.to_canonical(op_id) != op_id else None

    def get_all_canonical(self) -> list[str]:
        return sorted(self._canonical)

    def get_all_aliases(self) -> list[str]:
        return sorted(self._aliases)

    def check_consistency(self) -> list[str]:
        """List configuration problems in the alias table.

        - an alias that is itself canonical but maps to a different operation
        - an alias whose target is not a canonical id
        """
        problems = []
        for alias, target in sorted(self._aliases.items()):
            if alias in self._canonical and alias != target:
                problems.append(
                    f"'{alias}' is canonical but also aliases '{target}'"
                )
            if target not in self._canonical:
                problems.append(
                    f"alias '{alias}' targets unknown operation '{target}'"
                )
        return problems
