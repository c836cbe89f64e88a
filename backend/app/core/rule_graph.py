"""Rule Graph — adjacency view over one product type's customization rules.

Invariants:
    - Conflict edges are symmetric: (a, b) stored means (b, a) holds
    - Dependency edges are directed: rule -> set of rules it requires
    - Edges pointing outside the rule set are dropped on build (dangling after a delete)
    - Self-edges are dropped
    - Pure: built from snapshots, no IO

Design Decisions:
    - Frozen RuleSnapshot decoupled from the ORM row: core never imports models
    - frozenset pairs for conflicts: one entry per unordered pair, so a pair listed
      on both sides is reported once
"""

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from app.core.domain_types import RuleType


@dataclass(frozen=True)
class RuleSnapshot:
    """Read-only copy of a ProductRule row taken for one validation pass."""
    id: str
    title: str
    rule_type: RuleType
    required: bool = False
    max_items: int | None = None
    conflict_with: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    display_order: int = 0
    available_options: object = None


@dataclass(frozen=True)
class RuleGraph:
    """Adjacency relation over a rule set (rule id → edge set)."""
    rules: dict[str, RuleSnapshot]
    conflicts: frozenset[frozenset[str]]
    dependencies: dict[str, frozenset[str]] = field(default_factory=dict)

    @classmethod
    def build(cls, rules: Iterable[RuleSnapshot]) -> "RuleGraph":
        ordered = sorted(rules, key=lambda r: (r.display_order, r.title, r.id))
        by_id = {r.id: r for r in ordered}

        conflicts: set[frozenset[str]] = set()
        dependencies: dict[str, frozenset[str]] = {}
        for rule in ordered:
            for other in rule.conflict_with:
                if other in by_id and other != rule.id:
                    conflicts.add(frozenset((rule.id, other)))
            dependencies[rule.id] = frozenset(
                dep for dep in rule.dependencies
                if dep in by_id and dep != rule.id
            )
        return cls(
            rules=by_id,
            conflicts=frozenset(conflicts),
            dependencies=dependencies,
        )

    def title_of(self, rule_id: str) -> str:
        rule = self.rules.get(rule_id)
        return rule.title if rule else rule_id

    def order_of(self, rule_id: str) -> int:
        rule = self.rules.get(rule_id)
        return rule.display_order if rule else 0

    def conflicts_with(self, rule_id: str) -> set[str]:
        """All rules in conflict with rule_id, whichever side declared the edge."""
        return {
            other
            for pair in self.conflicts if rule_id in pair
            for other in pair if other != rule_id
        }

    def required_rules(self) -> list[RuleSnapshot]:
        return [r for r in self.rules.values() if r.required]

    def ordered(self, rule_ids: Iterable[str]) -> list[str]:
        """Sort ids by display_order, then title (deterministic error order)."""
        return sorted(
            rule_ids, key=lambda rid: (self.order_of(rid), self.title_of(rid), rid),
        )


def find_foreign_references(
    rule_id: str | None,
    referenced_ids: Sequence[str],
    sibling_ids: Iterable[str],
) -> list[str]:
    """Ids in referenced_ids that are not siblings of the same product type.

    A rule referencing itself counts as foreign. Used on admin writes so the
    adjacency never leaves its product type.
    """
    siblings = set(sibling_ids)
    return [
        rid for rid in referenced_ids
        if rid not in siblings or (rule_id is not None and rid == rule_id)
    ]


def dedupe_ids(ids: Iterable[str] | None) -> list[str]:
    """Normalize an edge list: str ids, no duplicates, first occurrence wins."""
    seen: dict[str, None] = {}
    for rid in ids or ():
        seen.setdefault(str(rid), None)
    return list(seen)
