"""Rule Enforcement — evaluates a customization selection against a rule graph.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Violations are data (RuleCheckResult.errors), never exceptions
    - Accumulative: every violation is reported in one pass, nothing short-circuits
    - Deterministic ordering → validating the same selection twice yields identical errors

Design Decisions:
    - One check function per rule family, chained by evaluate_rule_selection
      (same shape as the other enforce_* modules)
    - Selections pointing at rules outside the graph are reported, not raised:
      a rule deleted mid-checkout is an ordinary validation miss
"""

from dataclasses import dataclass, field
from typing import Any, Sequence

from app.core.domain_types import MULTI_ITEM_RULE_TYPES
from app.core.rule_graph import RuleGraph


@dataclass(frozen=True)
class SelectionSnapshot:
    """One selected customization: which rule, and the client data for it."""
    rule_id: str | None
    data: Any = None


@dataclass
class RuleCheckResult:
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": list(self.errors)}


def selected_rule_ids(selections: Sequence[SelectionSnapshot]) -> set[str]:
    return {s.rule_id for s in selections if s.rule_id}


def check_unknown_selections(
    graph: RuleGraph, selected: set[str],
) -> list[str]:
    """Selected ids that are not rules of this product type."""
    return [
        f'Customization rule "{rule_id}" is not available for this product'
        for rule_id in sorted(selected - graph.rules.keys())
    ]


def check_required(graph: RuleGraph, selected: set[str]) -> list[str]:
    return [
        f'Customization "{rule.title}" is required'
        for rule in graph.required_rules()
        if rule.id not in selected
    ]


def check_conflicts(graph: RuleGraph, selected: set[str]) -> list[str]:
    """One error per selected unordered pair, whichever side declared the edge."""
    errors = []
    for pair in graph.conflicts:
        if not pair <= selected:
            continue
        first, second = graph.ordered(pair)
        errors.append((
            graph.order_of(first), graph.title_of(first), graph.title_of(second),
        ))
    errors.sort()
    return [
        f'Conflict between "{a}" and "{b}": they cannot be selected together'
        for _, a, b in errors
    ]


def check_dependencies(graph: RuleGraph, selected: set[str]) -> list[str]:
    errors = []
    for rule_id in graph.ordered(selected & graph.rules.keys()):
        missing = graph.dependencies.get(rule_id, frozenset()) - selected
        for dep in graph.ordered(missing):
            errors.append(
                f'"{graph.title_of(rule_id)}" requires '
                f'"{graph.title_of(dep)}" to also be selected',
            )
    return errors


def count_items(data: Any, field_name: str) -> int:
    """Length of data[field_name] when it is a list, else 0."""
    if isinstance(data, dict):
        items = data.get(field_name)
        if isinstance(items, list):
            return len(items)
    return 0


def check_max_items(
    graph: RuleGraph, selections: Sequence[SelectionSnapshot],
) -> list[str]:
    errors = []
    for selection in selections:
        rule = graph.rules.get(selection.rule_id or "")
        if rule is None or not rule.max_items:
            continue
        field_name = MULTI_ITEM_RULE_TYPES.get(rule.rule_type)
        if field_name is None:
            continue
        count = count_items(selection.data, field_name)
        if count > rule.max_items:
            errors.append(
                f'"{rule.title}" accepts at most {rule.max_items} item(s) '
                f"({count} provided)",
            )
    return errors


def evaluate_rule_selection(
    graph: RuleGraph, selections: Sequence[SelectionSnapshot],
) -> RuleCheckResult:
    """Run every rule family and aggregate the violations."""
    selected = selected_rule_ids(selections)
    result = RuleCheckResult()
    result.errors.extend(check_unknown_selections(graph, selected))
    result.errors.extend(check_required(graph, selected))
    result.errors.extend(check_conflicts(graph, selected))
    result.errors.extend(check_dependencies(graph, selected))
    result.errors.extend(check_max_items(graph, selections))
    return result
