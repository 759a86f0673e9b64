"""Parsing of rule expressions.

A rule set maps a field to its rules. Rules are written as pipe-delimited
strings (``"required|min:3"``), lists of strings, or callables. Parameters
follow a colon and are comma separated, except for ``regex`` whose pattern
is taken verbatim.
"""

from typing import Any, Callable, Dict, List, Mapping, Tuple, Union

Rule = Union[str, Callable[..., bool]]

# Rules evaluated even when the value is empty
IMPLICIT_RULES = frozenset({
    "required", "required_if", "required_with", "required_without", "accepted",
})

# Rules whose messages depend on the kind of value being measured
SIZE_RULES = frozenset({"size", "between", "min", "max"})

NUMERIC_RULES = frozenset({"numeric", "integer"})


def normalize_rule_list(rules: Any) -> List[Rule]:
    """Turn one field's rules into a list, dropping empty entries.

    Args:
        rules: Pipe string, list/tuple of rules, or a single callable

    Returns:
        Ordered list of rules
    """
    if rules is None:
        return []
    if callable(rules) and not isinstance(rules, str):
        return [rules]
    if isinstance(rules, str):
        rules = rules.split("|")

    result: List[Rule] = []
    for rule in rules:
        if isinstance(rule, str):
            rule = rule.strip()
            if rule:
                result.append(rule)
        elif rule is not None:
            result.append(rule)
    return result


def normalize_rules(rules: Mapping[str, Any]) -> Dict[str, List[Rule]]:
    """Normalise a whole rule set, dropping fields whose rules are empty."""
    normalized = {}
    for field, field_rules in (rules or {}).items():
        rule_list = normalize_rule_list(field_rules)
        if rule_list:
            normalized[field] = rule_list
    return normalized


def is_empty_rule(rules: Any) -> bool:
    """Whether a field's rule entry carries no rule at all."""
    if rules is None:
        return True
    if isinstance(rules, str):
        return rules.strip() == ""
    if isinstance(rules, (list, tuple)):
        return len(rules) == 0 or all(isinstance(r, str) and r.strip() == "" for r in rules)
    return False


def parse_rule(rule: str) -> Tuple[str, List[str]]:
    """Split a rule string into its name and parameters.

    Example:
        >>> parse_rule("between:1,10")
        ('between', ['1', '10'])
        >>> parse_rule("regex:/^[a-z,]+$/")
        ('regex', ['/^[a-z,]+$/'])
    """
    name, _, raw = rule.partition(":")
    name = name.strip().lower()
    if not raw:
        return name, []
    if name == "regex":
        return name, [raw]
    return name, [param.strip() for param in raw.split(",")]


def callable_rule_name(rule: Callable[..., Any]) -> str:
    """Name used to look up messages for a callable rule."""
    name = getattr(rule, "__name__", "")
    if not name or name == "<lambda>":
        return "custom"
    return name
