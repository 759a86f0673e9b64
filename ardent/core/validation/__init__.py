"""Rule based validation for ardent."""

from ardent.core.validation.catalog import MessageCatalog, load_catalog
from ardent.core.validation.message_bag import MessageBag
from ardent.core.validation.rules import normalize_rule_list, normalize_rules, parse_rule
from ardent.core.validation.validation import RuleValidator, ValidatorFactory

__all__ = [
    "MessageBag",
    "MessageCatalog",
    "RuleValidator",
    "ValidatorFactory",
    "load_catalog",
    "normalize_rule_list",
    "normalize_rules",
    "parse_rule",
]
