"""Rule based validation using Pydantic as the type foundation.

RuleValidator evaluates a rule set (``{"email": "required|email"}``) over a
data mapping and collects human readable messages in a MessageBag. Type
shaped rules (numeric, integer, boolean, date, url, ip) are decided by
Pydantic type adapters; storage backed rules (unique, exists) ask a
PresenceVerifier.
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import AnyUrl, TypeAdapter, ValidationError as PydanticValidationError
from pydantic.networks import IPvAnyAddress

from ardent.core.errors.errors import configuration_error
from ardent.core.errors.models import ValidationErrorDetail
from ardent.core.interfaces import PresenceVerifier
from ardent.core.validation.catalog import MessageCatalog, load_catalog
from ardent.core.validation.message_bag import MessageBag
from ardent.core.validation.rules import (
    IMPLICIT_RULES,
    NUMERIC_RULES,
    SIZE_RULES,
    Rule,
    callable_rule_name,
    normalize_rules,
    parse_rule,
)

logger = logging.getLogger(__name__)

_FLOAT = TypeAdapter(float)
_INT = TypeAdapter(int)
_DATETIME = TypeAdapter(datetime)
_DATE = TypeAdapter(date)
_URL = TypeAdapter(AnyUrl)
_IP = TypeAdapter(IPvAnyAddress)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_ALPHA_PATTERN = re.compile(r"^[^\W\d_]+$")
_ALPHA_NUM_PATTERN = re.compile(r"^[^\W_]+$")
_ALPHA_DASH_PATTERN = re.compile(r"^[\w-]+$")

_ACCEPTED_VALUES = ("yes", "on", "1", 1, True, "true")
_BOOLEAN_VALUES = (True, False, 0, 1, "0", "1")


def _conforms(adapter: TypeAdapter, value: Any) -> bool:
    """Check whether a value validates against a type adapter."""
    if isinstance(value, bool):
        return False
    try:
        adapter.validate_python(value)
        return True
    except PydanticValidationError:
        return False


def _to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None
    for adapter in (_DATETIME, _DATE):
        try:
            return _to_datetime(adapter.validate_python(value))
        except PydanticValidationError:
            continue
    return None


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    if isinstance(value, (list, tuple, dict, set)) and len(value) == 0:
        return True
    return False


class RuleValidator:
    """Evaluates one rule set over one data mapping.

    This class provides:
    1. Evaluation of string rules and callable rules
    2. Message rendering from custom messages and the locale catalog
    3. Structured error details for logging and reporting
    """

    def __init__(
        self,
        data: Mapping[str, Any],
        rules: Mapping[str, Any],
        messages: Optional[Mapping[str, str]] = None,
        attributes: Optional[Mapping[str, str]] = None,
        catalog: Optional[MessageCatalog] = None,
        presence_verifier: Optional[PresenceVerifier] = None,
    ):
        """Initialize validator.

        Args:
            data: Data under validation
            rules: Rule set keyed by field
            messages: Custom messages keyed by ``field.rule`` or ``rule``
            attributes: Custom labels for the :attribute placeholder
            catalog: Message catalog, the default locale when absent
            presence_verifier: Storage lookup for unique and exists
        """
        self.data = dict(data or {})
        self.rules: Dict[str, List[Rule]] = normalize_rules(rules)
        self.custom_messages = dict(messages or {})
        self.custom_attributes = dict(attributes or {})
        self.catalog = catalog or load_catalog()
        self.presence_verifier = presence_verifier
        self._messages: Optional[MessageBag] = None
        self._failed: Dict[str, Dict[str, List[str]]] = {}

    def passes(self) -> bool:
        """Run every rule and report whether all of them held."""
        self._messages = MessageBag()
        self._failed = {}

        for attribute, rules in self.rules.items():
            for rule in rules:
                self._validate(attribute, rule)

        if self._messages.any():
            logger.debug(f"Validation failed for {self._messages.keys()}")
        return self._messages.is_empty()

    def fails(self) -> bool:
        return not self.passes()

    def messages(self) -> MessageBag:
        """Messages of the last run, running the rules first if needed."""
        if self._messages is None:
            self.passes()
        return self._messages

    errors = messages

    def failed(self) -> Dict[str, Dict[str, List[str]]]:
        """Failed rules per attribute with their parameters."""
        self.messages()
        return {attribute: dict(rules) for attribute, rules in self._failed.items()}

    def details(self) -> List[ValidationErrorDetail]:
        """Failed rules as structured validation error details."""
        details = []
        for attribute, rules in self.failed().items():
            messages = self._messages.get(attribute)
            for index, rule in enumerate(rules):
                message = messages[index] if index < len(messages) else ""
                details.append(ValidationErrorDetail(location=attribute, message=message, error_type=rule))
        return details

    def _validate(self, attribute: str, rule: Rule) -> None:
        value = self.data.get(attribute)

        if callable(rule) and not isinstance(rule, str):
            name = callable_rule_name(rule)
            if _is_blank(value) or rule(value, attribute, self.data):
                return
            self._add_failure(attribute, name, [])
            return

        name, params = parse_rule(rule)
        if not name:
            return

        if name not in IMPLICIT_RULES and _is_blank(value):
            return

        method: Optional[Callable[..., bool]] = getattr(self, f"validate_{name}", None)
        if method is None:
            raise configuration_error(
                f"Validation rule '{name}' does not exist",
                model_name="RuleValidator",
                operation="validate",
                config_key=attribute,
                expected="a known rule name",
                actual=rule,
                section="rules",
            )

        if not method(attribute, value, params):
            self._add_failure(attribute, name, params)

    def _add_failure(self, attribute: str, rule: str, params: List[str]) -> None:
        self._failed.setdefault(attribute, {})[rule] = params
        self._messages.add(attribute, self._make_message(attribute, rule, params))

    # Messages

    def _make_message(self, attribute: str, rule: str, params: List[str]) -> str:
        message = (
            self.custom_messages.get(f"{attribute}.{rule}")
            or self.custom_messages.get(rule)
            or self.catalog.custom_line(attribute, rule)
        )

        if message is None:
            lookup = "custom_rule" if self._is_custom_rule(attribute, rule) else rule
            kind = self._size_kind(attribute) if rule in SIZE_RULES else None
            message = self.catalog.line(lookup, kind) or f"validation.{rule}"

        message = message.replace(":attribute", self.attribute_label(attribute))
        return self._replace_placeholders(message, rule, params)

    def _is_custom_rule(self, attribute: str, rule: str) -> bool:
        return any(
            callable(r) and not isinstance(r, str) and callable_rule_name(r) == rule
            for r in self.rules.get(attribute, [])
        )

    def attribute_label(self, attribute: str) -> str:
        """Label substituted for the :attribute placeholder."""
        if attribute in self.custom_attributes:
            return self.custom_attributes[attribute]
        return self.catalog.attribute_label(attribute) or attribute.replace("_", " ")

    def _replace_placeholders(self, message: str, rule: str, params: List[str]) -> str:
        if rule in ("between", "digits_between") and len(params) >= 2:
            return message.replace(":min", params[0]).replace(":max", params[1])
        if rule in ("min", "max", "size", "digits") and params:
            return message.replace(f":{rule}", params[0])
        if rule == "date_format" and params:
            return message.replace(":format", params[0])
        if rule in ("in", "not_in"):
            return message.replace(":values", ", ".join(params))
        if rule in ("same", "different") and params:
            return message.replace(":other", self.attribute_label(params[0]))
        if rule in ("required_with", "required_without"):
            return message.replace(":values", " / ".join(self.attribute_label(p) for p in params))
        if rule == "required_if" and len(params) >= 2:
            return message.replace(":other", self.attribute_label(params[0])).replace(":value", params[1])
        if rule in ("after", "before") and params:
            return message.replace(":date", params[0])
        return message

    # Helpers

    def _has_rule(self, attribute: str, names) -> bool:
        for rule in self.rules.get(attribute, []):
            if isinstance(rule, str) and parse_rule(rule)[0] in names:
                return True
        return False

    def _size_kind(self, attribute: str) -> str:
        value = self.data.get(attribute)
        if isinstance(value, (list, tuple, dict, set)):
            return "array"
        if self._has_rule(attribute, NUMERIC_RULES):
            return "numeric"
        return "string"

    def _size(self, attribute: str, value: Any) -> float:
        kind = self._size_kind(attribute)
        if kind == "array":
            return len(value)
        if kind == "numeric" and _conforms(_FLOAT, value):
            return _FLOAT.validate_python(value)
        return len(str(value))

    def _require_verifier(self, rule: str) -> PresenceVerifier:
        if self.presence_verifier is None:
            raise configuration_error(
                f"A presence verifier is required by the '{rule}' rule",
                model_name="RuleValidator",
                operation=f"validate_{rule}",
                config_key="presence_verifier",
                expected="PresenceVerifier",
                actual=None,
                section="validation",
            )
        return self.presence_verifier

    # Implicit rules

    def validate_required(self, attribute: str, value: Any, params: List[str]) -> bool:
        return not _is_blank(value)

    def validate_required_with(self, attribute: str, value: Any, params: List[str]) -> bool:
        if any(not _is_blank(self.data.get(other)) for other in params):
            return self.validate_required(attribute, value, [])
        return True

    def validate_required_without(self, attribute: str, value: Any, params: List[str]) -> bool:
        if any(_is_blank(self.data.get(other)) for other in params):
            return self.validate_required(attribute, value, [])
        return True

    def validate_required_if(self, attribute: str, value: Any, params: List[str]) -> bool:
        other, values = params[0], params[1:]
        if str(self.data.get(other)) in values:
            return self.validate_required(attribute, value, [])
        return True

    def validate_accepted(self, attribute: str, value: Any, params: List[str]) -> bool:
        return self.validate_required(attribute, value, []) and value in _ACCEPTED_VALUES

    # Type rules

    def validate_numeric(self, attribute: str, value: Any, params: List[str]) -> bool:
        return _conforms(_FLOAT, value)

    def validate_integer(self, attribute: str, value: Any, params: List[str]) -> bool:
        return _conforms(_INT, value)

    def validate_boolean(self, attribute: str, value: Any, params: List[str]) -> bool:
        return value in _BOOLEAN_VALUES

    def validate_string(self, attribute: str, value: Any, params: List[str]) -> bool:
        return isinstance(value, str)

    def validate_array(self, attribute: str, value: Any, params: List[str]) -> bool:
        return isinstance(value, (list, tuple, dict))

    def validate_date(self, attribute: str, value: Any, params: List[str]) -> bool:
        return _to_datetime(value) is not None

    def validate_date_format(self, attribute: str, value: Any, params: List[str]) -> bool:
        try:
            datetime.strptime(str(value), params[0])
            return True
        except ValueError:
            return False

    def validate_after(self, attribute: str, value: Any, params: List[str]) -> bool:
        moment, bound = _to_datetime(value), self._date_param(params[0])
        return moment is not None and bound is not None and moment > bound

    def validate_before(self, attribute: str, value: Any, params: List[str]) -> bool:
        moment, bound = _to_datetime(value), self._date_param(params[0])
        return moment is not None and bound is not None and moment < bound

    def _date_param(self, param: str) -> Optional[datetime]:
        # The parameter may name another field holding the date
        return _to_datetime(param) or _to_datetime(self.data.get(param))

    def validate_email(self, attribute: str, value: Any, params: List[str]) -> bool:
        return isinstance(value, str) and _EMAIL_PATTERN.match(value) is not None

    def validate_url(self, attribute: str, value: Any, params: List[str]) -> bool:
        return isinstance(value, str) and _conforms(_URL, value)

    def validate_ip(self, attribute: str, value: Any, params: List[str]) -> bool:
        return _conforms(_IP, value)

    def validate_alpha(self, attribute: str, value: Any, params: List[str]) -> bool:
        return isinstance(value, str) and _ALPHA_PATTERN.match(value) is not None

    def validate_alpha_num(self, attribute: str, value: Any, params: List[str]) -> bool:
        return _ALPHA_NUM_PATTERN.match(str(value)) is not None

    def validate_alpha_dash(self, attribute: str, value: Any, params: List[str]) -> bool:
        return _ALPHA_DASH_PATTERN.match(str(value)) is not None

    def validate_regex(self, attribute: str, value: Any, params: List[str]) -> bool:
        pattern = params[0]
        # Accept delimited patterns such as /^[a-z]+$/
        if len(pattern) >= 2 and pattern[0] == pattern[-1] == "/":
            pattern = pattern[1:-1]
        return re.search(pattern, str(value)) is not None

    # Size rules

    def validate_size(self, attribute: str, value: Any, params: List[str]) -> bool:
        return self._size(attribute, value) == float(params[0])

    def validate_between(self, attribute: str, value: Any, params: List[str]) -> bool:
        size = self._size(attribute, value)
        return float(params[0]) <= size <= float(params[1])

    def validate_min(self, attribute: str, value: Any, params: List[str]) -> bool:
        return self._size(attribute, value) >= float(params[0])

    def validate_max(self, attribute: str, value: Any, params: List[str]) -> bool:
        return self._size(attribute, value) <= float(params[0])

    def validate_digits(self, attribute: str, value: Any, params: List[str]) -> bool:
        return self.validate_numeric(attribute, value, []) and len(str(value)) == int(params[0])

    def validate_digits_between(self, attribute: str, value: Any, params: List[str]) -> bool:
        length = len(str(value))
        return self.validate_numeric(attribute, value, []) and int(params[0]) <= length <= int(params[1])

    # Comparison rules

    def validate_confirmed(self, attribute: str, value: Any, params: List[str]) -> bool:
        return self.validate_same(attribute, value, [f"{attribute}_confirmation"])

    def validate_same(self, attribute: str, value: Any, params: List[str]) -> bool:
        return params[0] in self.data and self.data[params[0]] == value

    def validate_different(self, attribute: str, value: Any, params: List[str]) -> bool:
        return params[0] in self.data and self.data[params[0]] != value

    def validate_in(self, attribute: str, value: Any, params: List[str]) -> bool:
        return str(value) in params

    def validate_not_in(self, attribute: str, value: Any, params: List[str]) -> bool:
        return str(value) not in params

    # Storage rules

    def validate_unique(self, attribute: str, value: Any, params: List[str]) -> bool:
        """unique:table,column,except,id_column,where_column,where_value,..."""
        verifier = self._require_verifier("unique")
        table = params[0]
        column = params[1] if len(params) > 1 and params[1] else attribute

        exclude_id, id_column = None, None
        if len(params) > 2 and params[2] and params[2].upper() != "NULL":
            exclude_id = params[2]
            id_column = params[3] if len(params) > 3 and params[3] else "id"

        extra = self._extra_conditions(params[4:])
        return verifier.get_count(table, column, value, exclude_id, id_column, extra) == 0

    def validate_exists(self, attribute: str, value: Any, params: List[str]) -> bool:
        """exists:table,column,where_column,where_value,..."""
        verifier = self._require_verifier("exists")
        table = params[0]
        column = params[1] if len(params) > 1 and params[1] else attribute
        extra = self._extra_conditions(params[2:])

        if isinstance(value, (list, tuple)):
            return verifier.get_multi_count(table, column, list(value), extra) >= len(value)
        return verifier.get_count(table, column, value, None, None, extra) >= 1

    @staticmethod
    def _extra_conditions(segments: List[str]) -> Dict[str, Any]:
        return {segments[i]: segments[i + 1] for i in range(0, len(segments) - 1, 2)}


class ValidatorFactory:
    """Builds RuleValidators sharing a catalog and a presence verifier."""

    def __init__(self, catalog: Optional[MessageCatalog] = None, presence_verifier: Optional[PresenceVerifier] = None):
        self.catalog = catalog or load_catalog()
        self.presence_verifier = presence_verifier

    def set_presence_verifier(self, presence_verifier: Optional[PresenceVerifier]) -> None:
        self.presence_verifier = presence_verifier

    def make(
        self,
        data: Mapping[str, Any],
        rules: Mapping[str, Any],
        messages: Optional[Mapping[str, str]] = None,
        attributes: Optional[Mapping[str, str]] = None,
        presence_verifier: Optional[PresenceVerifier] = None,
    ) -> RuleValidator:
        """Create a validator.

        Args:
            data: Data under validation
            rules: Rule set keyed by field
            messages: Custom messages
            attributes: Custom attribute labels
            presence_verifier: Store queried by unique and exists for this
                validator only, the factory's verifier when None

        Returns:
            A validator ready to run
        """
        return RuleValidator(
            data,
            rules,
            messages,
            attributes,
            catalog=self.catalog,
            presence_verifier=self.presence_verifier if presence_verifier is None else presence_verifier,
        )
