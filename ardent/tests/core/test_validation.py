"""Tests for rule parsing, message bags and the rule validator."""

import pytest

from ardent.core.errors.errors import ConfigurationError
from ardent.core.validation.catalog import load_catalog
from ardent.core.validation.message_bag import MessageBag
from ardent.core.validation.rules import (
    callable_rule_name,
    is_empty_rule,
    normalize_rule_list,
    normalize_rules,
    parse_rule,
)
from ardent.core.validation.validation import RuleValidator, ValidatorFactory
from ardent.orm.store import MemoryStore


def first_error(data, rules, **kwargs):
    validator = RuleValidator(data, rules, **kwargs)
    assert not validator.passes()
    return validator.messages().first()


class TestRuleParsing:
    """Test rule normalisation and parsing."""

    def test_pipe_string_split(self):
        """Test pipe strings become ordered lists without empty entries."""
        assert normalize_rule_list("required| email ||min:3") == ["required", "email", "min:3"]

    def test_list_and_callable(self):
        """Test lists keep callables and single callables are wrapped."""
        check = lambda value, attribute, data: True

        assert normalize_rule_list(["required", "", check]) == ["required", check]
        assert normalize_rule_list(check) == [check]
        assert normalize_rule_list(None) == []

    def test_normalize_rules_drops_empty_fields(self):
        """Test fields without rules are dropped."""
        rules = {"email": "required", "name": "", "age": []}

        assert normalize_rules(rules) == {"email": ["required"]}

    def test_is_empty_rule(self):
        """Test empty rule detection."""
        assert is_empty_rule("")
        assert is_empty_rule(None)
        assert is_empty_rule(["", " "])
        assert not is_empty_rule("required")
        assert not is_empty_rule(lambda value, attribute, data: True)

    def test_parse_rule(self):
        """Test name and parameter splitting."""
        assert parse_rule("required") == ("required", [])
        assert parse_rule("between:1,10") == ("between", ["1", "10"])
        assert parse_rule("unique:users,email") == ("unique", ["users", "email"])

    def test_parse_regex_keeps_commas(self):
        """Test regex patterns are not split on commas."""
        assert parse_rule("regex:/^[a-z,]+$/") == ("regex", ["/^[a-z,]+$/"])

    def test_callable_rule_name(self):
        """Test named functions keep their name and lambdas are custom."""
        def is_even(value, attribute, data):
            return True

        assert callable_rule_name(is_even) == "is_even"
        assert callable_rule_name(lambda value, attribute, data: True) == "custom"


class TestMessageBag:
    """Test MessageBag."""

    def test_add_and_get(self):
        """Test messages are kept per key without duplicates."""
        bag = MessageBag()
        bag.add("email", "Required.").add("email", "Required.").add("email", "Invalid.")

        assert bag.get("email") == ["Required.", "Invalid."]
        assert bag.has("email")
        assert not bag.has("name")
        assert bag.count() == 2

    def test_first_and_all(self):
        """Test first message lookups."""
        bag = MessageBag({"email": ["a", "b"], "name": "c"})

        assert bag.first() == "a"
        assert bag.first("name") == "c"
        assert bag.first("missing") == ""
        assert bag.all() == ["a", "b", "c"]
        assert bag.keys() == ["email", "name"]

    def test_empty_bag_is_truthy(self):
        """Test an empty bag is still a real object."""
        bag = MessageBag()

        assert bag
        assert bag.is_empty()
        assert not bag.any()
        assert len(bag) == 0

    def test_merge(self):
        """Test merging bags and mappings."""
        bag = MessageBag({"email": ["a"]})
        bag.merge(MessageBag({"email": ["b"]})).merge({"name": ["c"]})

        assert bag.to_dict() == {"email": ["a", "b"], "name": ["c"]}

    def test_equality_and_membership(self):
        """Test comparison with bags and dicts."""
        bag = MessageBag({"email": ["a"]})

        assert bag == MessageBag({"email": ["a"]})
        assert bag == {"email": ["a"]}
        assert "email" in bag
        assert list(bag) == ["email"]


class TestMessageCatalog:
    """Test locale catalogs."""

    def test_english_lines(self):
        """Test plain and size specific lines."""
        catalog = load_catalog("en")

        assert catalog.line("required") == "The :attribute field is required."
        assert catalog.line("min", "string") == "The :attribute must be at least :min characters."
        assert catalog.line("min") is None

    def test_portuguese_catalog(self):
        """Test the bundled pt_br catalog."""
        assert load_catalog("pt-BR").line("required") == "O campo :attribute é obrigatório."

    def test_unknown_locale_falls_back(self):
        """Test unknown locales use the default catalog."""
        assert load_catalog("xx").line("required") == "The :attribute field is required."

    def test_extra_files_layer_over(self, tmp_path):
        """Test extra YAML files override bundled lines."""
        extra = tmp_path / "validation.yaml"
        extra.write_text(
            "required: 'Please fill in :attribute.'\n"
            "attributes:\n  email: e-mail address\n"
        )

        catalog = load_catalog("en", extra_files=[extra])

        assert catalog.line("required") == "Please fill in :attribute."
        assert catalog.attribute_label("email") == "e-mail address"
        assert load_catalog("en").line("required") == "The :attribute field is required."


class TestRuleValidator:
    """Test RuleValidator rules and messages."""

    def test_passes_and_fails(self):
        """Test basic outcomes."""
        assert RuleValidator({"email": "a@b.c"}, {"email": "required|email"}).passes()
        assert RuleValidator({"email": ""}, {"email": "required|email"}).fails()

    def test_required_message(self):
        """Test the default message and attribute label."""
        assert first_error({}, {"first_name": "required"}) == "The first name field is required."

    def test_optional_fields_skip_rules(self):
        """Test non-implicit rules ignore empty values."""
        assert RuleValidator({"email": None, "age": ""}, {"email": "email", "age": "integer"}).passes()

    def test_string_size_message(self):
        """Test size rules on strings."""
        assert first_error({"name": "ab"}, {"name": "min:3"}) == "The name must be at least 3 characters."

    def test_numeric_size_message(self):
        """Test size rules on numbers."""
        assert first_error({"age": "5"}, {"age": "numeric|min:18"}) == "The age must be at least 18."

    def test_array_size_message(self):
        """Test size rules on lists."""
        message = first_error({"tags": ["a"]}, {"tags": "array|between:2,4"})

        assert message == "The tags must have between 2 and 4 items."

    def test_max_and_size(self):
        """Test max and size with their placeholders."""
        assert first_error({"code": "abcd"}, {"code": "max:3"}) == "The code may not be greater than 3 characters."
        assert first_error({"pin": "12"}, {"pin": "size:4"}) == "The pin must be 4 characters."

    @pytest.mark.parametrize("rule,good,bad", [
        ("integer", "12", "1.5"),
        ("numeric", "1.5", "abc"),
        ("boolean", "1", "yes"),
        ("accepted", "yes", "no"),
        ("email", "user@example.com", "user@"),
        ("url", "https://example.com/path", "not a url"),
        ("ip", "127.0.0.1", "999.1.1.1"),
        ("alpha", "abc", "abc1"),
        ("alpha_num", "abc1", "abc-1"),
        ("alpha_dash", "abc-1_2", "abc 1"),
        ("date", "2024-01-31", "not a date"),
        ("date_format:%Y-%m-%d", "2024-01-31", "2024-13-01"),
        ("after:2020-01-01", "2021-05-05", "2019-05-05"),
        ("before:2020-01-01", "2019-05-05", "2021-05-05"),
        ("digits:4", "1234", "123"),
        ("digits_between:2,3", "123", "1234"),
        ("in:red,green", "red", "blue"),
        ("not_in:red,green", "blue", "red"),
        ("regex:/^[a-z,]+$/", "ab,c", "AB"),
        ("string", "text", 12),
        ("array", ["a"], "a"),
    ])
    def test_type_rules(self, rule, good, bad):
        """Test each rule accepts a good value and rejects a bad one."""
        assert RuleValidator({"field": good}, {"field": rule}).passes()
        assert RuleValidator({"field": bad}, {"field": rule}).fails()

    def test_booleans_are_not_numbers(self):
        """Test bool values fail numeric rules."""
        assert RuleValidator({"count": True}, {"count": "integer"}).fails()

    def test_confirmed(self):
        """Test the confirmation field must match."""
        data = {"password": "secret", "password_confirmation": "other"}

        assert first_error(data, {"password": "confirmed"}) == "The password confirmation does not match."

        data["password_confirmation"] = "secret"
        assert RuleValidator(data, {"password": "confirmed"}).passes()

    def test_same_and_different(self):
        """Test field comparisons."""
        data = {"a": "x", "b": "x", "c": "y"}

        assert RuleValidator(data, {"a": "same:b"}).passes()
        assert first_error(data, {"a": "different:b"}) == "The a and b must be different."
        assert RuleValidator(data, {"a": "different:c"}).passes()

    def test_required_with_and_without(self):
        """Test conditional presence rules."""
        assert first_error({"a": "x"}, {"b": "required_with:a"}) == "The b field is required when a is present."
        assert RuleValidator({}, {"b": "required_with:a"}).passes()
        assert RuleValidator({"a": "x"}, {"b": "required_without:a"}).passes()
        assert RuleValidator({}, {"b": "required_without:a"}).fails()

    def test_required_if(self):
        """Test presence required by another field's value."""
        message = first_error({"type": "company"}, {"vat": "required_if:type,company"})

        assert message == "The vat field is required when type is company."
        assert RuleValidator({"type": "person"}, {"vat": "required_if:type,company"}).passes()

    def test_callable_rule(self):
        """Test callables receive value, attribute and data."""
        def is_even(value, attribute, data):
            return int(value) % 2 == 0

        assert RuleValidator({"number": 4}, {"number": [is_even]}).passes()
        assert first_error({"number": 3}, {"number": [is_even]}) == "The number is invalid."
        assert first_error({"number": 3}, {"number": [is_even]}, messages={"is_even": "Must be even."}) == "Must be even."

    def test_custom_messages_precedence(self):
        """Test field.rule messages win over rule messages."""
        messages = {"required": "Need :attribute!", "email.required": "Email please."}

        validator = RuleValidator({}, {"email": "required", "name": "required"}, messages=messages)

        assert validator.fails()
        assert validator.messages().get("email") == ["Email please."]
        assert validator.messages().get("name") == ["Need name!"]

    def test_custom_attribute_labels(self):
        """Test custom labels replace the attribute placeholder."""
        message = first_error({}, {"email": "required"}, attributes={"email": "e-mail address"})

        assert message == "The e-mail address field is required."

    def test_localised_messages(self):
        """Test messages come from the given catalog."""
        message = first_error({}, {"email": "required"}, catalog=load_catalog("pt_br"))

        assert message == "O campo email é obrigatório."

    def test_unknown_rule(self):
        """Test unknown rule names are configuration errors."""
        with pytest.raises(ConfigurationError):
            RuleValidator({"email": "a"}, {"email": "shiny"}).passes()

    def test_failed_and_details(self):
        """Test structured failure reports."""
        validator = RuleValidator({"name": "ab"}, {"name": "required|min:3", "email": "required"})

        assert validator.fails()
        assert validator.failed() == {"name": {"min": ["3"]}, "email": {"required": []}}
        details = validator.details()
        assert [(d.location, d.error_type) for d in details] == [("name", "min"), ("email", "required")]
        assert validator.errors() is validator.messages()

    def test_messages_runs_rules(self):
        """Test messages() runs the rules when passes() was not called."""
        validator = RuleValidator({}, {"email": "required"})

        assert validator.messages().has("email")


class TestStorageRules:
    """Test unique and exists rules."""

    @pytest.fixture
    def users(self):
        store = MemoryStore("rules")
        store.insert("users", {"email": "taken@example.com", "status": "active"}, "id")
        store.insert("users", {"email": "other@example.com", "status": "banned"}, "id")
        return store

    def test_requires_presence_verifier(self):
        """Test storage rules need a verifier."""
        with pytest.raises(ConfigurationError):
            RuleValidator({"email": "a@b.c"}, {"email": "unique:users"}).passes()

    def test_unique(self, users):
        """Test unique fails for taken values."""
        rules = {"email": "unique:users"}

        assert RuleValidator({"email": "free@example.com"}, rules, presence_verifier=users).passes()
        validator = RuleValidator({"email": "taken@example.com"}, rules, presence_verifier=users)
        assert validator.fails()
        assert validator.messages().first("email") == "The email has already been taken."

    def test_unique_with_exclusion(self, users):
        """Test unique ignores the excluded row."""
        data = {"email": "taken@example.com"}

        assert RuleValidator(data, {"email": "unique:users,email,1,id"}, presence_verifier=users).passes()
        assert RuleValidator(data, {"email": "unique:users,email,2,id"}, presence_verifier=users).fails()

    def test_unique_with_where_clause(self, users):
        """Test extra where conditions narrow the check."""
        rules = {"email": "unique:users,email,NULL,id,status,banned"}

        assert RuleValidator({"email": "taken@example.com"}, rules, presence_verifier=users).passes()

    def test_exists(self, users):
        """Test exists for single values and lists."""
        rules = {"email": "exists:users"}

        assert RuleValidator({"email": "taken@example.com"}, rules, presence_verifier=users).passes()
        assert RuleValidator({"email": "nobody@example.com"}, rules, presence_verifier=users).fails()
        assert RuleValidator(
            {"email": ["taken@example.com", "other@example.com"]}, rules, presence_verifier=users
        ).passes()


class TestValidatorFactory:
    """Test ValidatorFactory."""

    def test_make_shares_collaborators(self):
        """Test validators get the factory's catalog and verifier."""
        store = MemoryStore("factory")
        catalog = load_catalog("pt_br")
        factory = ValidatorFactory(catalog=catalog, presence_verifier=store)

        validator = factory.make({"email": ""}, {"email": "required"}, {"x": "y"}, {"email": "E-mail"})

        assert validator.catalog is catalog
        assert validator.presence_verifier is store
        assert validator.custom_messages == {"x": "y"}
        assert validator.fails()

    def test_set_presence_verifier(self):
        """Test the verifier can be swapped."""
        factory = ValidatorFactory()
        store = MemoryStore("factory")

        factory.set_presence_verifier(store)

        assert factory.make({}, {}).presence_verifier is store

    def test_make_with_own_verifier(self):
        """Test a per-call verifier replaces the factory's for that validator."""
        shared = MemoryStore("shared")
        own = MemoryStore("own")
        own.insert("users", {"email": "taken@example.com"}, "id")
        factory = ValidatorFactory(presence_verifier=shared)

        validator = factory.make({"email": "taken@example.com"}, {"email": "unique:users"}, presence_verifier=own)

        assert validator.presence_verifier is own
        assert validator.fails()
        assert factory.make({}, {}).presence_verifier is shared
