"""Self-validating models.

Ardent extends the host Model with a validate-then-save lifecycle:

    class User(Ardent):
        rules = {"email": "required|email|unique", "password": "required|min:8|confirmed"}
        password_attributes = ["password"]
        relations = {"posts": (RelationKind.HAS_MANY, "Post")}

    user = User(email="a@b.c", password="secret123", password_confirmation="secret123")
    user.auto_purge_redundant_attributes = True
    user.auto_hash_password_attributes = True
    if not user.save():
        print(user.errors().all())

save() validates the attributes against the type's rules, and only when
they pass purges redundant attributes, hashes changed passwords and hands
the row to the host Model.save(). force_save() skips the gate.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import Field

from ardent.core.errors.errors import InvalidEntityError
from ardent.core.events.events import Hook, LifecyclePhase
from ardent.core.models import StrictBaseModel
from ardent.core.settings.settings import get_settings
from ardent.core.validation.message_bag import MessageBag
from ardent.core.validation.rules import is_empty_rule, normalize_rule_list, parse_rule
from ardent.entity.descriptors import resolver
from ardent.entity.environment import configure_as_external, get_environment
from ardent.entity.purge import PurgeFilter, default_purge_filters, purge_attributes
from ardent.orm.model import Model
from ardent.utils.text import camel

logger = logging.getLogger(__name__)


class EntityState(str, Enum):
    """Where an entity stands in the validate-then-save lifecycle."""

    UNVALIDATED = "unvalidated"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"
    SAVED = "saved"
    REJECTED = "rejected"


class EntityConfig(StrictBaseModel):
    """Per-type configuration built from the class body when the type is created."""

    model_name: str = Field(..., description="Entity type name")
    rules: Dict[str, Any] = Field(default_factory=dict, description="Validation rules by field")
    custom_messages: Dict[str, str] = Field(default_factory=dict, description="Messages by rule or field.rule")
    custom_attributes: Dict[str, str] = Field(default_factory=dict, description="Labels by field")
    relations: Dict[str, Any] = Field(default_factory=dict, description="Raw relation declarations")
    password_attributes: Tuple[str, ...] = Field(default=(), description="Attributes hashed before saving")
    throw_on_find: Optional[bool] = Field(default=None, description="find() raises on a miss when True")

    @classmethod
    def from_class(cls, entity_cls: type) -> "EntityConfig":
        return cls(
            model_name=entity_cls.__name__,
            rules=dict(entity_cls.rules),
            custom_messages=dict(entity_cls.custom_messages),
            custom_attributes=dict(entity_cls.custom_attributes),
            relations=dict(entity_cls.relations),
            password_attributes=tuple(entity_cls.password_attributes),
            throw_on_find=entity_cls.throw_on_find,
        )


class Ardent(Model):
    """Model that validates itself before saving.

    Class-body declarations (read once, when the type is created):

    Attributes:
        rules: Validation rules keyed by field
        custom_messages: Validation messages keyed by ``rule`` or ``field.rule``
        custom_attributes: Labels for the :attribute message placeholder
        relations: Relation declarations keyed by relation name
        password_attributes: Attributes hashed by perform_save()
        throw_on_find: find() raises ModelNotFoundError on a miss; the
            setting of the same name applies when None

    Instance flags (class defaults, may be set per instance):

    Attributes:
        throw_on_validation: validate() raises InvalidEntityError on failure;
            the setting of the same name applies when None
        auto_hydrate_entity_from_input: Fill an empty entity from request input
        force_entity_hydration_from_input: Always fill from request input
        auto_purge_redundant_attributes: Drop confirmation and reserved fields
        auto_hash_password_attributes: Hash changed password attributes

    Lifecycle (instance only):

    Attributes:
        entity_state: Where the entity stands in validate-then-save
        validation_errors: Messages of the last failed validation
    """

    __abstract__ = True

    rules: Dict[str, Any] = {}
    custom_messages: Dict[str, str] = {}
    custom_attributes: Dict[str, str] = {}
    relations: Dict[str, Any] = {}
    password_attributes: List[str] = []
    throw_on_find: Optional[bool] = None

    throw_on_validation: Optional[bool] = None
    auto_hydrate_entity_from_input: bool = False
    force_entity_hydration_from_input: bool = False
    auto_purge_redundant_attributes: bool = False
    auto_hash_password_attributes: bool = False

    entity_state: EntityState = EntityState.UNVALIDATED
    validation_errors: Optional[MessageBag] = None

    _entity_config: EntityConfig

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._entity_config = EntityConfig.from_class(cls)

    def __init__(self, attributes: Optional[Dict[str, Any]] = None, **kwargs: Any):
        super().__init__(attributes, **kwargs)
        self.validation_errors = MessageBag()
        self.entity_state = EntityState.UNVALIDATED
        self._validator = None
        self._purge_filters: List[PurgeFilter] = default_purge_filters()

    @classmethod
    def entity_config(cls) -> EntityConfig:
        return cls._entity_config

    @classmethod
    def relation_declarations(cls) -> Mapping[str, Any]:
        return cls._entity_config.relations

    @staticmethod
    def configure_as_external(store: Any = None, lang: str = "en", hasher: Any = None) -> None:
        """Use ardent outside a web request cycle; see environment.configure_as_external."""
        configure_as_external(store=store, lang=lang, hasher=hasher)

    def _throws_on_validation(self) -> bool:
        if self.throw_on_validation is None:
            return get_settings().throw_on_validation
        return self.throw_on_validation

    # Validation

    def validate(
        self,
        rules: Optional[Dict[str, Any]] = None,
        custom_messages: Optional[Dict[str, str]] = None,
        custom_attributes: Optional[Dict[str, str]] = None,
    ) -> bool:
        """Validate the entity's attributes.

        Args:
            rules: Rules replacing the type's rules for this call
            custom_messages: Messages replacing the type's messages
            custom_attributes: Labels replacing the type's labels

        Returns:
            True when every rule passes

        Raises:
            InvalidEntityError: On failure, when throw_on_validation is set
        """
        config = self._entity_config
        env = get_environment()
        self.entity_state = EntityState.VALIDATING

        if self.fire_event(LifecyclePhase.VALIDATING).halted:
            self.entity_state = EntityState.INVALID
            if self._throws_on_validation():
                raise InvalidEntityError(self)
            return False

        rules = {field: rule for field, rule in (rules or config.rules).items() if not is_empty_rule(rule)}
        custom_messages = custom_messages or config.custom_messages
        custom_attributes = custom_attributes or config.custom_attributes

        if not rules:
            success = True
            if self.validation_errors.count() > 0:
                self.validation_errors = MessageBag()
        else:
            if self.force_entity_hydration_from_input or (
                self.auto_hydrate_entity_from_input and not self._attributes
            ):
                self.fill({key: value for key, value in env.request.all().items() if key in rules})

            validator = env.validator_factory.make(
                self.get_attributes(),
                rules,
                custom_messages,
                custom_attributes,
                presence_verifier=self.get_store(),
            )
            self._validator = validator
            success = validator.passes()

            if success:
                if self.validation_errors.count() > 0:
                    self.validation_errors = MessageBag()
            else:
                self.validation_errors = validator.messages()
                if not env.external and env.request.has_session():
                    env.request.flash()

        self.entity_state = EntityState.VALID if success else EntityState.INVALID
        logger.debug(f"{type(self).__name__} validation {'passed' if success else 'failed'}")
        self.fire_event(LifecyclePhase.VALIDATED)

        if not success and self._throws_on_validation():
            raise InvalidEntityError(self)
        return success

    def errors(self) -> MessageBag:
        """Messages of the last failed validation."""
        return self.validation_errors

    def get_validator(self) -> Any:
        """The validator used by the last validate() call that evaluated rules."""
        return self._validator

    # Saving

    def save(
        self,
        rules: Optional[Dict[str, Any]] = None,
        custom_messages: Optional[Dict[str, str]] = None,
        options: Optional[Dict[str, Any]] = None,
        before_save: Optional[Hook] = None,
        after_save: Optional[Hook] = None,
    ) -> bool:
        """Validate, then save when valid.

        Args:
            rules: Rules replacing the type's rules for this call
            custom_messages: Messages replacing the type's messages
            options: Options passed to the host save
            before_save: Callback run in the saving phase of this call only;
                returning False aborts the save
            after_save: Callback run in the saved phase of this call only

        Returns:
            True when the entity was saved
        """
        return self._internal_save(rules, custom_messages, options, before_save, after_save, force=False)

    def force_save(
        self,
        rules: Optional[Dict[str, Any]] = None,
        custom_messages: Optional[Dict[str, str]] = None,
        options: Optional[Dict[str, Any]] = None,
        before_save: Optional[Hook] = None,
        after_save: Optional[Hook] = None,
    ) -> bool:
        """Validate, then save whatever the outcome.

        The error bag still reflects the validation outcome.
        """
        return self._internal_save(rules, custom_messages, options, before_save, after_save, force=True)

    def update_uniques(
        self,
        rules: Optional[Dict[str, Any]] = None,
        custom_messages: Optional[Dict[str, str]] = None,
        options: Optional[Dict[str, Any]] = None,
        before_save: Optional[Hook] = None,
        after_save: Optional[Hook] = None,
    ) -> bool:
        """Save with unique rules that ignore the entity's own row."""
        rules = self.build_unique_exclusion_rules(rules)
        return self.save(rules, custom_messages, options, before_save, after_save)

    def _internal_save(
        self,
        rules: Optional[Dict[str, Any]],
        custom_messages: Optional[Dict[str, str]],
        options: Optional[Dict[str, Any]],
        before_save: Optional[Hook],
        after_save: Optional[Hook],
        force: bool,
    ) -> bool:
        if before_save is not None:
            self.add_transient_hook(LifecyclePhase.SAVING, before_save)
        if after_save is not None:
            self.add_transient_hook(LifecyclePhase.SAVED, after_save)

        try:
            valid = self.validate_uniques(rules, custom_messages)
            saved = self.perform_save(options) if (force or valid) else False
        finally:
            self.clear_transient_hooks()

        self.entity_state = EntityState.SAVED if saved else EntityState.REJECTED
        if force and not valid:
            logger.debug(f"{type(self).__name__} force saved despite failed validation")
        return saved

    def perform_save(self, options: Optional[Dict[str, Any]] = None) -> bool:
        """Purge and hash attributes as configured, then save through the host model."""
        if self.auto_purge_redundant_attributes:
            self.set_raw_attributes(self.purge_array(self.get_attributes()))

        if self.auto_hash_password_attributes:
            self.set_raw_attributes(
                self.hash_password_attributes(self.get_attributes(), self._entity_config.password_attributes)
            )

        return super().save(options)

    # Purging and hashing

    def add_purge_filter(self, purge_filter: PurgeFilter) -> None:
        """Add a filter; attributes it rejects are dropped before saving."""
        self._purge_filters.append(purge_filter)

    def purge_filters(self) -> List[PurgeFilter]:
        return list(self._purge_filters)

    def purge_array(self, attributes: Dict[str, Any]) -> Dict[str, Any]:
        """Keep the attributes every purge filter accepts."""
        return purge_attributes(attributes, self._purge_filters)

    def hash_password_attributes(self, attributes: Dict[str, Any], password_attributes: Any = ()) -> Dict[str, Any]:
        """Hash password attributes whose value changed since the last save.

        Values equal to their original value are already hashed and stay
        as they are.
        """
        if not password_attributes:
            return dict(attributes)

        hasher = get_environment().hasher
        result = {}
        for key, value in attributes.items():
            if key in password_attributes and value is not None and value != self.get_original(key):
                result[key] = hasher.make(value)
            else:
                result[key] = value
        return result

    # Unique rules

    def build_unique_exclusion_rules(self, rules: Optional[Dict[str, Any]] = None) -> Dict[str, List[Any]]:
        """Rewrite unique rules so they ignore the entity's own row.

        ``unique`` on field ``email`` of a ``users`` entity with key 42
        becomes ``unique:users,email,42,id``. Table and column default to
        the entity's table and the field; a fourth parameter names an
        alternative key column.

        Args:
            rules: Rules to rewrite, the type's rules when empty

        Returns:
            Rules with every field normalised to a list
        """
        rules = rules or self._entity_config.rules
        result = {}
        for field, field_rules in rules.items():
            result[field] = [
                self._unique_exclusion_rule(field, rule)
                if isinstance(rule, str) and parse_rule(rule)[0] == "unique"
                else rule
                for rule in normalize_rule_list(field_rules)
            ]
        return result

    def _unique_exclusion_rule(self, field: str, rule: str) -> str:
        _, params = parse_rule(rule)
        table = params[0] if params and params[0] else self.get_table()
        column = params[1] if len(params) > 1 and params[1] else field

        key = self.get_key()
        if key is None:
            segments = [table, column, *params[2:]]
        else:
            where_column = params[3] if len(params) > 3 and params[3] else self.get_key_name()
            segments = [table, column, str(key), where_column, *params[4:]]
        return "unique:" + ",".join(segments)

    def validate_uniques(
        self,
        rules: Optional[Dict[str, Any]] = None,
        custom_messages: Optional[Dict[str, str]] = None,
    ) -> bool:
        """Validate with unique rules that ignore the entity's own row."""
        return self.validate(self.build_unique_exclusion_rules(rules), custom_messages)

    # Lookup

    @classmethod
    def find(cls, key: Any) -> Optional["Ardent"]:
        """Find by key, raising ModelNotFoundError on a miss when throw_on_find is set."""
        throw_on_find = cls._entity_config.throw_on_find
        if throw_on_find is None:
            throw_on_find = get_settings().throw_on_find
        if throw_on_find:
            return cls.find_or_fail(key)
        return super().find(key)

    # Relations

    def relation(self, name: str) -> Any:
        """Build the unfetched relation declared under a name."""
        return resolver.resolve(self, name)

    def get_attribute(self, key: str) -> Any:
        """Get an attribute, lazily loading a declared relation of that name.

        A relation is fetched once and cached for the life of the instance.
        """
        value = super().get_attribute(key)
        if value is not None or key in self._attributes or self.relation_loaded(key):
            return value

        declarations = self.relation_declarations()
        for name in (key, camel(key)):
            if name in declarations:
                results = self.relation(name).get_results()
                self.set_relation(key, results)
                return results
        return None


Ardent._entity_config = EntityConfig.from_class(Ardent)
