"""Tests for the validate-then-save lifecycle."""

import pytest
from unittest.mock import ANY, Mock, patch

from ardent.core.errors.errors import InvalidEntityError, ModelNotFoundError
from ardent.core.events.events import LifecyclePhase
from ardent.core.settings.settings import configure
from ardent.core.validation.message_bag import MessageBag
from ardent.entity.ardent import Ardent, EntityState
from ardent.entity.environment import configure_as_external, set_request, set_validator_factory


class LifeValidatingModel(Ardent):
    rules = {
        "name": ["required"],
        "email": ["email"],
    }

    save_called = 0

    def perform_save(self, options=None):
        self.save_called += 1
        return True


class LifeUnruledModel(Ardent):
    save_called = 0

    def perform_save(self, options=None):
        self.save_called += 1
        return True


class LifeStoredModel(Ardent):
    rules = {"name": "required"}


@pytest.fixture
def validator():
    validator = Mock()
    validator.passes.return_value = True
    validator.messages.return_value = MessageBag()
    return validator


@pytest.fixture
def factory(validator):
    factory = Mock()
    factory.make.return_value = validator
    set_validator_factory(factory)
    return factory


class TestSaveGate:
    """Test that saving is gated by validation."""

    def test_validate_called_on_save(self, factory):
        """Test save runs validate once."""
        model = LifeValidatingModel()

        with patch.object(LifeValidatingModel, "validate", return_value=False) as validate:
            model.save()

        validate.assert_called_once()

    def test_validation_failure_prevents_save(self, factory):
        """Test a failed validation never reaches perform_save."""
        model = LifeValidatingModel()

        with patch.object(LifeValidatingModel, "validate", return_value=False):
            assert not model.save()

        assert model.save_called == 0
        assert model.entity_state is EntityState.REJECTED

    def test_validation_success_allows_save(self, factory):
        """Test a passed validation saves."""
        model = LifeValidatingModel()

        with patch.object(LifeValidatingModel, "validate", return_value=True):
            assert model.save()

        assert model.save_called == 1
        assert model.entity_state is EntityState.SAVED

    def test_force_save_ignores_failure(self, factory, validator):
        """Test force_save saves and still records errors."""
        messages = MessageBag({"name": ["The name field is required."]})
        validator.passes.return_value = False
        validator.messages.return_value = messages
        model = LifeValidatingModel()

        assert model.force_save()

        assert model.save_called == 1
        assert model.errors() is messages

    def test_failed_save_never_touches_storage(self, store):
        """Test the store stays empty when validation fails."""
        model = LifeStoredModel()

        assert not model.save()
        assert store.select("life_stored_models") == []

        assert LifeStoredModel(name="ok").save()
        assert len(store.select("life_stored_models")) == 1


class TestValidate:
    """Test validate()."""

    def test_throws_when_configured(self, factory, validator):
        """Test InvalidEntityError carries the entity."""
        validator.passes.return_value = False
        validator.messages.return_value = MessageBag({"name": ["required"]})
        model = LifeValidatingModel()
        model.throw_on_validation = True

        with pytest.raises(InvalidEntityError) as exc_info:
            model.validate()

        assert exc_info.value.entity is model
        assert exc_info.value.errors.has("name")

    def test_throw_setting_is_the_default(self, factory, validator):
        """Test the throw_on_validation setting applies when the model does not say."""
        configure(hash_iterations=1000, throw_on_validation=True)
        validator.passes.return_value = False

        with pytest.raises(InvalidEntityError):
            LifeValidatingModel().validate()

    def test_uses_passed_rules(self, factory):
        """Test override rules reach the validator unchanged."""
        rules = {"hello": "abc123"}

        LifeValidatingModel().validate(rules)

        factory.make.assert_called_once_with(ANY, rules, ANY, ANY, presence_verifier=ANY)

    def test_uses_static_rules(self, factory):
        """Test the type's rules are used by default."""
        LifeValidatingModel().validate()

        factory.make.assert_called_once_with(
            ANY, {"name": ["required"], "email": ["email"]}, ANY, ANY, presence_verifier=ANY
        )

    def test_empty_rules_are_dropped(self, factory):
        """Test empty rule entries never reach the validator."""
        LifeValidatingModel().validate({"name": "", "email": "email"})

        factory.make.assert_called_once_with(ANY, {"email": "email"}, ANY, ANY, presence_verifier=ANY)

    def test_passes_attributes_messages_and_labels(self, factory, store):
        """Test the validator receives the attribute bag and custom texts."""
        model = LifeValidatingModel(name="Ged")

        model.validate(custom_messages={"required": "Needed."}, custom_attributes={"name": "Name"})

        factory.make.assert_called_once_with(
            {"name": "Ged"},
            {"name": ["required"], "email": ["email"]},
            {"required": "Needed."},
            {"name": "Name"},
            presence_verifier=store,
        )

    def test_empty_rules_pass_without_validator(self, factory):
        """Test no rules means a pass without building a validator."""
        validated = Mock()
        model = LifeUnruledModel()
        model.add_transient_hook(LifecyclePhase.VALIDATED, validated)

        assert model.validate()

        factory.make.assert_not_called()
        validated.assert_called_once_with(model)
        assert model.get_validator() is None

    def test_provides_errors(self, factory, validator):
        """Test a failure installs the validator's bag."""
        messages = MessageBag()
        validator.passes.return_value = False
        validator.messages.return_value = messages
        model = LifeValidatingModel()

        assert not model.validate()

        assert model.errors() is messages
        assert model.validation_errors is messages
        assert model.get_validator() is validator
        assert model.entity_state is EntityState.INVALID

    def test_overrides_old_errors(self, factory, validator):
        """Test a pass replaces a non-empty bag with a new one."""
        model = LifeValidatingModel()
        old = MessageBag()
        old.add("hello", "world")
        model.validation_errors = old

        assert model.validate()

        assert isinstance(model.errors(), MessageBag)
        assert model.errors() is not old
        assert model.errors().count() == 0
        assert old.get("hello") == ["world"]
        assert model.entity_state is EntityState.VALID

    def test_empty_rules_clear_old_errors(self):
        """Test a pass with no effective rules still empties the bag."""
        model = LifeValidatingModel()
        assert not model.validate()
        assert model.errors().has("name")

        assert model.validate({"name": ""})

        assert model.errors().count() == 0
        assert model.entity_state is EntityState.VALID

    def test_failure_flashes_input(self, factory, validator):
        """Test input is flashed when a session is available."""
        validator.passes.return_value = False
        request = Mock()
        request.has_session.return_value = True
        request.all.return_value = {}
        set_request(request)

        LifeValidatingModel().validate()

        request.flash.assert_called_once()

    def test_external_never_flashes(self, validator):
        """Test external mode does not flash."""
        configure_as_external()
        factory = Mock()
        factory.make.return_value = validator
        set_validator_factory(factory)
        validator.passes.return_value = False
        request = Mock()
        request.has_session.return_value = True
        set_request(request)

        LifeValidatingModel().validate()

        request.flash.assert_not_called()

    def test_validating_hook_halts(self, factory):
        """Test a halted validating phase skips the rules."""
        model = LifeValidatingModel()
        model.add_transient_hook(LifecyclePhase.VALIDATING, lambda entity: False)

        assert not model.validate()
        factory.make.assert_not_called()

        model.throw_on_validation = True
        with pytest.raises(InvalidEntityError):
            model.validate()


class TestHydration:
    """Test hydration from request input."""

    @pytest.fixture
    def request_input(self):
        request = Mock()
        request.all.return_value = {"name": "Ged", "email": "ged@roke.io", "is_admin": True}
        request.has_session.return_value = False
        set_request(request)
        return request

    def test_auto_hydrate_empty_entity(self, factory, request_input):
        """Test an empty entity is filled with ruled input keys only."""
        model = LifeValidatingModel()
        model.auto_hydrate_entity_from_input = True

        model.validate()

        assert model.get_attributes() == {"name": "Ged", "email": "ged@roke.io"}

    def test_auto_hydrate_skips_filled_entity(self, factory, request_input):
        """Test entities with attributes are not hydrated."""
        model = LifeValidatingModel(name="Sparrowhawk")
        model.auto_hydrate_entity_from_input = True

        model.validate()

        assert model.get_attributes() == {"name": "Sparrowhawk"}

    def test_forced_hydration(self, factory, request_input):
        """Test forced hydration overwrites existing attributes."""
        model = LifeValidatingModel(name="Sparrowhawk")
        model.force_entity_hydration_from_input = True

        model.validate()

        assert model.get_attributes() == {"name": "Ged", "email": "ged@roke.io"}


class TestSaveHooks:
    """Test per-call and type level save callbacks."""

    def test_before_save_can_abort(self, store):
        """Test a before_save returning False aborts the save."""
        model = LifeStoredModel(name="Ged")

        assert not model.save(before_save=lambda entity: False)
        assert store.select("life_stored_models") == []

    def test_after_save_runs_for_one_call(self):
        """Test per-call callbacks do not outlive the call."""
        after = Mock()
        model = LifeStoredModel(name="Ged")

        model.save(after_save=after)
        model.name = "Sparrowhawk"
        model.save()

        after.assert_called_once_with(model)

    def test_validation_phases_fire_in_order(self):
        """Test validation phases precede save phases."""
        phases = []

        class LifeObserved(Ardent):
            rules = {"name": "required"}

        for phase in (LifecyclePhase.VALIDATING, LifecyclePhase.VALIDATED, LifecyclePhase.SAVING, LifecyclePhase.SAVED):
            LifeObserved.on(phase, lambda entity, phase=phase: phases.append(phase.value))

        LifeObserved(name="Ged").save()

        assert phases == ["validating", "validated", "saving", "saved"]


class TestFind:
    """Test find() with throw_on_find."""

    def test_find_returns_none_by_default(self):
        """Test a miss returns None."""
        assert LifeStoredModel.find(1) is None

    def test_type_throw_on_find(self):
        """Test the type flag makes find raise."""
        class LifeStrict(Ardent):
            throw_on_find = True

        with pytest.raises(ModelNotFoundError):
            LifeStrict.find(1)

        LifeStrict.create(name="a")
        assert LifeStrict.find(1).name == "a"

    def test_setting_throw_on_find(self):
        """Test the setting applies when the type does not say."""
        configure(hash_iterations=1000, throw_on_find=True)

        with pytest.raises(ModelNotFoundError):
            LifeStoredModel.find(1)


class TestColumnNames:
    """Test lifecycle fields stay out of the attribute bag."""

    def test_state_is_a_plain_column(self, store):
        """Test a ``state`` column is stored like any other."""
        model = LifeStoredModel(name="Ged", state="CA")
        model.state = "NY"

        assert model.save()

        assert model.state == "NY"
        assert store.select("life_stored_models")[0]["state"] == "NY"
        assert model.entity_state is EntityState.SAVED
        assert "entity_state" not in model.get_attributes()

    def test_reserved_names_through_accessors(self):
        """Test columns named like class attributes are reachable explicitly."""
        model = LifeStoredModel(name="Ged")
        model.set_attribute("exists", "yes")

        assert model.exists is False
        assert model.get_attribute("exists") == "yes"
