"""Tests for blueprint registration and registry inspection."""

import logging

import pytest

from modelcitizen import Blueprint, Erector, ModelFactory, RegisterBlueprintError
from modelcitizen.config import FactoryConfig
from sample_blueprints import CoolCarBlueprint, bad_car_blueprint, car_blueprint, wheel_blueprint
from sample_models import Car, Wheel


class TestRegisterBlueprint:
    """Tests for register_blueprint."""

    def test_register_returns_erector(self) -> None:
        """Registration stores an Erector under (alias, target)."""
        factory = ModelFactory()
        erector = factory.register_blueprint(wheel_blueprint)

        assert isinstance(erector, Erector)
        assert factory.erectors[("default", Wheel)] is erector
        assert factory.get_erector(Wheel) is erector
        assert factory.blueprints == (wheel_blueprint,)

    def test_register_under_explicit_alias(self) -> None:
        """An explicit alias overrides the blueprint's own."""
        factory = ModelFactory()
        erector = factory.register_blueprint(wheel_blueprint, "spare")

        assert erector.alias == "spare"
        assert ("spare", Wheel) in factory.erectors
        assert ("default", Wheel) not in factory.erectors

    def test_register_declarative_class(self) -> None:
        """A decorated class is read into a Blueprint on registration."""
        factory = ModelFactory()
        erector = factory.register_blueprint(CoolCarBlueprint)

        assert erector.alias == "cool"
        assert erector.blueprint.source is CoolCarBlueprint
        assert factory.get_erector(Car, "cool") is erector

    def test_register_declarative_instance(self) -> None:
        """An instance of a decorated class registers like the class."""
        factory = ModelFactory()
        instance = CoolCarBlueprint()
        erector = factory.register_blueprint(instance)
        assert erector.blueprint.source is instance

    def test_register_by_qualified_name(self) -> None:
        """A qualified name is imported before registering."""
        factory = ModelFactory()
        factory.register_blueprint("sample_blueprints:car_blueprint")
        factory.register_blueprint("sample_blueprints.CoolCarBlueprint")

        assert factory.get_erector(Car).blueprint is car_blueprint
        assert factory.get_erector(Car, "cool").blueprint.source is CoolCarBlueprint

    def test_bad_qualified_name(self) -> None:
        """An unimportable name raises and registers nothing."""
        factory = ModelFactory()
        with pytest.raises(RegisterBlueprintError, match="no attribute"):
            factory.register_blueprint("sample_blueprints:missing_blueprint")
        assert not factory.erectors

    def test_undecorated_class_rejected(self) -> None:
        """A plain class is not a blueprint."""
        factory = ModelFactory()
        with pytest.raises(RegisterBlueprintError, match="not decorated"):
            factory.register_blueprint(Wheel)
        assert not factory.erectors
        assert factory.blueprints == ()

    def test_replacing_blueprint_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        """Re-registering a key replaces the erector and logs it."""
        factory = ModelFactory()
        first = factory.register_blueprint(car_blueprint)

        with caplog.at_level(logging.INFO, logger="modelcitizen.factory"):
            second = factory.register_blueprint(bad_car_blueprint, "default")

        assert factory.get_erector(Car) is second
        assert second is not first
        assert "Replacing blueprint" in caplog.text

    def test_register_blueprints(self) -> None:
        """register_blueprints registers each under its own alias."""
        factory = ModelFactory()
        erectors = factory.register_blueprints([car_blueprint, bad_car_blueprint])
        assert [e.alias for e in erectors] == ["default", "bad"]
        assert len(factory.erectors) == 2


class TestRegistryViews:
    """Tests for read-only registry views."""

    def test_erectors_view_is_read_only(self, factory: ModelFactory) -> None:
        """The erectors mapping cannot be modified."""
        with pytest.raises(TypeError):
            factory.erectors[("x", Car)] = None  # type: ignore[index]

    def test_get_erector_missing(self, factory: ModelFactory) -> None:
        """A missing key raises a LookupError naming alias and type."""
        with pytest.raises(
            LookupError, match="Unregistered alias 'nope' for class sample_models.Car"
        ):
            factory.get_erector(Car, "nope")


class TestFromConfig:
    """Tests for building a factory from a FactoryConfig."""

    def test_from_config(self) -> None:
        """Listed blueprints are registered with the configured depth."""
        config = FactoryConfig(
            blueprints=["sample_blueprints:wheel_blueprint", "sample_blueprints:CoolCarBlueprint"],
            max_depth=7,
        )
        factory = ModelFactory.from_config(config)

        assert factory.max_depth == 7
        assert set(factory.erectors) == {("default", Wheel), ("cool", Car)}

    def test_from_empty_config(self) -> None:
        """An empty config yields an empty factory."""
        factory = ModelFactory.from_config(FactoryConfig())
        assert not factory.erectors


def test_default_blueprint_name() -> None:
    """The default alias is exposed on the factory class."""
    assert ModelFactory.DEFAULT_BLUEPRINT_NAME == "default"
    assert Blueprint(target=Car).alias == "default"
