"""Tests for Blueprint and BlueprintBuilder."""

import pytest
from pydantic import ValidationError

from modelcitizen import Blueprint, RegisterBlueprintError, field_callback
from modelcitizen.fields import DefaultField, MappedField, MappedListField, MappedSetField
from modelcitizen.template import AttributeTemplate
from modelcitizen.testing import make_blueprint, make_default_field
from sample_models import Car, Driver, Wheel


class TestBlueprintBuilder:
    """Tests for assembling blueprints with the builder."""

    def test_rules_in_declaration_order(self) -> None:
        """Rules keep the order they were declared in."""
        bp = (
            Blueprint.builder(Car, "cool")
            .default("make", "cool brand")
            .mapped("driver", Driver, nullable=True)
            .mapped_list("wheels", Wheel, size=4, force=True)
            .mapped_set("spares", Wheel, size=1)
            .build()
        )

        assert bp.target is Car
        assert bp.alias == "cool"
        assert [rule.name for rule in bp.rules] == ["make", "driver", "wheels", "spares"]
        assert [type(rule) for rule in bp.rules] == [
            DefaultField,
            MappedField,
            MappedListField,
            MappedSetField,
        ]
        assert bp.get_rule("driver").nullable is True
        assert bp.get_rule("wheels").force is True
        assert bp.get_rule("missing") is None

    def test_default_target_inferred(self) -> None:
        """Literal value types become the rule's target."""
        bp = (
            Blueprint.builder(Car)
            .default("make", "brand")
            .default("mileage", 1.5)
            .default("driver")
            .default("status", field_callback(lambda car: {}))
            .default("manufacturer", None, target=str)
            .build()
        )
        targets = {rule.name: rule.target for rule in bp.rules}
        assert targets == {
            "make": str,
            "mileage": float,
            "driver": object,
            "status": object,
            "manufacturer": str,
        }

    def test_redeclared_field_replaced_in_place(self) -> None:
        """Declaring a name again replaces the rule without moving it."""
        bp = (
            Blueprint.builder(Car)
            .default("make", "base")
            .default("mileage", 1.0)
            .default("make", "derived", force=True)
            .build()
        )
        assert [rule.name for rule in bp.rules] == ["make", "mileage"]
        assert bp.get_rule("make").value == "derived"
        assert bp.get_rule("make").force is True

    def test_invalid_list_rule(self) -> None:
        """Rule validation errors surface as RegisterBlueprintError."""
        with pytest.raises(RegisterBlueprintError, match="wheels"):
            Blueprint.builder(Car).mapped_list("wheels", Wheel, size=2, aliases=["a"])

    def test_non_callable_hooks_rejected(self) -> None:
        """Constructors and hooks must be callable."""
        builder = Blueprint.builder(Car)
        with pytest.raises(RegisterBlueprintError, match="not callable"):
            builder.constructor("Car()")  # type: ignore[arg-type]
        with pytest.raises(RegisterBlueprintError, match="not callable"):
            builder.after_create(42)  # type: ignore[arg-type]

    def test_hooks_and_template_recorded(self) -> None:
        """Constructor, hooks and template end up on the blueprint."""
        template = AttributeTemplate()

        def hook(car: Car) -> None:
            return None

        bp = Blueprint.builder(Car).constructor(Car).after_create(hook).template(template).build()
        assert bp.constructor is Car
        assert bp.after_create == (hook,)
        assert bp.template is template

    def test_invalid_template(self) -> None:
        """A template without construct/get/set is rejected at build()."""
        with pytest.raises(RegisterBlueprintError, match="template"):
            Blueprint.builder(Car).template(object()).build()  # type: ignore[arg-type]


class TestBlueprintModel:
    """Tests for Blueprint validation."""

    def test_duplicate_rule_names_rejected(self) -> None:
        """Rule names must be unique within a blueprint."""
        with pytest.raises(ValidationError, match="Duplicate field rule 'make'"):
            make_blueprint(
                Car,
                rules=(make_default_field(name="make"), make_default_field(name="make")),
            )

    def test_frozen(self) -> None:
        """Blueprints are immutable once built."""
        bp = make_blueprint(Car)
        with pytest.raises(ValidationError):
            bp.alias = "other"
