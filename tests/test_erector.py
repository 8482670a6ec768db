"""Tests for Erector and BuildRequest."""

import pytest

from modelcitizen import Blueprint, BuildRequest, Command, Erector, TemplateError
from modelcitizen.constants import AFTER_CREATE
from modelcitizen.template import AttributeTemplate, PydanticTemplate
from modelcitizen.testing import create_mock_template
from sample_blueprints import car_blueprint, profile_blueprint
from sample_models import Car, Wheel


class TestBuildRequest:
    """Tests for per-build command state."""

    def test_starts_without_commands(self) -> None:
        """A new request has no commands for any field."""
        request = BuildRequest(erector=Erector(car_blueprint), reference=None)
        assert request.commands_for("make") == frozenset()
        assert request.depth == 0
        assert request.with_policies is True

    def test_with_commands_returns_copy(self) -> None:
        """Adding commands leaves the original request untouched."""
        request = BuildRequest(erector=Erector(car_blueprint), reference=None)
        updated = request.with_commands("make", [Command.SKIP_INJECTION])

        assert updated is not request
        assert request.commands_for("make") == frozenset()
        assert updated.has_command("make", Command.SKIP_INJECTION)

    def test_commands_merge_by_rule_or_name(self) -> None:
        """Commands given by rule and by name land on the same field."""
        rule = car_blueprint.get_rule("make")
        request = (
            BuildRequest(erector=Erector(car_blueprint), reference=None)
            .with_commands(rule, [Command.SKIP_REFERENCE_INJECTION])
            .with_commands("make", {Command.SKIP_BLUEPRINT_INJECTION})
        )
        assert request.commands_for(rule) == {
            Command.SKIP_REFERENCE_INJECTION,
            Command.SKIP_BLUEPRINT_INJECTION,
        }

    def test_empty_commands_noop(self) -> None:
        """Adding no commands returns the same request."""
        request = BuildRequest(erector=Erector(car_blueprint), reference=None)
        assert request.with_commands("make", []) is request

    def test_commands_view_is_read_only(self) -> None:
        """The command map cannot be mutated in place."""
        request = BuildRequest(erector=Erector(car_blueprint), reference=None)
        with pytest.raises(TypeError):
            request.commands["make"] = frozenset()  # type: ignore[index]


class TestErector:
    """Tests for the Erector build context."""

    def test_exposes_blueprint_parts(self) -> None:
        """Target, rules and hooks come from the blueprint."""
        erector = Erector(car_blueprint)
        assert erector.target is Car
        assert erector.alias == "default"
        assert erector.rules == car_blueprint.rules
        assert erector.get_field_rule("wheels").size == 4
        assert len(erector.callbacks(AFTER_CREATE)) == 1
        assert erector.callbacks("unknown") == ()
        assert repr(erector) == "Erector(alias='default', target=Car, rules=8)"

    def test_template_selected_for_target(self) -> None:
        """Pydantic models get the pydantic template, others the attribute one."""
        assert isinstance(Erector(car_blueprint).template, AttributeTemplate)
        assert isinstance(Erector(profile_blueprint).template, PydanticTemplate)

    def test_template_precedence(self) -> None:
        """An explicit template beats the blueprint's own."""
        own = create_mock_template()
        explicit = create_mock_template()
        bp = Blueprint.builder(Wheel).template(own).build()

        assert Erector(bp).template is own
        assert Erector(bp, template=explicit).template is explicit

    def test_new_instance_uses_template(self) -> None:
        """Without a constructor the template constructs the target."""
        template = create_mock_template()
        erector = Erector(Blueprint.builder(Wheel).template(template).build())

        instance = erector.new_instance()
        template.construct.assert_called_once_with(Wheel)
        assert instance is template.construct.return_value

    def test_new_instance_constructor_failure(self) -> None:
        """Constructor errors are raised as TemplateError."""

        def explode() -> Wheel:
            raise KeyError("boom")

        erector = Erector(Blueprint.builder(Wheel).constructor(explode).build())
        with pytest.raises(TemplateError, match="Constructor for Wheel failed"):
            erector.new_instance()

    def test_new_instance_template_failure(self) -> None:
        """Errors from a template's construct are raised as TemplateError."""
        template = create_mock_template()
        template.construct.side_effect = RuntimeError("boom")
        erector = Erector(Blueprint.builder(Wheel).template(template).build())

        with pytest.raises(TemplateError, match="cannot construct Wheel: boom") as exc_info:
            erector.new_instance()
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_new_instance_template_error_passes_through(self) -> None:
        """A TemplateError from construct is not wrapped again."""
        error = TemplateError("no default constructor")
        template = create_mock_template()
        template.construct.side_effect = error
        erector = Erector(Blueprint.builder(Wheel).template(template).build())

        with pytest.raises(TemplateError) as exc_info:
            erector.new_instance()
        assert exc_info.value is error
