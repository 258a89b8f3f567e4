"""Tests for template construction and validation."""

from __future__ import annotations

from uuid import uuid4

import pytest

from litestar_approvals.core.definition import create_template, validate_step_definitions
from litestar_approvals.core.models import StepDefinition
from litestar_approvals.exceptions import (
    EmptyAssignmentError,
    EmptyStepsError,
    InvalidStepOrderError,
    InvalidTemplateError,
    NonPositiveApprovalsError,
)


@pytest.mark.unit
class TestStepDefinition:
    """Tests for the StepDefinition model."""

    def test_assignees_are_frozen(self) -> None:
        users = {"ed"}
        definition = StepDefinition(name="editor", required_approvals=1, assigned_user_ids=users, order=0)
        users.add("mallory")

        assert definition.assigned_user_ids == frozenset({"ed"})

    def test_each_definition_gets_an_id(self, make_step) -> None:
        assert make_step("a", 0, {"x"}).id != make_step("a", 0, {"x"}).id


@pytest.mark.unit
class TestValidateStepDefinitions:
    """Tests for validate_step_definitions."""

    def test_valid(self, make_step) -> None:
        validate_step_definitions([make_step("b", 1, {"y"}), make_step("a", 0, {"x"})])

    def test_empty(self) -> None:
        with pytest.raises(EmptyStepsError):
            validate_step_definitions([])

    @pytest.mark.parametrize("orders", [[1], [0, 2], [0, 0], [-1, 0], [1, 2, 3]])
    def test_orders_must_be_contiguous_from_zero(self, make_step, orders: list[int]) -> None:
        steps = [make_step(f"s{index}", order, {"x"}) for index, order in enumerate(orders)]

        with pytest.raises(InvalidStepOrderError) as exc_info:
            validate_step_definitions(steps)

        assert exc_info.value.orders == orders

    def test_empty_assignment(self, make_step) -> None:
        with pytest.raises(EmptyAssignmentError, match="'legal'"):
            validate_step_definitions([make_step("editor", 0, {"ed"}), make_step("legal", 1, set())])

    @pytest.mark.parametrize("required", [0, -2])
    def test_non_positive_approvals(self, make_step, required: int) -> None:
        with pytest.raises(NonPositiveApprovalsError) as exc_info:
            validate_step_definitions([make_step("editor", 0, {"ed"}, required=required)])

        assert exc_info.value.required_approvals == required

    def test_order_checked_before_assignment(self, make_step) -> None:
        with pytest.raises(InvalidStepOrderError):
            validate_step_definitions([make_step("a", 0, set()), make_step("b", 3, {"x"})])

    def test_errors_share_a_base(self, make_step) -> None:
        with pytest.raises(InvalidTemplateError) as exc_info:
            validate_step_definitions([make_step("a", 0, {"x"}, required=0)])

        assert exc_info.value.errors


@pytest.mark.unit
class TestCreateTemplate:
    """Tests for create_template."""

    def test_steps_sorted_by_order(self, make_step) -> None:
        template = create_template(
            "Press release",
            "Three stages",
            ["press_release", "press_release"],
            [make_step("exec", 2, {"ceo"}), make_step("draft", 0, {"w"}), make_step("comms", 1, {"pr"})],
            created_by="admin",
        )

        assert [step.order for step in template.steps] == [0, 1, 2]
        assert [step.name for step in template.steps] == ["draft", "comms", "exec"]
        assert template.applicable_content_types == frozenset({"press_release"})
        assert template.version == 1
        assert template.is_default is False
        assert template.created_by == "admin"
        assert template.created_at is not None
        assert template.applies_to("press_release")
        assert not template.applies_to("blog_post")

    def test_explicit_id_and_version(self, make_step) -> None:
        template_id = uuid4()

        template = create_template(
            "Blog", "", {"blog_post"}, [make_step("a", 0, {"x"})], template_id=template_id, version=3
        )

        assert template.id == template_id
        assert template.version == 3

    def test_invalid_steps_raise(self) -> None:
        with pytest.raises(EmptyStepsError):
            create_template("Blog", "", {"blog_post"}, [])
