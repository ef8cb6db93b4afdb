from __future__ import annotations

from filesteps.core import steps
from tests.contract._helpers import feature_steps


def test_every_feature_step_binds_exactly_once(tmp_path) -> None:
    registry = steps.default_registry(tmp_path)
    for step in feature_steps():
        # match() raises on zero or multiple bindings
        match = registry.match(step.text)
        required = match.binding.doc_string
        if required is True:
            assert step.doc_string is not None, f"{step.text!r} needs a doc string (line {step.line})"
        if required is False:
            assert step.doc_string is None, f"{step.text!r} takes no doc string (line {step.line})"


def test_every_step_kind_is_exercised_by_a_feature(tmp_path) -> None:
    registry = steps.default_registry(tmp_path)
    used = {registry.match(step.text).kind for step in feature_steps()}
    assert used == set(steps.StepKind)


def test_pytest_bdd_bindings_cover_every_pattern() -> None:
    from tests.bdd import steps as bdd_steps

    assert set(bdd_steps.BOUND_PATTERNS) == {pattern for pattern, _ in steps.PATTERNS.values()}
