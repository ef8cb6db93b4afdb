from __future__ import annotations

import pytest

from filesteps.core import features, ids, steps
from filesteps.core.runner import FAILED, PASSED, SKIPPED, UNDEFINED, ScenarioRunner

CREATE = '''\
    Given I create a file "main.tf" in "modules" with content:
      """
      resource block
      """
'''
DELETE = '    When I delete the file "main.tf" from "modules"\n'
VERIFY = '    Then the file "main.tf" should not exist in "modules"\n'


def _scenario(body: str, name: str = "files") -> features.Scenario:
    (scenario,) = features.parse_feature(f"Feature: runner\n  Scenario: {name}\n{body}")
    return scenario


@pytest.fixture()
def runner(tmp_path):
    return ScenarioRunner(steps.default_registry(tmp_path))


def test_create_delete_verify_passes(runner, tmp_path):
    report = runner.run([_scenario(CREATE + DELETE + VERIFY)])
    assert report.passed
    assert report.exit_code == 0
    assert [r.status for r in report.scenarios[0].steps] == [PASSED, PASSED, PASSED]
    assert [r.kind for r in report.scenarios[0].steps] == ["create_file", "delete_file", "verify_absent"]
    assert (tmp_path / "modules").is_dir()
    assert not (tmp_path / "modules" / "main.tf").exists()


def test_omitting_delete_fails_at_verify(runner, tmp_path):
    report = runner.run([_scenario(CREATE + VERIFY)])
    assert not report.passed
    assert report.exit_code == 1
    result = report.scenarios[0]
    assert result.status == FAILED
    assert result.failure.step.keyword == "Then"
    assert result.failure.error_type == "ASSERTION_FAILED"
    assert "expected absence, found presence" in result.failure.message
    assert (tmp_path / "modules" / "main.tf").read_text(encoding="utf-8") == "resource block"


def test_failed_step_skips_rest_of_scenario(runner, tmp_path):
    report = runner.run([_scenario(DELETE + CREATE + VERIFY)])
    statuses = [r.status for r in report.scenarios[0].steps]
    assert statuses == [FAILED, SKIPPED, SKIPPED]
    assert report.scenarios[0].steps[0].error_type == "IO_ERROR"
    assert not (tmp_path / "modules" / "main.tf").exists()


def test_without_fail_fast_later_steps_still_run(tmp_path):
    runner = ScenarioRunner(steps.default_registry(tmp_path), fail_fast=False)
    report = runner.run([_scenario(DELETE + CREATE)])
    statuses = [r.status for r in report.scenarios[0].steps]
    assert statuses == [FAILED, PASSED]
    assert report.scenarios[0].status == FAILED
    assert (tmp_path / "modules" / "main.tf").exists()


def test_undefined_step_is_reported_as_config_error(runner):
    report = runner.run([_scenario('    Given I rename "a" to "b"\n' + VERIFY)])
    result = report.scenarios[0]
    assert result.status == UNDEFINED
    assert result.steps[0].error_type == "UNDEFINED_STEP"
    assert result.steps[0].kind is None
    assert result.steps[1].status == SKIPPED
    assert not report.passed


def test_missing_doc_string_fails_step(runner):
    report = runner.run([_scenario('    Given I create a file "main.tf" in "modules" with content:\n')])
    step = report.scenarios[0].steps[0]
    assert step.status == FAILED
    assert step.error_type == "MISSING_DOC_STRING"
    assert step.kind == "create_file"


def test_path_escape_fails_step(runner):
    report = runner.run([_scenario('    Then the file "x" should not exist in "../../elsewhere"\n')])
    assert report.scenarios[0].steps[0].error_type == "PATH_ESCAPE"


def test_file_name_escape_fails_step_without_writing(tmp_path):
    runner = ScenarioRunner(steps.default_registry(tmp_path / "work"))
    body = '    Given I create a file "../escaped.txt" in "." with content:\n      """\n      pwned\n      """\n'
    report = runner.run([_scenario(body + VERIFY)])
    result = report.scenarios[0]
    assert result.steps[0].status == FAILED
    assert result.steps[0].error_type == "PATH_ESCAPE"
    assert result.steps[1].status == SKIPPED
    assert not (tmp_path / "escaped.txt").exists()
    assert not report.passed


def test_doc_string_on_delete_fails_step(runner):
    report = runner.run([_scenario(DELETE.rstrip("\n") + '\n      """\n      stray\n      """\n')])
    step = report.scenarios[0].steps[0]
    assert step.status == FAILED
    assert step.error_type == "UNEXPECTED_DOC_STRING"
    assert step.kind == "delete_file"


def test_scenarios_continue_after_failure_by_default(runner):
    report = runner.run([_scenario(CREATE + VERIFY, "bad"), _scenario(DELETE + VERIFY, "good")])
    assert [s.status for s in report.scenarios] == [FAILED, PASSED]
    assert report.scenario_counts() == {PASSED: 1, FAILED: 1, UNDEFINED: 0}
    assert report.step_counts() == {PASSED: 3, FAILED: 1, UNDEFINED: 0, SKIPPED: 0}
    assert report.not_run == 0


def test_stop_on_failure_leaves_later_scenarios_unrun(tmp_path):
    runner = ScenarioRunner(steps.default_registry(tmp_path), stop_on_failure=True)
    scenarios = [_scenario(DELETE, "first"), _scenario(CREATE, "second"), _scenario(CREATE, "third")]
    report = runner.run(scenarios)
    assert len(report.scenarios) == 1
    assert report.not_run == 2
    assert not (tmp_path / "modules" / "main.tf").exists()


def test_each_step_runs_exactly_once(tmp_path):
    calls = []
    handlers = {kind: (lambda target, doc, kind=kind: calls.append(kind)) for kind in steps.StepKind}
    registry = steps.StepRegistry.from_handlers(handlers, workdir=tmp_path)
    ScenarioRunner(registry).run([_scenario(CREATE + DELETE + VERIFY)])
    assert calls == [steps.StepKind.CREATE_FILE, steps.StepKind.DELETE_FILE, steps.StepKind.VERIFY_ABSENT]


def test_report_carries_run_id_and_timestamps(runner, monkeypatch):
    monkeypatch.setenv("FILESTEPS_TEST_NOW_ISO", "2026-01-02T03:04:05Z")
    report = runner.run([])
    assert ids.is_run_id(report.run_id)
    assert report.started_at.isoformat() == "2026-01-02T03:04:05+00:00"
    assert report.finished_at == report.started_at
    assert report.passed
