from __future__ import annotations

from typing import Any, Dict

from filesteps.core import clock, ids
from filesteps.core.runner import FAILED, PASSED, SKIPPED, UNDEFINED, RunReport, ScenarioResult, StepResult

_MARKS = {PASSED: "+", FAILED: "x", UNDEFINED: "?", SKIPPED: "-"}


def _summary(counts: Dict[str, int], noun: str) -> str:
    total = sum(counts.values())
    parts = [f"{n} {status}" for status, n in counts.items() if n]
    return f"{total} {noun} ({', '.join(parts)})" if parts else f"0 {noun}"


def _step_line(result: StepResult) -> list[str]:
    lines = [f"    {_MARKS[result.status]} {result.step.keyword} {result.step.text}"]
    if result.status in (FAILED, UNDEFINED):
        lines.append(f"        {result.error_type}: {result.message}")
    return lines


def render_text(report: RunReport) -> str:
    """Human-readable report: one block per scenario, then the totals and verdict."""
    lines: list[str] = []
    feature = None
    for scenario in report.scenarios:
        if scenario.scenario.feature != feature:
            feature = scenario.scenario.feature
            if lines:
                lines.append("")
            lines.append(f"Feature: {feature}")
        lines.append(f"  Scenario: {scenario.scenario.name}  # {scenario.scenario.location}")
        for result in scenario.steps:
            lines.extend(_step_line(result))

    failures = [s for s in report.scenarios if not s.passed]
    if failures:
        lines.append("")
        lines.append("Failed scenarios:")
        for scenario in failures:
            lines.append(f"  {scenario.scenario.location} {scenario.scenario.name}")

    lines.append("")
    lines.append(_summary(report.scenario_counts(), "scenarios"))
    lines.append(_summary(report.step_counts(), "steps"))
    if report.not_run:
        lines.append(f"{report.not_run} scenarios not run (stopped on failure)")
    lines.append("PASS" if report.passed else "FAIL")
    return "\n".join(lines) + "\n"


def _step_data(result: StepResult) -> Dict[str, Any]:
    return {
        "keyword": result.step.keyword,
        "text": result.step.text,
        "line": result.step.line,
        "kind": result.kind,
        "status": result.status,
        "error_type": result.error_type,
        "message": result.message,
        "seconds": round(result.seconds, 6),
    }


def _scenario_data(result: ScenarioResult) -> Dict[str, Any]:
    scenario = result.scenario
    return {
        "id": ids.scenario_id(uri=scenario.uri, line=scenario.line, name=scenario.name),
        "feature": scenario.feature,
        "name": scenario.name,
        "location": scenario.location,
        "tags": sorted(scenario.tags),
        "status": result.status,
        "steps": [_step_data(r) for r in result.steps],
    }


def to_data(report: RunReport) -> Dict[str, Any]:
    return {
        "run_id": report.run_id,
        "started_at": clock.to_iso(report.started_at),
        "finished_at": clock.to_iso(report.finished_at) if report.finished_at else None,
        "passed": report.passed,
        "exit_code": report.exit_code,
        "counts": {
            "scenarios": report.scenario_counts(),
            "steps": report.step_counts(),
            "not_run": report.not_run,
        },
        "scenarios": [_scenario_data(s) for s in report.scenarios],
    }
