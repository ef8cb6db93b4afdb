from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging
import time
from typing import Iterable

from filesteps.core import clock, ids
from filesteps.core.features import Scenario, Step
from filesteps.core.error_types import StepConfigError
from filesteps.core.steps import StepRegistry

logger = logging.getLogger(__name__)

PASSED = "passed"
FAILED = "failed"
UNDEFINED = "undefined"
SKIPPED = "skipped"
STATUSES = (PASSED, FAILED, UNDEFINED, SKIPPED)


@dataclass(frozen=True)
class StepResult:
    step: Step
    status: str
    kind: str | None = None
    error_type: str | None = None
    message: str = ""
    seconds: float = 0.0


@dataclass(frozen=True)
class ScenarioResult:
    scenario: Scenario
    steps: tuple[StepResult, ...]

    @property
    def status(self) -> str:
        statuses = {r.status for r in self.steps}
        if FAILED in statuses:
            return FAILED
        if UNDEFINED in statuses:
            return UNDEFINED
        return PASSED

    @property
    def passed(self) -> bool:
        return self.status == PASSED

    @property
    def failure(self) -> StepResult | None:
        return next((r for r in self.steps if r.status in (FAILED, UNDEFINED)), None)


@dataclass
class RunReport:
    run_id: str
    started_at: datetime
    finished_at: datetime | None = None
    scenarios: list[ScenarioResult] = field(default_factory=list)
    not_run: int = 0

    @property
    def passed(self) -> bool:
        return self.not_run == 0 and all(s.passed for s in self.scenarios)

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def scenario_counts(self) -> dict[str, int]:
        counts = {PASSED: 0, FAILED: 0, UNDEFINED: 0}
        for s in self.scenarios:
            counts[s.status] += 1
        return counts

    def step_counts(self) -> dict[str, int]:
        counts = {status: 0 for status in STATUSES}
        for s in self.scenarios:
            for r in s.steps:
                counts[r.status] += 1
        return counts


def _classify(exc: Exception) -> tuple[str, str]:
    if isinstance(exc, StepConfigError):
        return (UNDEFINED if exc.error_type == "UNDEFINED_STEP" else FAILED), exc.error_type
    if isinstance(exc, AssertionError):
        return FAILED, "ASSERTION_FAILED"
    return FAILED, "IO_ERROR"


class ScenarioRunner:
    """Execute scenarios step by step against an injected registry.

    With ``fail_fast`` (the default) the first failing step skips the rest of
    its scenario. ``stop_on_failure`` additionally leaves every later scenario
    unexecuted; they are counted in ``RunReport.not_run``.
    """

    def __init__(self, registry: StepRegistry, *, fail_fast: bool = True, stop_on_failure: bool = False) -> None:
        self.registry = registry
        self.fail_fast = fail_fast
        self.stop_on_failure = stop_on_failure

    def run_step(self, step: Step) -> StepResult:
        started = time.perf_counter()
        kind = None
        try:
            match = self.registry.match(step.text)
            kind = match.kind.value
            self.registry.invoke(match, step.doc_string)
        except (StepConfigError, AssertionError, OSError, UnicodeDecodeError) as exc:
            status, error_type = _classify(exc)
            logger.info("step %s [%s]: %s", status, error_type, exc)
            return StepResult(
                step=step,
                status=status,
                kind=kind,
                error_type=error_type,
                message=str(exc),
                seconds=time.perf_counter() - started,
            )
        return StepResult(step=step, status=PASSED, kind=kind, seconds=time.perf_counter() - started)

    def run_scenario(self, scenario: Scenario) -> ScenarioResult:
        logger.info("scenario %r (%s)", scenario.name, scenario.location)
        results: list[StepResult] = []
        halted = False
        for step in scenario.steps:
            if halted:
                results.append(StepResult(step=step, status=SKIPPED))
                continue
            result = self.run_step(step)
            results.append(result)
            if result.status != PASSED and self.fail_fast:
                halted = True
        return ScenarioResult(scenario=scenario, steps=tuple(results))

    def run(self, scenarios: Iterable[Scenario]) -> RunReport:
        report = RunReport(run_id=ids.run_id(), started_at=clock.now_utc())
        pending = list(scenarios)
        for index, scenario in enumerate(pending):
            result = self.run_scenario(scenario)
            report.scenarios.append(result)
            if not result.passed and self.stop_on_failure:
                report.not_run = len(pending) - index - 1
                logger.info("stopping after failed scenario; %d not run", report.not_run)
                break
        report.finished_at = clock.now_utc()
        return report
