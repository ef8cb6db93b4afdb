from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import typer

from filesteps import __version__
from filesteps.core import config as config_core, envelope, features, paths, report
from filesteps.core.features import FeatureParseError
from filesteps.core.jsonio import dumps
from filesteps.core.runner import ScenarioRunner
from filesteps.core.steps import default_registry

app = typer.Typer(add_completion=False, help="filesteps - run Gherkin scenarios against file-system steps")


def _emit(out: dict) -> None:
    typer.echo(dumps(out))
    if out.get("ok") is True:
        raise typer.Exit(code=0)
    raise typer.Exit(code=1)


def _fail(out: dict, json_output: bool) -> None:
    if json_output:
        _emit(out)
    typer.echo(f"error: {out['error']['message']}", err=True)
    raise typer.Exit(code=1)


def _resolve_path(*, cli_value: str | None, config_value: str | None, default: Callable[[], Path]) -> Path:
    if cli_value:
        return Path(cli_value).expanduser()
    if config_value:
        return Path(config_value).expanduser()
    return default()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def version(json_output: bool = typer.Option(False, "--json", help="Output JSON envelope")):
    if json_output:
        _emit(envelope.ok(command="version", data={"version": __version__}))
    typer.echo(f"filesteps {__version__}")


@app.command()
def steps(json_output: bool = typer.Option(False, "--json", help="Output JSON envelope")):
    """List the registered step templates."""
    registry = default_registry(paths.workdir())
    if json_output:
        _emit(
            envelope.ok(
                command="steps",
                data={
                    "steps": [
                        {"kind": b.kind.value, "pattern": b.pattern, "doc_string": b.doc_string}
                        for b in registry.bindings
                    ]
                },
            )
        )
    for kind, pattern in registry.patterns():
        typer.echo(f"{kind.value:<16} {pattern}")


@app.command()
def run(
    targets: list[str] | None = typer.Argument(None, help="Feature files or directories (default: features/)"),
    workdir: str | None = typer.Option(None, "--workdir", help="Directory that step paths resolve against"),
    tags: list[str] | None = typer.Option(None, "--tags", help="Only run scenarios carrying this tag (repeatable)"),
    no_fail_fast: bool = typer.Option(False, "--no-fail-fast", help="Keep executing steps after a failure"),
    stop_on_failure: bool = typer.Option(False, "--stop-on-failure", help="Skip remaining scenarios after a failure"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log file effects to stderr"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON envelope"),
):
    """Run every scenario found under the given paths."""
    _configure_logging(verbose)
    try:
        settings = config_core.run_settings()
        root = _resolve_path(cli_value=workdir, config_value=settings.workdir, default=paths.workdir)
        if targets:
            search = [Path(t) for t in targets]
        else:
            search = [_resolve_path(cli_value=None, config_value=settings.features, default=paths.features_dir)]
        fail_fast = False if no_fail_fast else settings.fail_fast
        stop = True if stop_on_failure else settings.stop_on_failure
        confine = settings.confine_to_workdir
    except ValueError as exc:
        _fail(
            envelope.err(
                command="run",
                error_type="INVALID_ARGUMENT",
                message=str(exc),
                details={"config_path": str(config_core.config_path())},
            ),
            json_output,
        )

    try:
        files = paths.discover_feature_files(search)
        scenarios = features.filter_by_tags(features.load_features(files), tags or [])
    except FileNotFoundError as exc:
        _fail(
            envelope.err(
                command="run",
                error_type="NOT_FOUND",
                message=str(exc),
                details={"targets": [str(p) for p in search]},
            ),
            json_output,
        )
    except FeatureParseError as exc:
        _fail(
            envelope.err(command="run", error_type="PARSE_FAILED", message=str(exc), details={"uri": exc.uri}),
            json_output,
        )

    runner = ScenarioRunner(
        default_registry(root, confine_to_workdir=confine),
        fail_fast=fail_fast,
        stop_on_failure=stop,
    )
    result = runner.run(scenarios)
    limits = {"features": len(files), "tags": tags or [], "fail_fast": fail_fast, "stop_on_failure": stop}

    if json_output:
        data = report.to_data(result)
        if result.passed:
            _emit(envelope.ok(command="run", data=data, limits=limits))
        _emit(
            envelope.err(
                command="run",
                error_type="RUN_FAILED",
                message=f"{sum(not s.passed for s in result.scenarios)} scenario(s) failed",
                details=data,
            )
        )
    typer.echo(report.render_text(result), nl=False)
    raise typer.Exit(code=result.exit_code)


if __name__ == "__main__":
    app()
