"""Load Gherkin feature files into flat, ordered scenarios.

Backgrounds are prepended to every scenario of their feature (and rule), and
scenario outlines are expanded into one scenario per examples row.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
import re
from typing import Any, Iterable

from gherkin.errors import ParserError
from gherkin.parser import Parser
from gherkin.token_scanner import TokenScanner

_OUTLINE_PARAM_RE = re.compile(r"<([^<>]+)>")


class FeatureParseError(ValueError):
    def __init__(self, uri: str, message: str) -> None:
        super().__init__(f"{uri}: {message}")
        self.uri = uri


@dataclass(frozen=True)
class Step:
    keyword: str
    text: str
    line: int
    doc_string: str | None = None


@dataclass(frozen=True)
class Scenario:
    feature: str
    name: str
    uri: str
    line: int
    steps: tuple[Step, ...]
    tags: frozenset[str] = field(default_factory=frozenset)

    @property
    def location(self) -> str:
        return f"{self.uri}:{self.line}"


def _tag_names(node: dict[str, Any]) -> set[str]:
    return {t["name"] for t in node.get("tags", [])}


def _to_step(node: dict[str, Any]) -> Step:
    doc = node.get("docString")
    return Step(
        keyword=node["keyword"].strip(),
        text=node["text"],
        line=node["location"]["line"],
        doc_string=doc["content"] if doc is not None else None,
    )


def _substitute(text: str, values: dict[str, str]) -> str:
    return _OUTLINE_PARAM_RE.sub(lambda m: values.get(m.group(1), m.group(0)), text)


def _expand_outline(scenario: Scenario, examples: list[dict[str, Any]]) -> list[Scenario]:
    expanded: list[Scenario] = []
    for block in examples:
        header = block.get("tableHeader")
        if header is None:
            continue
        columns = [cell["value"] for cell in header["cells"]]
        block_tags = frozenset(_tag_names(block))
        for row in block.get("tableBody", []):
            values = dict(zip(columns, (cell["value"] for cell in row["cells"])))
            steps = tuple(
                replace(
                    step,
                    text=_substitute(step.text, values),
                    doc_string=_substitute(step.doc_string, values) if step.doc_string is not None else None,
                )
                for step in scenario.steps
            )
            expanded.append(
                replace(
                    scenario,
                    name=_substitute(scenario.name, values),
                    line=row["location"]["line"],
                    steps=steps,
                    tags=scenario.tags | block_tags,
                )
            )
    return expanded


def _collect(
    children: Iterable[dict[str, Any]],
    *,
    feature: str,
    uri: str,
    background: tuple[Step, ...],
    tags: frozenset[str],
) -> list[Scenario]:
    scenarios: list[Scenario] = []
    for child in children:
        if "background" in child:
            background = background + tuple(_to_step(s) for s in child["background"].get("steps", []))
        elif "rule" in child:
            rule = child["rule"]
            scenarios.extend(
                _collect(
                    rule.get("children", []),
                    feature=feature,
                    uri=uri,
                    background=background,
                    tags=tags | _tag_names(rule),
                )
            )
        elif "scenario" in child:
            node = child["scenario"]
            scenario = Scenario(
                feature=feature,
                name=node.get("name", ""),
                uri=uri,
                line=node["location"]["line"],
                steps=background + tuple(_to_step(s) for s in node.get("steps", [])),
                tags=tags | _tag_names(node),
            )
            examples = node.get("examples") or []
            if examples:
                scenarios.extend(_expand_outline(scenario, examples))
            else:
                scenarios.append(scenario)
    return scenarios


def parse_feature(text: str, *, uri: str = "<string>") -> list[Scenario]:
    try:
        document = Parser().parse(TokenScanner(text))
    except ParserError as exc:
        raise FeatureParseError(uri, str(exc)) from exc
    feature = document.get("feature")
    if not feature:
        return []
    return _collect(
        feature.get("children", []),
        feature=feature.get("name", ""),
        uri=uri,
        background=(),
        tags=frozenset(_tag_names(feature)),
    )


def load_feature(path: Path) -> list[Scenario]:
    return parse_feature(path.read_text(encoding="utf-8"), uri=path.as_posix())


def load_features(files: Iterable[Path]) -> list[Scenario]:
    scenarios: list[Scenario] = []
    for path in files:
        scenarios.extend(load_feature(path))
    return scenarios


def filter_by_tags(scenarios: Iterable[Scenario], tags: Iterable[str]) -> list[Scenario]:
    """Keep scenarios carrying any of ``tags``; an empty tag list keeps everything."""
    wanted = {t if t.startswith("@") else f"@{t}" for t in tags}
    if not wanted:
        return list(scenarios)
    return [s for s in scenarios if s.tags & wanted]
