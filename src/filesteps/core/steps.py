"""Step bindings: which sentence runs which file effect.

The registry is an immutable value built once from an explicit ``StepKind ->
handler`` table and handed to the runner. Step text is matched against every
pattern; exactly one must match.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Mapping, Optional

import parse

from filesteps.core import fileops, paths
from filesteps.core.error_types import StepConfigError
from filesteps.core.fileops import FileTarget

Handler = Callable[[FileTarget, Optional[str]], None]


class StepKind(str, Enum):
    CREATE_FILE = "create_file"
    DELETE_FILE = "delete_file"
    VERIFY_ABSENT = "verify_absent"
    VERIFY_PRESENT = "verify_present"


# Doc-string requirement per kind: True = required, False = not accepted, None = optional.
PATTERNS: Mapping[StepKind, tuple[str, bool | None]] = {
    StepKind.CREATE_FILE: ('I create a file "{file_name}" in "{directory}" with content:', True),
    StepKind.DELETE_FILE: ('I delete the file "{file_name}" from "{directory}"', False),
    StepKind.VERIFY_ABSENT: ('the file "{file_name}" should not exist in "{directory}"', False),
    StepKind.VERIFY_PRESENT: ('the file "{file_name}" should exist in "{directory}"', None),
}


class UndefinedStepError(StepConfigError):
    error_type = "UNDEFINED_STEP"

    def __init__(self, text: str) -> None:
        super().__init__(f"no step definition matches: {text!r}")
        self.text = text


class AmbiguousStepError(StepConfigError):
    error_type = "AMBIGUOUS_STEP"

    def __init__(self, text: str, kinds: list[StepKind]) -> None:
        names = ", ".join(k.value for k in kinds)
        super().__init__(f"step matches more than one definition ({names}): {text!r}")
        self.text = text
        self.kinds = kinds


class MissingDocStringError(StepConfigError):
    error_type = "MISSING_DOC_STRING"

    def __init__(self, kind: StepKind) -> None:
        super().__init__(f"step {kind.value} requires an attached doc string")
        self.kind = kind


class UnexpectedDocStringError(StepConfigError):
    error_type = "UNEXPECTED_DOC_STRING"

    def __init__(self, kind: StepKind) -> None:
        super().__init__(f"step {kind.value} does not take a doc string")
        self.kind = kind


@dataclass(frozen=True)
class StepBinding:
    kind: StepKind
    pattern: str
    handler: Handler
    doc_string: bool | None
    parser: parse.Parser

    def match(self, text: str) -> dict[str, str] | None:
        result = self.parser.parse(text)
        if result is None:
            return None
        return dict(result.named)


@dataclass(frozen=True)
class StepMatch:
    binding: StepBinding
    params: dict[str, str]

    @property
    def kind(self) -> StepKind:
        return self.binding.kind


@dataclass(frozen=True)
class StepRegistry:
    bindings: tuple[StepBinding, ...]
    workdir: Path
    confine_to_workdir: bool = True

    @classmethod
    def from_handlers(
        cls,
        handlers: Mapping[StepKind, Handler],
        *,
        workdir: Path,
        confine_to_workdir: bool = True,
    ) -> "StepRegistry":
        unknown = [k for k in handlers if not isinstance(k, StepKind)]
        if unknown:
            raise ValueError(f"Unknown step kinds: {unknown!r}")
        missing = [k.value for k in StepKind if k not in handlers]
        if missing:
            raise ValueError(f"No handler bound for step kinds: {', '.join(missing)}")
        bindings = tuple(
            StepBinding(
                kind=kind,
                pattern=PATTERNS[kind][0],
                handler=handlers[kind],
                doc_string=PATTERNS[kind][1],
                parser=parse.compile(PATTERNS[kind][0], case_sensitive=True),
            )
            for kind in StepKind
        )
        return cls(bindings=bindings, workdir=workdir, confine_to_workdir=confine_to_workdir)

    def patterns(self) -> list[tuple[StepKind, str]]:
        return [(b.kind, b.pattern) for b in self.bindings]

    def match(self, text: str) -> StepMatch:
        matches: list[StepMatch] = []
        for binding in self.bindings:
            params = binding.match(text)
            if params is not None:
                matches.append(StepMatch(binding=binding, params=params))
        if not matches:
            raise UndefinedStepError(text)
        if len(matches) > 1:
            raise AmbiguousStepError(text, [m.kind for m in matches])
        return matches[0]

    def target_for(self, match: StepMatch) -> FileTarget:
        path = paths.resolve_target(
            self.workdir,
            match.params["directory"],
            match.params["file_name"],
            confine=self.confine_to_workdir,
        )
        return FileTarget(directory=path.parent, file_name=path.name)

    def invoke(self, match: StepMatch, doc_string: str | None) -> None:
        required = match.binding.doc_string
        if required is True and doc_string is None:
            raise MissingDocStringError(match.kind)
        if required is False and doc_string is not None:
            raise UnexpectedDocStringError(match.kind)
        match.binding.handler(self.target_for(match), doc_string)


def _create(target: FileTarget, doc_string: str | None) -> None:
    fileops.create_file(target.directory, target.file_name, doc_string or "")


def _delete(target: FileTarget, doc_string: str | None) -> None:
    fileops.delete_file(target.directory, target.file_name)


def _verify_absent(target: FileTarget, doc_string: str | None) -> None:
    fileops.verify_absent(target.directory, target.file_name)


def _verify_present(target: FileTarget, doc_string: str | None) -> None:
    fileops.verify_present(target.directory, target.file_name, doc_string)


FILE_HANDLERS: Mapping[StepKind, Handler] = {
    StepKind.CREATE_FILE: _create,
    StepKind.DELETE_FILE: _delete,
    StepKind.VERIFY_ABSENT: _verify_absent,
    StepKind.VERIFY_PRESENT: _verify_present,
}


def default_registry(workdir: Path, *, confine_to_workdir: bool = True) -> StepRegistry:
    return StepRegistry.from_handlers(FILE_HANDLERS, workdir=workdir, confine_to_workdir=confine_to_workdir)
