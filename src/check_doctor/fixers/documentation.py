"""Fixers that add roxygen documentation stubs to source units."""

from __future__ import annotations

from typing import override

from check_doctor.findings import Finding
from check_doctor.fixers.base import Applied, BaseFixer, Failed, FixResult, Skipped
from check_doctor.project import ProjectState
from check_doctor.sources import DOC_PREFIX, FunctionDef, find_function

# Tags that conventionally close a roxygen block; new tags go above them.
_TRAILING_TAGS = ("@export", "@examples", "@seealso", "@keywords")


def _stub_title(name: str) -> str:
    words = name.replace(".", " ").replace("_", " ").split()
    if not words:
        return name
    return " ".join([words[0].capitalize(), *words[1:]])


def _param_line(param: str) -> str:
    return f"{DOC_PREFIX} @param {param} Value for \\code{{{param}}}."


def _return_line(name: str) -> str:
    return f"{DOC_PREFIX} @return The result of \\code{{{name}}}."


def _doc_start(function: FunctionDef) -> int:
    if function.doc_start is None:
        raise ValueError(f"'{function.name}' has no documentation block")
    return function.doc_start


def _after_params(function: FunctionDef) -> int:
    """Return the line index just below the last ``@param`` tag.

    Without ``@param`` tags, new lines go above the closing tags, or at the
    end of the block.
    """
    start = _doc_start(function)
    param_rows = [i for i, line in enumerate(function.doc_lines) if "@param" in line]
    if param_rows:
        return start + param_rows[-1] + 1
    for i, line in enumerate(function.doc_lines):
        if any(tag in line for tag in _TRAILING_TAGS):
            return start + i
    return start + len(function.doc_lines)


def _first_tag_row(function: FunctionDef) -> int:
    """Return the line index of the first tag, or the end of the block."""
    start = _doc_start(function)
    for i, line in enumerate(function.doc_lines):
        if line.lstrip().removeprefix(DOC_PREFIX).lstrip().startswith("@"):
            return start + i
    return start + len(function.doc_lines)


def _insert(text: str, index: int, new_lines: list[str]) -> str:
    """Insert lines before line ``index``, keeping the unit's line separator."""
    separator = "\r\n" if "\r\n" in text else "\n"
    lines = text.split(separator)
    lines[index:index] = new_lines
    return separator.join(lines)


class _FunctionDocFixer(BaseFixer):
    """Shared lookup of the function named by the finding's anchor."""

    def _function(self, finding: Finding, state: ProjectState) -> FunctionDef | None:
        name = self.require_anchor(finding)
        return find_function(state.read(finding.location.unit), name)


class DocStubFixer(_FunctionDocFixer):
    """Insert a documentation stub above an undocumented function."""

    description = "Insert a roxygen stub (title, @param, @return) above the function"

    @override
    def _fix(self, finding: Finding, state: ProjectState) -> FixResult:
        function = self._function(finding, state)
        if function is None:
            return Skipped(reason=f"function '{finding.location.anchor}' not found")
        if function.documented:
            return Skipped(reason=f"function '{function.name}' is already documented")

        stub = [f"{DOC_PREFIX} {_stub_title(function.name)}", DOC_PREFIX]
        stub.extend(_param_line(param) for param in function.params)
        stub.append(_return_line(function.name))

        unit = finding.location.unit
        state.write(unit, _insert(state.read(unit), function.line, stub))
        return Applied(description=f"documented '{function.name}' in {unit}")


class ReturnDocFixer(_FunctionDocFixer):
    """Add a ``@return`` tag to an existing documentation block."""

    description = "Add a @return tag to the function's documentation block"

    @override
    def _fix(self, finding: Finding, state: ProjectState) -> FixResult:
        function = self._function(finding, state)
        if function is None:
            return Skipped(reason=f"function '{finding.location.anchor}' not found")
        if not function.documented:
            return Failed(cause=f"function '{function.name}' has no documentation block")
        if "return" in function.tags():
            return Skipped(reason=f"'{function.name}' already documents its return value")

        unit = finding.location.unit
        index = _after_params(function)
        state.write(unit, _insert(state.read(unit), index, [_return_line(function.name)]))
        return Applied(description=f"added @return to '{function.name}' in {unit}")


class ParamDocFixer(_FunctionDocFixer):
    """Add a missing ``@param`` tag; the finding's detail names the parameter."""

    description = "Add a @param tag for the parameter named in the finding detail"

    @override
    def _fix(self, finding: Finding, state: ProjectState) -> FixResult:
        param = self.require_detail(finding)
        function = self._function(finding, state)
        if function is None:
            return Skipped(reason=f"function '{finding.location.anchor}' not found")
        if param not in function.params:
            return Skipped(reason=f"'{function.name}' has no parameter '{param}'")
        if not function.documented:
            return Failed(cause=f"function '{function.name}' has no documentation block")
        if param in function.documented_params():
            return Skipped(reason=f"parameter '{param}' is already documented")

        unit = finding.location.unit
        index = _after_params(function)
        if not any("@param" in line for line in function.doc_lines):
            index = _first_tag_row(function)
        state.write(unit, _insert(state.read(unit), index, [_param_line(param)]))
        return Applied(description=f"documented parameter '{param}' of '{function.name}'")
