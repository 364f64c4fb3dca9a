# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Check the arguments passed at one template call-site against the target's declarations.

Three checks run per call-site:

1. Missing required parameters: declared without a default and not passed (ERROR)
2. Unknown parameters: passed but not declared (WARNING)
3. Type mismatches: the lexical kind of the value is incompatible with the
   declared type (WARNING)

Nothing is reported when the target cannot be resolved or read, or when the
call-site forwards its whole parameter collection.
"""

import logging
import re
from typing import Dict, FrozenSet, List

from .lines import check_line_index, strip_trailing_comment, unquote
from .models import DiagnosticIssue, DiagnosticKind, IssueSeverity, PassedArgument
from .parameter_parser import parse_parameters
from .passed_arguments import find_insertion_line, has_parameters_passthrough, parse_passed_arguments
from .resolver import resolve_reference
from .workspace import read_text

LOGGER = logging.getLogger(__name__)

_OBJECT_KINDS = frozenset({"object", "string"})

# Declared parameter type -> value kinds accepted for it. Object-family types
# accept strings because a multi-line body is not visible to a line scan.
# Numbers take strings only when quoted and numeric, see is_compatible.
COMPATIBLE_TYPES: Dict[str, FrozenSet[str]] = {
    "string": frozenset({"string"}),
    "number": frozenset({"number", "string"}),
    "boolean": frozenset({"boolean"}),
    "object": _OBJECT_KINDS,
    "step": _OBJECT_KINDS,
    "steplist": _OBJECT_KINDS,
    "job": _OBJECT_KINDS,
    "joblist": _OBJECT_KINDS,
    "deployment": _OBJECT_KINDS,
    "deploymentlist": _OBJECT_KINDS,
    "stage": _OBJECT_KINDS,
    "stagelist": _OBJECT_KINDS,
}

_BOOLEAN_RE = re.compile(r"^(?:true|false|yes|no|on|off)$", re.IGNORECASE)
_NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?$")
_TEMPLATE_KEYWORD = "template:"


def infer_value_type(value: str) -> str:
    """Return the coarse kind of a raw YAML scalar: boolean, number, object or string.

    Quoted scalars are always strings.
    """
    if not value:
        return "string"
    if value[0] in ("[", "{"):
        return "object"
    if value[0] in ("'", '"'):
        return "string"
    if _BOOLEAN_RE.match(value):
        return "boolean"
    if _NUMBER_RE.match(value):
        return "number"
    return "string"


def _name_span(line: str, name: str):
    start = line.find(name)
    if start < 0:
        return 0, len(line)
    return start, start + len(name)


def is_compatible(declared_type: str, value: str) -> bool:
    """True when *value* is acceptable for a parameter of *declared_type*.

    Unknown declared types accept anything. A number parameter takes a string
    only when it is a quoted number such as '"5"'.
    """
    compatible = COMPATIBLE_TYPES.get(declared_type.lower())
    if compatible is None:
        return True
    kind = infer_value_type(value)
    if kind not in compatible:
        return False
    if declared_type.lower() == "number" and kind == "string":
        return _NUMBER_RE.match(unquote(value)) is not None
    return True


def _check_type(lines: List[str], arg: PassedArgument, declared_type: str) -> List[DiagnosticIssue]:
    value = strip_trailing_comment(arg.value)
    if not value or value.startswith("$") or is_compatible(declared_type, value):
        return []

    kind = infer_value_type(value)

    start, end = _name_span(lines[arg.line_number], arg.name)
    return [
        DiagnosticIssue(
            message=(
                f"Type mismatch for parameter '{arg.name}': template expects "
                f"'{declared_type}', got value '{value}' (inferred as '{kind}')"
            ),
            severity=IssueSeverity.WARNING,
            kind=DiagnosticKind.TYPE_MISMATCH,
            line_number=arg.line_number,
            column_start=start,
            column_end=end,
            param_name=arg.name,
            param_type=declared_type,
            passed_value=arg.value,
        )
    ]


def validate_call_site(
    lines: List[str],
    inclusion_line: int,
    raw_reference: str,
    including_file: str,
    aliases: Dict[str, str],
) -> List[DiagnosticIssue]:
    """Validate the call-site whose ``template:`` directive is on *inclusion_line*.

    Raises ``ValueError`` when *inclusion_line* is not a valid index into *lines*.
    """
    check_line_index(lines, inclusion_line)
    ref = raw_reference.strip()

    resolved = resolve_reference(ref, including_file, aliases)
    if resolved is None or resolved.unknown_alias or resolved.absolute_path is None:
        return []

    text = read_text(resolved.absolute_path)
    if text is None:
        LOGGER.debug(f"Skipping call-site validation for '{ref}': target not readable")
        return []

    declared = {p.name: p for p in parse_parameters(text)}
    if not declared:
        return []
    if has_parameters_passthrough(lines, inclusion_line):
        return []

    passed = parse_passed_arguments(lines, inclusion_line)
    issues: List[DiagnosticIssue] = []

    template_text = lines[inclusion_line]
    keyword_start = template_text.find(_TEMPLATE_KEYWORD)
    if keyword_start < 0:
        keyword_start, keyword_end = 0, len(template_text)
    else:
        keyword_end = keyword_start + len(_TEMPLATE_KEYWORD)
    insertion_line = find_insertion_line(lines, inclusion_line)

    for param in declared.values():
        if param.required and param.name not in passed:
            issues.append(
                DiagnosticIssue(
                    message=(
                        f"Missing required parameter '{param.name}' (type: {param.type}) "
                        f"for template '{ref}'"
                    ),
                    severity=IssueSeverity.ERROR,
                    kind=DiagnosticKind.MISSING_REQUIRED_PARAMETER,
                    line_number=inclusion_line,
                    column_start=keyword_start,
                    column_end=keyword_end,
                    param_name=param.name,
                    param_type=param.type,
                    insertion_line=insertion_line,
                )
            )

    for arg in passed.values():
        param = declared.get(arg.name)
        if param is None:
            start, end = _name_span(lines[arg.line_number], arg.name)
            issues.append(
                DiagnosticIssue(
                    message=f"Unknown parameter '{arg.name}' is not declared in template '{ref}'",
                    severity=IssueSeverity.WARNING,
                    kind=DiagnosticKind.UNKNOWN_PARAMETER,
                    line_number=arg.line_number,
                    column_start=start,
                    column_end=end,
                    param_name=arg.name,
                    passed_value=arg.value,
                )
            )
            continue
        issues.extend(_check_type(lines, arg, param.type))

    return issues
