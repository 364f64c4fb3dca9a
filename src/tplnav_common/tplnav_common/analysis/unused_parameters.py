# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Declared template parameters that the template body never reads.

Only ``${{ ... }}`` template expressions are scanned, so the word
``parameters`` in plain strings or comments never counts as a use. When an
expression uses the parameters collection as a whole, e.g.
``${{ convertToJson(parameters) }}`` or ``${{ each p in parameters }}``,
every parameter counts as used.
"""

import re
from typing import List, Set

from .lines import split_lines
from .models import UnusedParameter
from .parameter_parser import parse_parameters

_EXPRESSION_RE = re.compile(r"\$\{\{(.*?)\}\}")
_BARE_PARAMETERS_RE = re.compile(r"\bparameters\b(?!\s*[.\[])")
# Quoted literals such as 'parameters' are not uses of the collection.
_STRING_LITERAL_RE = re.compile(r"'[^']*'|\"[^\"]*\"")
_DOTTED_REF_RE = re.compile(r"\bparameters\.([\w-]+)\b")
_INDEXED_REF_RE = re.compile(r"\bparameters\s*\[\s*['\"]([^'\"]+)['\"]\s*\]")


def _expressions(text: str) -> List[str]:
    found = []
    for line in split_lines(text):
        found.extend(m.group(1) for m in _EXPRESSION_RE.finditer(line))
    return found


def find_unused_parameters(text: str) -> List[UnusedParameter]:
    """Return declared parameters of *text* with no reference, in declaration order."""
    declared = parse_parameters(text)
    if not declared:
        return []

    referenced: Set[str] = set()
    for expr in _expressions(text):
        if _BARE_PARAMETERS_RE.search(_STRING_LITERAL_RE.sub("''", expr)):
            return []
        referenced.update(_DOTTED_REF_RE.findall(expr))
        referenced.update(_INDEXED_REF_RE.findall(expr))

    return [
        UnusedParameter(param_name=p.name, declaration_line=p.declaration_line)
        for p in declared
        if p.name not in referenced
    ]
