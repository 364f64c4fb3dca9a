# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Tests for the line-oriented YAML scanners: parameters, passed arguments,
repository aliases, variables and ``template:`` references."""

import pytest

from tplnav_common.analysis import (
    extract_template_ref,
    extract_template_refs,
    find_insertion_line,
    find_owning_template_line,
    find_template_call_sites,
    has_parameters_passthrough,
    is_pipeline_root,
    parse_parameters,
    parse_passed_arguments,
    parse_repository_aliases,
    parse_variables,
)
from tplnav_common.analysis.lines import split_lines, strip_trailing_comment, unquote

TEMPLATE = """\
parameters:
  - name: environment
    type: string
  - name: replicas
    type: number
    default: 2
  - name: color
    default: '#E06C75'   # brand
steps:
  - script: echo ${{ parameters.environment }}
"""

CALLER = """\
steps:
  - template: templates/build.yml
    parameters:
      environment: prod
      ${{ if eq(variables.debug, true) }}:
        verbose: true
      ${{ else }}:
        verbose: false
      cfg:
        a: 1
        b: 2
      items:
      - one
      - two
      count: 3
  - script: echo done
"""


# ---------------------------------------------------------------------------
# Line helpers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value,expected",
    [
        ("dev   # comment", "dev"),
        ("'#E06C75'", "'#E06C75'"),
        ("a#b", "a#b"),
        ("# only a comment", ""),
    ],
)
def test_strip_trailing_comment(value, expected):
    assert strip_trailing_comment(value) == expected


def test_unquote():
    assert unquote("'x'") == "x"
    assert unquote('"x"') == "x"
    assert unquote("'x\"") == "'x\""
    assert unquote("'") == "'"


def test_split_lines_normalizes_crlf():
    assert split_lines("a\r\nb\n") == ["a", "b", ""]


# ---------------------------------------------------------------------------
# parse_parameters
# ---------------------------------------------------------------------------


def test_parse_parameters_names_types_defaults():
    params = parse_parameters(TEMPLATE)
    assert [p.name for p in params] == ["environment", "replicas", "color"]
    env, replicas, color = params

    assert env.type == "string"
    assert env.default is None
    assert env.declaration_line == 1

    assert replicas.type == "number"
    assert replicas.default == "2"
    assert replicas.declaration_line == 3

    assert color.type == "string"
    assert color.default == "'#E06C75'"
    assert color.declaration_line == 6


def test_required_exactly_when_no_default():
    for p in parse_parameters(TEMPLATE):
        assert p.required == (p.default is None)
    assert [p.name for p in parse_parameters(TEMPLATE) if p.required] == ["environment"]


def test_crlf_input_parses_identically():
    assert parse_parameters(TEMPLATE.replace("\n", "\r\n")) == parse_parameters(TEMPLATE)


def test_nested_object_default_keys_are_not_properties():
    text = """\
parameters:
  - name: config
    type: object
    default:
      type: nested
      default: inner
  - name: flag
    type: boolean
"""
    config, flag = parse_parameters(text)
    assert config.type == "object"
    assert config.default == ""
    assert not config.required
    assert flag.type == "boolean"
    assert flag.required


def test_nested_name_items_are_not_parameters():
    text = """\
parameters:
  - name: a
    values:
      - name: notaparam
  - name: b
"""
    assert [p.name for p in parse_parameters(text)] == ["a", "b"]


def test_block_ends_at_next_top_level_key():
    text = """\
parameters:
- name: a
  default: 1
# inputs above
steps:
- name: not-a-parameter
"""
    params = parse_parameters(text)
    assert [p.name for p in params] == ["a"]
    assert params[0].default == "1"


def test_no_parameters_block():
    assert parse_parameters("steps:\n  - script: echo hi\n") == []
    assert parse_parameters("") == []


def test_empty_parameters_block():
    assert parse_parameters("parameters:\nsteps:\n  - script: echo\n") == []


def test_quoted_names_and_types_are_unquoted():
    text = """\
parameters:
- name: 'env'
  type: "number"   # count
- name: "flag" # switch
  type: 'boolean'
"""
    params = parse_parameters(text)
    assert [(p.name, p.type) for p in params] == [("env", "number"), ("flag", "boolean")]


# ---------------------------------------------------------------------------
# parse_passed_arguments
# ---------------------------------------------------------------------------


def test_passed_arguments_with_conditionals_and_objects():
    passed = parse_passed_arguments(split_lines(CALLER), 1)
    assert list(passed) == ["environment", "verbose", "cfg", "items", "count"]
    assert passed["environment"].value == "prod"
    assert passed["environment"].line_number == 3
    assert passed["count"].value == "3"
    assert passed["count"].line_number == 14


def test_first_conditional_branch_wins():
    passed = parse_passed_arguments(split_lines(CALLER), 1)
    assert passed["verbose"].value == "true"
    assert passed["verbose"].line_number == 5


def test_object_value_body_is_not_arguments():
    passed = parse_passed_arguments(split_lines(CALLER), 1)
    assert passed["cfg"].value == ""
    assert "a" not in passed
    assert "b" not in passed
    assert passed["items"].value == ""


def test_block_scalar_body_is_not_arguments():
    text = """\
steps:
- template: t.yml
  parameters:
    script: |
      echo start
      retries: 3
    note: >-   # folded
      key: value
    count: 2
"""
    passed = parse_passed_arguments(split_lines(text), 1)
    assert list(passed) == ["script", "note", "count"]
    assert passed["script"].value == "|"
    assert passed["count"].line_number == 8


def test_call_site_without_parameters_block():
    lines = split_lines("steps:\n- template: x.yml\n- script: echo\n")
    assert parse_passed_arguments(lines, 1) == {}


def test_passed_arguments_rejects_bad_index():
    lines = split_lines(CALLER)
    with pytest.raises(ValueError):
        parse_passed_arguments(lines, len(lines))
    with pytest.raises(ValueError):
        parse_passed_arguments(lines, -1)


def test_parameters_passthrough():
    lines = split_lines(
        """\
steps:
- template: t.yml
  parameters:
    ${{ each p in parameters }}:
      ${{ p.key }}: ${{ p.value }}
"""
    )
    assert has_parameters_passthrough(lines, 1)
    assert parse_passed_arguments(lines, 1) == {}
    assert not has_parameters_passthrough(split_lines(CALLER), 1)


def test_find_insertion_line():
    assert find_insertion_line(split_lines(CALLER), 1) == 14

    empty_block = split_lines("steps:\n- template: t.yml\n  parameters:\n- script: x\n")
    assert find_insertion_line(empty_block, 1) == 2

    no_block = split_lines("steps:\n- template: t.yml\n- script: x\n")
    assert find_insertion_line(no_block, 1) is None


# ---------------------------------------------------------------------------
# parse_repository_aliases
# ---------------------------------------------------------------------------


def test_repository_aliases():
    text = """\
resources:
  repositories:
    - repository: templates
      type: git
      name: myorg/shared-templates
      ref: refs/heads/main
    - repository: 'tools'   # build tools
      name: "myorg/proj/tools-repo"
    - repository: plain
      name: plain-repo
  pipelines:
    - pipeline: upstream
      source: Upstream
trigger: none
"""
    assert parse_repository_aliases(text) == {
        "templates": "shared-templates",
        "tools": "tools-repo",
        "plain": "plain-repo",
    }


def test_repository_aliases_absent():
    assert parse_repository_aliases("trigger: none\nsteps:\n- script: echo\n") == {}
    assert parse_repository_aliases("resources:\n  pipelines:\n  - pipeline: x\n") == {}


# ---------------------------------------------------------------------------
# parse_variables
# ---------------------------------------------------------------------------


def test_variables_map_form():
    text = """\
variables:
  buildConfiguration: Release
  dotnet.version: 8.0.x   # sdk
  nested:
    inner: x
stages:
- stage: Build
"""
    parsed = parse_variables(text)
    assert list(parsed.variables) == ["buildConfiguration", "dotnet.version", "nested"]
    assert parsed.variables["buildConfiguration"].value == "Release"
    assert parsed.variables["buildConfiguration"].line_number == 1
    assert parsed.variables["dotnet.version"].value == "8.0.x"
    assert parsed.variables["nested"].value == ""
    assert parsed.groups == []


def test_variables_list_form_with_groups():
    text = """\
variables:
  - name: buildConfiguration
    value: Release
  - group: shared-secrets
  - name: empty
    value:
trigger: none
"""
    parsed = parse_variables(text)
    assert parsed.variables["buildConfiguration"].value == "Release"
    assert parsed.variables["buildConfiguration"].line_number == 1
    assert parsed.variables["empty"].value == ""
    assert [(g.name, g.line_number) for g in parsed.groups] == [("shared-secrets", 3)]


def test_no_variables_block():
    parsed = parse_variables("steps:\n- script: echo\n")
    assert parsed.variables == {}
    assert parsed.groups == []


# ---------------------------------------------------------------------------
# Template references
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "line,expected",
    [
        ("  - template: a.yml # comment", "a.yml"),
        ("  - template: 'quoted.yml'", "quoted.yml"),
        ("    template: x.yml@templates", "x.yml@templates"),
        ("# - template: x.yml", None),
        ("  - script: echo template", None),
        ("  - template:", None),
    ],
)
def test_extract_template_ref(line, expected):
    assert extract_template_ref(line) == expected


def test_dynamic_references_are_not_resolvable():
    text = """\
steps:
- template: ${{ parameters.stepsTemplate }}
- template: $(templateName).yml
- template: static.yml
"""
    assert [s.reference for s in find_template_call_sites(text)] == [
        "${{ parameters.stepsTemplate }}",
        "$(templateName).yml",
        "static.yml",
    ]
    refs = extract_template_refs(text)
    assert [(s.reference, s.line_number) for s in refs] == [("static.yml", 3)]


@pytest.mark.parametrize(
    "text,expected",
    [
        ("trigger:\n- main\n", True),
        ("extends:\n  template: base.yml\n", True),
        ("parameters:\n- name: a\nsteps:\n- script: echo\n", True),
        ("parameters:\n  - name: a\n", False),
        ("variables:\n  steps: 1\n", False),
    ],
)
def test_is_pipeline_root(text, expected):
    assert is_pipeline_root(text) == expected


def test_owning_template_line():
    lines = split_lines(CALLER)
    assert find_owning_template_line(lines, 1) == 1
    assert find_owning_template_line(lines, 3) == 1
    assert find_owning_template_line(lines, 9) == 1
    assert find_owning_template_line(lines, 15) is None
    assert find_owning_template_line(lines, 0) is None


def test_owning_template_line_rejects_bad_index():
    with pytest.raises(ValueError):
        find_owning_template_line(split_lines(CALLER), 100)
