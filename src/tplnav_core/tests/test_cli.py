# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""End-to-end tests for the ``tplnav`` command line, driven through ``main(argv)``."""

import json
import logging
import os

import pytest
import yaml

from tplnav_core.cli.main import build_parser, main
from tplnav_core.logconfig import LOGGER_NAMES, AnalysisContext, configure_logging

PIPELINE = """\
trigger: none
variables:
  buildConfiguration: Release
steps:
- template: templates/deploy.yml
  parameters:
    count: 2
"""

DEPLOY_TEMPLATE = """\
parameters:
- name: env
  type: string
- name: count
  type: number
  default: 1
steps:
- script: echo ${{ parameters.env }} ${{ parameters.count }}
"""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write(root, relative: str, text: str) -> str:
    path = root.joinpath(*relative.split("/"))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return str(path)


@pytest.fixture
def ws(tmp_path, monkeypatch):
    for key in list(os.environ):
        if key.startswith("TPLNAV_"):
            monkeypatch.delenv(key)
    root = tmp_path / "ws"
    (root / ".git").mkdir(parents=True)
    _write(root, "pipeline.yml", PIPELINE)
    _write(root, "templates/deploy.yml", DEPLOY_TEMPLATE)
    return root


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_parser_check_defaults():
    args = build_parser().parse_args(["check"])
    assert args.command == "check"
    assert args.path is None
    assert args.format == "text"
    assert not args.warnings_as_errors


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


def test_check_reports_errors(ws, capsys):
    assert main(["check", "--workspace", str(ws)]) == 1
    out = capsys.readouterr().out
    assert "missing-required-param" in out


def test_check_table_format(ws, capsys):
    assert main(["check", "--workspace", str(ws), "--format", "table"]) == 1
    assert "Template Diagnostics" in capsys.readouterr().out


def test_check_clean_workspace(ws, capsys):
    _write(ws, "pipeline.yml", PIPELINE.replace("    count: 2", "    env: prod"))
    assert main(["check", "--workspace", str(ws)]) == 0
    assert "All templates valid" in capsys.readouterr().err


def test_check_warnings_as_errors(ws):
    _write(ws, "pipeline.yml", PIPELINE.replace("    count: 2", "    env: prod\n    extra: 1"))
    assert main(["check", "--workspace", str(ws)]) == 0
    assert main(["check", "--workspace", str(ws), "-W"]) == 1


def test_check_single_file(ws, capsys):
    assert main(["check", str(ws / "templates" / "deploy.yml")]) == 0
    assert main(["check", str(ws / "pipeline.yml")]) == 1


def test_check_missing_path(ws, capsys):
    assert main(["check", str(ws / "nope.yml"), "--workspace", str(ws)]) == 1
    assert "Path not found" in capsys.readouterr().err


def test_check_sets_current_file_per_workspace_file(ws, monkeypatch):
    seen = []
    monkeypatch.setattr(AnalysisContext, "set_file", staticmethod(seen.append))
    main(["check", "--workspace", str(ws)])
    assert sorted(seen) == sorted([str(ws / "pipeline.yml"), str(ws / "templates" / "deploy.yml")])


def test_check_path_with_markup_characters(ws, capsys):
    _write(ws, "[bold]/build.yml", "steps:\n- script: echo hi\n")
    assert main(["check", str(ws / "[bold]"), "--workspace", str(ws)]) == 0
    assert "[bold]" in capsys.readouterr().out.replace("\n", "")


# ---------------------------------------------------------------------------
# graph
# ---------------------------------------------------------------------------


def test_graph_json(ws, capsys):
    assert main(["graph", "--workspace", str(ws)]) == 0
    data = json.loads(capsys.readouterr().out)
    assert {n["relative_path"] for n in data["nodes"]} == {"pipeline.yml", "templates/deploy.yml"}
    assert len(data["edges"]) == 1


def test_graph_yaml_scoped_to_file(ws, capsys):
    template = str(ws / "templates" / "deploy.yml")
    assert main(["graph", template, "--workspace", str(ws), "--format", "yaml"]) == 0
    data = yaml.safe_load(capsys.readouterr().out)
    scope = [n for n in data["nodes"] if n["is_scope"]]
    assert [n["relative_path"] for n in scope] == ["templates/deploy.yml"]
    assert [e["direction"] for e in data["edges"]] == ["upstream"]


def test_graph_depth_out_of_range(ws, capsys):
    template = str(ws / "templates" / "deploy.yml")
    assert main(["graph", template, "--workspace", str(ws), "--depth", "0"]) == 1
    assert "Cannot build file graph" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# search / params / vars
# ---------------------------------------------------------------------------


def test_search(ws, capsys):
    assert main(["search", "deplyo", "--workspace", str(ws)]) == 0
    assert "templates/deploy.yml" in capsys.readouterr().out


def test_search_no_match(ws, capsys):
    assert main(["search", "zzzz", "--workspace", str(ws)]) == 0
    assert "No matching templates" in capsys.readouterr().out


def test_params(ws, capsys):
    assert main(["params", str(ws / "templates" / "deploy.yml")]) == 0
    out = capsys.readouterr().out
    assert "env" in out
    assert "count" in out


def test_params_unreadable_file(ws):
    assert main(["params", str(ws / "missing.yml")]) == 1


def test_vars(ws, capsys):
    assert main(["vars", str(ws / "pipeline.yml")]) == 0
    assert "buildConfiguration" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------


def test_resolve_call_site_with_missing_argument(ws, capsys):
    # Line 7 ("count: 2") sits inside the call-site on line 5.
    assert main(["resolve", str(ws / "pipeline.yml"), "7"]) == 1
    out = capsys.readouterr().out
    assert "Resolves to:" in out
    assert "missing-required-param" in out


def test_resolve_line_without_call_site(ws, capsys):
    assert main(["resolve", str(ws / "pipeline.yml"), "1"]) == 1
    assert "No template call-site" in capsys.readouterr().err


def test_resolve_line_out_of_range(ws):
    assert main(["resolve", str(ws / "pipeline.yml"), "500"]) == 1


# ---------------------------------------------------------------------------
# configuration
# ---------------------------------------------------------------------------


def test_invalid_workspace_config(ws, capsys):
    _write(ws, ".tplnav.yaml", "graph_depth: 99\n")
    assert main(["check", "--workspace", str(ws)]) == 1
    assert "Invalid configuration" in capsys.readouterr().err


def test_workspace_config_sets_graph_depth(ws, capsys):
    _write(ws, ".tplnav.yaml", "graph-depth: 2\n")
    template = str(ws / "templates" / "deploy.yml")
    assert main(["graph", template, "--workspace", str(ws)]) == 0
    assert json.loads(capsys.readouterr().out)["nodes"]


# ---------------------------------------------------------------------------
# logging
# ---------------------------------------------------------------------------


def test_configure_logging_after_run_leaves_one_handler(ws):
    main(["check", "--workspace", str(ws)])
    handler = configure_logging("INFO", "json")
    for name in LOGGER_NAMES:
        assert logging.getLogger(name).handlers == [handler]
