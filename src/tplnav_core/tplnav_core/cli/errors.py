# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Actionable error messages for CLI failures."""

import re
from typing import Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

console = Console(stderr=True)

ERROR_PATTERNS = {
    "not_found": {
        "pattern": r"(no such file or directory|not found|does not exist)",
        "message": "File or directory not found",
        "action": "Check the path, or pass --workspace to point at the repository checkout",
    },
    "permission": {
        "pattern": r"(permission denied|access denied)",
        "message": "Permission denied",
        "action": "Check file permissions or run with appropriate privileges",
    },
    "yaml": {
        "pattern": r"(while parsing|while scanning|mapping values are not allowed|could not find expected)",
        "message": "Malformed .tplnav.yaml",
        "action": "Fix the YAML syntax in the workspace .tplnav.yaml file",
    },
    "config": {
        "pattern": r"(validation error|must contain a mapping|extra inputs are not permitted)",
        "message": "Invalid configuration",
        "action": "Check TPLNAV_* environment variables and the workspace .tplnav.yaml file",
    },
    "depth": {
        "pattern": r"depth=\S+ must be between",
        "message": "Graph depth out of range",
        "action": "Pass --depth with a value from 1 to 10",
    },
}


def detect_error_pattern(output: str) -> Optional[Tuple[str, str]]:
    output_lower = output.lower()
    for pattern_info in ERROR_PATTERNS.values():
        if re.search(pattern_info["pattern"], output_lower, re.IGNORECASE):
            return (pattern_info["message"], pattern_info["action"])
    return None


def show_error(title: str, output: str = ""):
    """Display a formatted error with smart extraction."""
    console.print()
    detected = detect_error_pattern(output) if output else None
    if detected:
        message, action = detected
        error_text = Text()
        error_text.append(f"✗ {title}\n\n", style="bold red")
        error_text.append(f"{message}\n\n", style="red")
        error_text.append("→ Fix: ", style="bold yellow")
        error_text.append(f"{action}\n", style="yellow")
        console.print(Panel(error_text, border_style="red", expand=False))
    else:
        console.print(Panel(Text(f"✗ {title}", style="bold red"), border_style="red", expand=False))

    lines = output.strip().split("\n") if output.strip() else []
    context = lines[-10:]
    if context:
        console.print("\n[dim]Details:[/dim]")
        for line in context:
            console.print(f"  [dim]│[/dim] {escape(line)}")
    console.print()


def show_success(message: str):
    console.print(f"[green]✓[/green] {message}", style="green")
