"""CLI command for listing the rule catalog."""

from pathlib import Path
from typing import Optional

import typer

from rhodibot.cli.utils import (
    EXIT_ERROR,
    console,
    emit,
    fail,
    load_pack,
    load_settings,
    parse_format,
    render_context,
)
from rhodibot.core.registry import RuleRegistry
from rhodibot.models.common import RuleCategory
from rhodibot.utils.errors import OrchestrationError


def rules_cmd(
    policy: Optional[Path] = typer.Option(
        None,
        "--policy",
        "-p",
        help="Path to policy pack YAML file",
    ),
    no_builtin: bool = typer.Option(
        False,
        "--no-builtin",
        help="List only the given policy pack's rules",
    ),
    category: Optional[str] = typer.Option(
        None,
        "--category",
        help="Only list rules of this category",
    ),
    format: Optional[str] = typer.Option(
        None,
        "--format",
        "-f",
        help="Output format (terminal, json)",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to rhodibot config file",
    ),
) -> None:
    """
    List the rules of a policy pack.

    Example:
        rhodibot rules --category layout
    """
    settings = load_settings(config)
    fmt = parse_format(format, settings)

    selected: Optional[RuleCategory] = None
    if category:
        try:
            selected = RuleCategory(category)
        except ValueError:
            choices = ", ".join(c.value for c in RuleCategory)
            console.print(f"[red]Error:[/red] Invalid category: {category} (choose from {choices})")
            raise typer.Exit(EXIT_ERROR)

    try:
        registry = RuleRegistry.from_rules(load_pack(settings, policy, no_builtin).rules)
    except OrchestrationError as e:
        raise fail(e)

    rules = registry.by_category(selected) if selected else list(registry)
    emit(rules, render_context(fmt, settings, registry))
