# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: strata framework
"""
strata CLI entrypoint.

Inspects and validates architecture configuration files (JSON documents
holding an ``Architecture`` section).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from strata.composition import (
    ArchitectureSpecification,
    CompositionError,
    ModuleSpecification,
    ServicePool,
    TypeRegistry,
    add_app_architecture,
)
from strata.config import AmbientConfiguration, StrataSettings
from strata.logging import LoggerFactory, LoggingSettings
from strata.taxonomy import archetype_of

app = typer.Typer(help="strata CLI: inspect and validate architecture configuration.")

console = Console()


def _load(config: Path, env_prefix: str | None) -> AmbientConfiguration:
    try:
        document = AmbientConfiguration.from_json_file(config)
    except (OSError, ValueError) as exc:
        typer.secho(f"Could not read {config}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2) from exc
    if env_prefix:
        return AmbientConfiguration.from_sources(document, env_prefix=env_prefix)
    return document


def _settings(execution_dir: Path | None, config: Path) -> StrataSettings:
    settings = StrataSettings.load()
    settings.execution_directory = execution_dir or config.resolve().parent
    return settings


def _archetype_label(registry: TypeRegistry, module: ModuleSpecification) -> str:
    try:
        contract = registry.resolve(module.contract, module.contract_library).target
    except CompositionError:
        return "[red]unresolved[/red]"
    archetype = archetype_of(contract)
    return archetype.value if archetype else "[red]untagged[/red]"


def _add_module(
    parent: Tree, module: ModuleSpecification, registry: TypeRegistry
) -> None:
    source = module.implementation.source.value
    label = (
        f"[bold]{module.display_name}[/bold] {module.contract} "
        f"({_archetype_label(registry, module)}, {module.lifetime.value}, {source})"
    )
    node = parent.add(label)
    if module.behaviors:
        names = ", ".join(
            f"{b.name}{'*' if b.is_global else ''}" for b in module.behaviors
        )
        node.add(f"[cyan]behaviors:[/cyan] {names}")
    if module.implementation.settings:
        node.add(
            f"[cyan]settings:[/cyan] {json.dumps(module.implementation.settings)}"
        )
    for dependency in module.dependencies:
        _add_module(node, dependency, registry)


@app.command()
def show(
    config: Path = typer.Argument(..., help="Configuration file (JSON)"),
    execution_dir: Path = typer.Option(
        None, "--execution-dir", help="Directory searched for component libraries"
    ),
) -> None:
    """Print the module tree declared in CONFIG."""
    document = _load(config, None)
    settings = _settings(execution_dir, config)
    try:
        architecture = ArchitectureSpecification.from_config(
            document.section(settings.architecture_section).as_dict()
        )
    except CompositionError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc

    registry = TypeRegistry(settings.execution_directory)
    tree = Tree(f"[bold]{settings.architecture_section}[/bold] ({config.name})")
    if architecture.global_behaviors:
        tree.add(
            "[cyan]global behaviors:[/cyan] "
            + ", ".join(b.name for b in architecture.global_behaviors)
        )
    for module in architecture.modules or []:
        _add_module(tree, module, registry)
    console.print(tree)


@app.command()
def validate(
    config: Path = typer.Argument(..., help="Configuration file (JSON)"),
    execution_dir: Path = typer.Option(
        None, "--execution-dir", help="Directory searched for component libraries"
    ),
    env_prefix: str = typer.Option(
        None, "--env-prefix", help="Overlay environment variables with this prefix"
    ),
) -> None:
    """Build every module declared in CONFIG and report the providers."""
    document = _load(config, env_prefix)
    settings = _settings(execution_dir, config)
    registry = TypeRegistry(settings.execution_directory)
    shared = ServicePool.of(LoggerFactory(LoggingSettings(console_enabled=False)))

    try:
        composition = add_app_architecture(
            document, shared, settings=settings, type_registry=registry
        )
    except CompositionError as exc:
        typer.secho(f"Invalid architecture: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc

    table = Table(title=f"Modules in {config.name}")
    for column in ("Module", "Contract", "Implementation", "Archetype", "Lifetime", "Behaviors"):
        table.add_column(column)

    rows: list[list[Any]] = []
    with composition:
        for top in composition:
            for provider in top.walk():
                archetype = archetype_of(provider.contract)
                rows.append(
                    [
                        provider.name,
                        provider.contract.__name__,
                        provider.implementation.__name__,
                        archetype.value if archetype else "",
                        provider.lifetime.value,
                        str(len(provider.behaviors)),
                    ]
                )
    for row in rows:
        table.add_row(*row)
    console.print(table)
    typer.secho(f"{len(rows)} module(s) valid", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
