"""Click CLI entry point for rulegen."""

from __future__ import annotations

import json
import logging
import random
from collections.abc import Callable, Iterable, Iterator
from itertools import islice
from pathlib import Path

import click

from rulegen import __version__
from rulegen.compiler import load_rules
from rulegen.config import ExportConfig, MeshGrouping, load_export_config
from rulegen.errors import RulegenError
from rulegen.expansion import OutputMesh, generate
from rulegen.gltf_export import export_gltf
from rulegen.inspection import render_text as render_inspection_text
from rulegen.inspection import summarize
from rulegen.obj_export import write_obj
from rulegen.rule import Rule
from rulegen.scenes import SCENES, build_scene
from rulegen.warning_policy import WarningPolicy, emit_warning

RULE_FILE_SUFFIXES = (".rules.yaml", ".rules.yml", ".yaml", ".yml")


def _build_warning_policy(
    warn_as_error: str | None, suppress_warning: str | None
) -> WarningPolicy | None:
    try:
        return WarningPolicy.from_options(warn_as_error, suppress_warning)
    except ValueError as e:
        raise click.ClickException(str(e)) from e


def _build_export_config(
    export_config: Path | None, grouping: str | None, mtl: str | None
) -> ExportConfig:
    """Load the export config file, if any, then apply command-line overrides."""
    config = load_export_config(export_config) if export_config is not None else ExportConfig()
    overrides: dict[str, object] = {}
    if grouping is not None:
        overrides["grouping"] = MeshGrouping(grouping)
    if mtl is not None:
        overrides["export_colors"] = mtl
    if overrides:
        config = ExportConfig(**{**config.model_dump(), **overrides})
    return config


def _resolve_format(output: Path | None, output_format: str | None) -> str:
    if output_format is not None:
        return output_format
    if output is not None and output.suffix.lower() == ".glb":
        return "glb"
    return "obj"


def _default_output(input_file: Path, output_format: str) -> Path:
    """Strip the rule file suffix from ``input_file`` and add the output extension."""
    stem = input_file.name
    for suffix in RULE_FILE_SUFFIXES:
        if stem.endswith(suffix):
            stem = stem[: -len(suffix)]
            break
    return input_file.parent / f"{stem}.{output_format}"


def _limited(
    meshes: Iterator[OutputMesh], limit: int | None, warning_policy: WarningPolicy | None
) -> tuple[Iterable[OutputMesh], bool]:
    """Cut ``meshes`` at ``limit`` and report whether anything was dropped.

    Without a limit the stream is passed through untouched. With one, the
    first ``limit`` meshes are collected and W02 is settled before the caller
    writes anything, so an escalated W02 never leaves a partial file behind.
    """
    if limit is None:
        return meshes, False
    kept = list(islice(meshes, limit))
    return kept, _warn_if_truncated(meshes, limit, warning_policy)


def _warn_if_truncated(
    meshes: Iterator[OutputMesh], limit: int, warning_policy: WarningPolicy | None
) -> bool:
    """Emit W02 and return True if ``meshes`` has anything left after the limit."""
    if next(meshes, None) is None:
        return False
    emit_warning(
        "W02",
        f"Output truncated at {limit} meshes; the rule generates more",
        policy=warning_policy,
    )
    return True


def _export(
    meshes: Iterable[OutputMesh], output: Path, output_format: str, config: ExportConfig
) -> int:
    if output_format == "glb":
        return export_gltf(meshes, output)
    return write_obj(output, meshes, config).meshes


def _warning_options(fn: Callable) -> Callable:
    fn = click.option(
        "--suppress-warning",
        "suppress_warning",
        type=str,
        default=None,
        help="Comma-separated W-codes to suppress (e.g. W03).",
    )(fn)
    fn = click.option(
        "--warn-as-error",
        "warn_as_error",
        type=str,
        default=None,
        help="Comma-separated W-codes to treat as errors (e.g. W01,W02).",
    )(fn)
    return fn


def _output_options(fn: Callable) -> Callable:
    for option in reversed(
        [
            click.option(
                "-o",
                "--output",
                type=click.Path(path_type=Path),
                default=None,
                help="Output file path. Defaults to the input name with the format's extension.",
            ),
            click.option(
                "--format",
                "output_format",
                type=click.Choice(["obj", "glb"]),
                default=None,
                help="Output format. Defaults to glb for .glb outputs, obj otherwise.",
            ),
            click.option(
                "--export-config",
                type=click.Path(exists=True, dir_okay=False, path_type=Path),
                default=None,
                help="YAML file with object export settings.",
            ),
            click.option(
                "--grouping",
                type=click.Choice([g.value for g in MeshGrouping]),
                default=None,
                help="How meshes are grouped in the object file.",
            ),
            click.option(
                "--mtl",
                type=str,
                default=None,
                help="Write colours to this material library next to the object file.",
            ),
            click.option(
                "--limit",
                type=click.IntRange(min=0),
                default=None,
                help="Stop after this many meshes.",
            ),
            click.option(
                "--seed",
                type=int,
                default=None,
                help=(
                    "Seed for randomised rules and scenes; "
                    "ignored by scenes that use no randomness."
                ),
            ),
        ]
    ):
        fn = option(fn)
    return _warning_options(fn)


@click.group()
@click.version_option(version=__version__, prog_name="rulegen")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
def main(verbose: bool = False) -> None:
    """rulegen: generate 3D meshes from recursive transformation rules."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        force=True,
    )


@main.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_output_options
def render(
    input_file: Path,
    output: Path | None = None,
    output_format: str | None = None,
    export_config: Path | None = None,
    grouping: str | None = None,
    mtl: str | None = None,
    limit: int | None = None,
    seed: int | None = None,
    warn_as_error: str | None = None,
    suppress_warning: str | None = None,
) -> None:
    """Render a .rules.yaml file to an OBJ or GLB file."""
    warning_policy = _build_warning_policy(warn_as_error, suppress_warning)
    output_format = _resolve_format(output, output_format)
    if output is None:
        output = _default_output(input_file, output_format)

    try:
        config = _build_export_config(export_config, grouping, mtl)
        rule = load_rules(input_file, seed=seed, warning_policy=warning_policy)
        meshes, _ = _limited(generate(rule), limit, warning_policy)
        count = _export(meshes, output, output_format, config)
    except RulegenError as e:
        raise click.ClickException(str(e))
    click.echo(f"Rendered: {output} ({count} meshes)")


@main.command()
@click.argument("name", type=click.Choice(sorted(SCENES)))
@_output_options
def example(
    name: str,
    output: Path | None = None,
    output_format: str | None = None,
    export_config: Path | None = None,
    grouping: str | None = None,
    mtl: str | None = None,
    limit: int | None = None,
    seed: int | None = None,
    warn_as_error: str | None = None,
    suppress_warning: str | None = None,
) -> None:
    """Render one of the built-in example scenes."""
    warning_policy = _build_warning_policy(warn_as_error, suppress_warning)
    if SCENES[name].infinite and limit is None:
        raise click.UsageError(f"Scene {name!r} never stops generating; pass --limit")
    output_format = _resolve_format(output, output_format)
    if output is None:
        output = Path(f"{name}.{output_format}")

    if seed is not None and not SCENES[name].randomized:
        click.echo(f"Note: scene {name!r} uses no randomness; --seed has no effect", err=True)
    rng = random.Random(seed) if seed is not None else None
    try:
        config = _build_export_config(export_config, grouping, mtl)
        rule = build_scene(name, rng)
        meshes, _ = _limited(generate(rule), limit, warning_policy)
        count = _export(meshes, output, output_format, config)
    except RulegenError as e:
        raise click.ClickException(str(e))
    click.echo(f"Rendered: {output} ({count} meshes)")


@main.command()
def scenes() -> None:
    """List the built-in example scenes."""
    for name in sorted(SCENES):
        info = SCENES[name]
        suffix = " (infinite)" if info.infinite else ""
        click.echo(f"{name}: {info.description}{suffix}")


@main.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Inspection output format.",
)
@click.option(
    "--limit",
    type=click.IntRange(min=0),
    default=None,
    help="Inspect at most this many meshes.",
)
@click.option("--seed", type=int, default=None, help="Seed for randomised rules.")
@_warning_options
def inspect(
    input_file: Path,
    output_format: str = "text",
    limit: int | None = None,
    seed: int | None = None,
    warn_as_error: str | None = None,
    suppress_warning: str | None = None,
) -> None:
    """Summarise what a .rules.yaml file generates without exporting it."""
    warning_policy = _build_warning_policy(warn_as_error, suppress_warning)

    try:
        rule: Rule = load_rules(input_file, seed=seed, warning_policy=warning_policy)
        meshes, truncated = _limited(generate(rule), limit, warning_policy)
        payload = summarize(list(meshes), truncated=truncated)
    except RulegenError as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        click.echo(json.dumps(payload, indent=2))
    else:
        click.echo(render_inspection_text(payload), nl=False)
