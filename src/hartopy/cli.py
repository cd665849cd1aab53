from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import typer

from hartopy.codegen import (
    entry_file_stem,
    generate_model_module,
    generate_request_module,
    model_prefix,
)
from hartopy.config import (
    merge_payload,
    output_defaults,
    output_dir_suffix,
    output_keep_invalid,
    synthesis_config,
    synthesis_defaults,
)
from hartopy.exceptions import EmissionValidationError, HartopyError
from hartopy.har import read_har_file
from hartopy.synthesis.model import SynthesisConfig
from hartopy.synthesis.naming import safe_identifier

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Generate typed Python models from JSON and HAR captures.")

_LOG_FORMAT = "%(levelname)s:%(name)s:%(message)s"


@dataclass
class GenerationReport:
    written: List[Path] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=_LOG_FORMAT,
    )


def _resolve_output_dir(input_path: Path, output_dir: Path | None, suffix: str) -> Path:
    if output_dir is not None:
        return output_dir
    return Path(f"{input_path.stem}{suffix}")


def _write_module(
    path: Path,
    render: Callable[[], str],
    *,
    keep_invalid: bool,
    report: GenerationReport,
    label: str,
    echo_fn: Callable[..., None] = typer.echo,
) -> None:
    try:
        source = render()
    except EmissionValidationError as exc:
        if not keep_invalid:
            echo_fn(f"Skipping {label}: {exc}", err=True)
            report.skipped.append(label)
            return
        echo_fn(f"Writing unvalidated code for {label}: {exc.diagnostic}", err=True)
        source = exc.source
    except HartopyError as exc:
        echo_fn(f"Skipping {label}: {exc}", err=True)
        report.skipped.append(label)
        return
    path.write_text(source, encoding="utf-8")
    report.written.append(path)
    echo_fn(f"Successfully created {path}")


def generate_from_json(
    input_path: Path,
    output_dir: Path,
    *,
    config: SynthesisConfig,
    keep_invalid: bool = False,
    echo_fn: Callable[..., None] = typer.echo,
) -> GenerationReport:
    report = GenerationReport()
    name = model_prefix(input_path.stem, config)
    try:
        raw = input_path.read_bytes()
    except OSError as exc:
        echo_fn(f"Failed to read JSON file: {exc}", err=True)
        report.skipped.append(str(input_path))
        return report
    _write_module(
        output_dir / f"{input_path.stem}.py",
        lambda: generate_model_module(raw, name, config),
        keep_invalid=keep_invalid,
        report=report,
        label=str(input_path),
        echo_fn=echo_fn,
    )
    return report


def generate_from_har(
    input_path: Path,
    output_dir: Path,
    *,
    config: SynthesisConfig,
    keep_invalid: bool = False,
    echo_fn: Callable[..., None] = typer.echo,
) -> GenerationReport:
    report = GenerationReport()
    archive = read_har_file(input_path)
    entries = archive.log.entries
    if not entries:
        echo_fn("No entries found in HAR file", err=True)
        return report
    echo_fn(f"Found {len(entries)} entries in {input_path}. Starting conversion...")
    for index, entry in enumerate(entries):
        try:
            stem = entry_file_stem(entry.request)
        except ValueError as exc:
            echo_fn(
                f"Skipping entry {index}: Could not parse URL '{entry.request.url}': {exc}",
                err=True,
            )
            report.skipped.append(f"entry {index}")
            continue
        function_name = safe_identifier(stem.lower(), prefix="request_")
        prefix = model_prefix(stem, config)
        logger.debug("entry %d: %s %s -> %s.py", index, entry.request.method, entry.request.url, stem)
        _write_module(
            output_dir / f"{stem}.py",
            lambda: generate_request_module(entry, function_name, prefix, config),
            keep_invalid=keep_invalid,
            report=report,
            label=f"entry {index}",
            echo_fn=echo_fn,
        )
    echo_fn("Conversion complete.")
    return report


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug details."),
) -> None:
    _configure_logging(verbose)


@app.command("generate")
def generate(
    input_path: Path = typer.Argument(..., help="JSON document or HAR capture."),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        help="Directory for generated files (default: <input stem>_req).",
    ),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    keep_invalid: bool = typer.Option(
        False,
        "--keep-invalid",
        help="Write generated code even when it fails validation.",
    ),
) -> None:
    """Generate model modules from a JSON file, or request modules from a HAR file."""
    synthesis = synthesis_config(synthesis_defaults(root=root, config_path=config))
    output = merge_payload(
        {"keep_invalid": True if keep_invalid else None},
        output_defaults(root=root, config_path=config),
    )
    keep = output_keep_invalid(output)
    target = _resolve_output_dir(input_path, output_dir, output_dir_suffix(output))
    target.mkdir(parents=True, exist_ok=True)

    if input_path.suffix.lower() == ".json":
        typer.echo(f"Input is a JSON file: {input_path}. Generating models...")
        report = generate_from_json(input_path, target, config=synthesis, keep_invalid=keep)
    else:
        try:
            report = generate_from_har(input_path, target, config=synthesis, keep_invalid=keep)
        except HartopyError as exc:
            typer.echo(f"Error reading HAR file: {exc}", err=True)
            raise typer.Exit(code=1)
    if report.skipped:
        typer.echo(f"Skipped {len(report.skipped)} item(s).", err=True)
    if not report.written:
        raise typer.Exit(code=1)


@app.command("schema")
def schema(
    input_path: Path = typer.Argument(..., help="JSON document to type."),
    name: Optional[str] = typer.Option(None, "--name", help="Primary model name."),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Print the model module for one JSON document."""
    synthesis = synthesis_config(synthesis_defaults(root=root, config_path=config))
    model_name = safe_identifier(name, synthesis.identifier_prefix) if name else model_prefix(
        input_path.stem, synthesis
    )
    try:
        source = generate_model_module(input_path.read_bytes(), model_name, synthesis)
    except OSError as exc:
        typer.echo(f"Failed to read JSON file: {exc}", err=True)
        raise typer.Exit(code=1)
    except EmissionValidationError as exc:
        typer.echo(f"Generated code failed validation: {exc.diagnostic}", err=True)
        typer.echo(exc.source)
        raise typer.Exit(code=2)
    except HartopyError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    typer.echo(source, nl=False)
