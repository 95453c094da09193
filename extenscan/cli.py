"""CLI — click-based command-line interface."""

from __future__ import annotations

import dataclasses
import json
import os
import sys
from pathlib import Path

import click

import extenscan
from extenscan import config as config_mod
from extenscan.config import FORMATS, load_config
from extenscan.errors import ExtenscanError
from extenscan.gate import FAIL_ON_CHOICES, decide
from extenscan.logging_utils import configure_logging
from extenscan.pipeline import run_scan, search_packages
from extenscan.report import (
    render_cyclonedx,
    render_json,
    render_package_info,
    render_risk_text,
    render_sarif,
    render_text,
    risk_to_dict,
)
from extenscan.scanners.chromium import (
    MSG_PREFIX,
    analyze_manifest,
    localized_message,
    read_manifest,
)
from extenscan.scanners.registry import all_scanners, select_scanners

_RENDERERS = {
    "text": render_text,
    "json": render_json,
    "sarif": render_sarif,
    "cyclonedx": render_cyclonedx,
}


def _verbose_option(f):
    return click.option(
        "-v", "--verbose", "verbosity", count=True,
        help="Increase log verbosity (-v info, -vv debug).",
    )(f)


@click.group()
@click.version_option(extenscan.__version__, prog_name="extenscan")
def main() -> None:
    """extenscan — inventory and risk-check installed extensions and packages."""


# ───────────────────────────────────────────────────────────────────
# scan
# ───────────────────────────────────────────────────────────────────

@main.command()
@click.option("--source", "sources", multiple=True,
              help="Source to scan (repeatable). Default: every built-in source.")
@click.option("--format", "fmt", default=None,
              type=click.Choice(list(FORMATS), case_sensitive=False),
              help="Output format (default: text).")
@click.option("--no-vuln-check", is_flag=True, default=False,
              help="Skip the OSV vulnerability lookup.")
@click.option("--no-outdated-check", is_flag=True, default=False,
              help="Skip the latest-version lookup.")
@click.option("--output", "output", default=None, type=click.Path(dir_okay=False),
              help="Write the report to a file instead of stdout.")
@click.option("--fail-on", "fail_on", default=None,
              type=click.Choice(FAIL_ON_CHOICES, case_sensitive=False),
              help="Exit non-zero when a vulnerability at or above this severity is found.")
@click.option("--no-parallel", is_flag=True, default=False,
              help="Run sources one after another.")
@click.option("--config", "config_path", default=None,
              type=click.Path(exists=True, dir_okay=False),
              help="Load only this config file.")
@click.option("--no-color", is_flag=True, default=False,
              help="Disable ANSI colours in text output.")
@_verbose_option
def scan(
    sources: tuple[str, ...],
    fmt: str | None,
    no_vuln_check: bool,
    no_outdated_check: bool,
    output: str | None,
    fail_on: str | None,
    no_parallel: bool,
    config_path: str | None,
    no_color: bool,
    verbosity: int,
) -> None:
    """Scan installed extensions and packages."""
    configure_logging(verbosity)

    # --- load config (.extenscan.yml / ~/.extenscan/config.yml) ---
    cfg = load_config(os.getcwd(), config_path)

    # CLI flags override config values
    effective_fail_on = fail_on or cfg.scan.fail_on
    if effective_fail_on is not None:
        effective_fail_on = effective_fail_on.lower()
        if effective_fail_on not in FAIL_ON_CHOICES:
            raise ExtenscanError(
                f"Invalid fail_on '{effective_fail_on}' in config. "
                f"Choose from: {', '.join(FAIL_ON_CHOICES)}"
            )
    effective_fmt = (fmt or cfg.scan.format).lower()
    scan_cfg = dataclasses.replace(
        cfg.scan,
        format=effective_fmt,
        fail_on=effective_fail_on,
        skip_vuln_check=no_vuln_check or cfg.scan.skip_vuln_check,
        check_outdated=cfg.scan.check_outdated and not no_outdated_check,
        sources=list(sources) or cfg.scan.sources,
        parallel=cfg.scan.parallel and not no_parallel,
    )

    # --- inventory + lookups ---
    scanners = select_scanners(scan_cfg.sources)
    result = run_scan(scanners, scan_cfg, cfg.ignore)

    # --- output ---
    if effective_fmt == "text":
        rendered = render_text(result, color=not no_color and output is None)
    else:
        rendered = _RENDERERS[effective_fmt](result)

    if output:
        try:
            Path(output).write_text(rendered + "\n", encoding="utf-8")
        except OSError as exc:
            raise ExtenscanError(f"Cannot write report to {output}: {exc}") from exc
        click.echo(f"Report written to {output}", err=True)
    else:
        click.echo(rendered)

    # --- gate decision ---
    sys.exit(decide(result, effective_fail_on))


# ───────────────────────────────────────────────────────────────────
# analyze
# ───────────────────────────────────────────────────────────────────

@main.command()
@click.argument("manifest", type=click.Path(exists=True))
@click.option("--format", "fmt", default="text",
              type=click.Choice(["text", "json"], case_sensitive=False),
              help="Output format.")
@click.option("--no-color", is_flag=True, default=False,
              help="Disable ANSI colours in text output.")
@_verbose_option
def analyze(manifest: str, fmt: str, no_color: bool, verbosity: int) -> None:
    """Risk-analyze one Chromium manifest.json or unpacked extension directory."""
    configure_logging(verbosity)

    path = Path(manifest)
    try:
        data = read_manifest(path)
    except (OSError, ValueError) as exc:
        raise ExtenscanError(f"Cannot read manifest {manifest}: {exc}") from exc

    ext_dir = path if path.is_dir() else path.parent
    name = data.get("name") if isinstance(data.get("name"), str) else None
    if name and name.startswith(MSG_PREFIX):
        name = localized_message(ext_dir, name)
    name = name or ext_dir.name

    report = analyze_manifest(data)

    if fmt.lower() == "json":
        doc = {"name": name, "version": data.get("version"), **risk_to_dict(report)}
        click.echo(json.dumps(doc, indent=2, ensure_ascii=False))
    else:
        click.echo(render_risk_text(name, report, color=not no_color))


# ───────────────────────────────────────────────────────────────────
# info
# ───────────────────────────────────────────────────────────────────

@main.command()
@click.argument("package")
@click.option("--no-vuln-check", is_flag=True, default=False,
              help="Skip the OSV vulnerability lookup.")
@click.option("--no-outdated-check", is_flag=True, default=False,
              help="Skip the latest-version lookup.")
@click.option("--no-color", is_flag=True, default=False,
              help="Disable ANSI colours in text output.")
@_verbose_option
def info(
    package: str,
    no_vuln_check: bool,
    no_outdated_check: bool,
    no_color: bool,
    verbosity: int,
) -> None:
    """Show details for installed packages whose id or name contains PACKAGE."""
    configure_logging(verbosity)

    cfg = load_config(os.getcwd())
    scan_cfg = dataclasses.replace(
        cfg.scan,
        skip_vuln_check=no_vuln_check or cfg.scan.skip_vuln_check,
        check_outdated=cfg.scan.check_outdated and not no_outdated_check,
    )

    click.echo(f"Searching for package: {package}")
    click.echo("")

    result = search_packages(all_scanners(), package, scan_cfg)
    if not result.packages:
        click.echo(f"No package found matching: {package}")
        click.echo("")
        click.echo("Try:")
        click.echo("  extenscan scan              # List all packages")
        click.echo("  extenscan info <name>       # Search by name")
        return

    for pkg in result.packages:
        vulns = [v for v in result.vulnerabilities if v.package_id == pkg.id]
        update = next((o for o in result.outdated if o.package_id == pkg.id), None)
        click.echo(render_package_info(pkg, vulns, update, color=not no_color))
        click.echo("")


# ───────────────────────────────────────────────────────────────────
# sources
# ───────────────────────────────────────────────────────────────────

@main.command()
def sources() -> None:
    """List available sources and whether they run on this platform."""
    click.echo(f"{'Name':<12} {'Source':<12} {'Supported'}")
    click.echo("-" * 36)
    for s in all_scanners():
        status = "yes" if s.is_supported() else "no"
        click.echo(f"{s.name:<12} {s.source.display_name:<12} {status}")


# ───────────────────────────────────────────────────────────────────
# config
# ───────────────────────────────────────────────────────────────────

@main.command("config")
@click.option("--init", "init_flag", is_flag=True, default=False,
              help="Create the user config file with default values.")
@click.option("--path", "path_flag", is_flag=True, default=False,
              help="Print the user config file path.")
def config_cmd(init_flag: bool, path_flag: bool) -> None:
    """Show, locate or create the user configuration file."""
    user_path = config_mod.USER_CONFIG_PATH

    if path_flag:
        click.echo(str(user_path))
        return

    if init_flag:
        if not config_mod.write_default_config(user_path):
            click.echo(f"Config file already exists at: {user_path}")
            return
        click.echo(f"Created config file at: {user_path}")
        click.echo("")
        click.echo(config_mod.default_config_text().rstrip())
        return

    if user_path.is_file():
        try:
            click.echo(user_path.read_text(encoding="utf-8").rstrip())
        except OSError as exc:
            raise ExtenscanError(f"Cannot read {user_path}: {exc}") from exc
    else:
        click.echo("No config file found. Run 'extenscan config --init' to create one.")
        click.echo(f"Config path: {user_path}")


if __name__ == "__main__":
    main()
