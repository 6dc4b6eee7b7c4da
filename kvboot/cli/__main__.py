from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional

import typer

from ..core.environment import Environment
from ..core.errors import KvBootError

app = typer.Typer(help="kvboot CLI")

FORMATS = {
    "properties": "text/x-java-properties",
    "json": "application/json",
    "urlencoded": "application/x-www-form-urlencoded",
}


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


def _env(name: str, uris: Optional[List[str]] = None) -> Environment:
    # URIs given on the command line replace the seeds of kvboot.yaml
    e = Environment(name, use_config_file=not uris)
    if uris:
        e.register_sources(*uris)
    return e


def _parse_vars(items: List[str]) -> Dict[str, str]:
    variables: Dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got '{item}'", param_hint="--var")
        variables[key] = value
    return variables


def _fail(e: KvBootError) -> None:
    typer.echo(f"Error: {e}", err=True)
    raise typer.Exit(code=1)


@app.command()
def resolve(
    uris: Optional[List[str]] = typer.Argument(None, help="Seed resource URIs"),
    env: str = typer.Option("development", "--env"),
    fmt: str = typer.Option("properties", "--format", help="properties, json or urlencoded"),
    show_sensitive: bool = typer.Option(False, "--show-sensitive"),
    var: List[str] = typer.Option([], "--var", help="Variable as key=value"),
):
    if fmt not in FORMATS:
        raise typer.BadParameter(f"unknown format '{fmt}'", param_hint="--format")
    e = _env(env, uris)
    e.add_variables(_parse_vars(var))
    try:
        cfg = e.get_config()
        typer.echo(cfg.format(FORMATS[fmt], redact=not show_sensitive), nl=False)
    except KvBootError as err:
        _fail(err)


@app.command()
def get(key: str, env: str = typer.Option("development", "--env")):
    e = _env(env)
    try:
        cfg = e.get_config()
    except KvBootError as err:
        _fail(err)
    kv = cfg.key_value(key)
    value = None
    if kv is not None:
        value = kv.redact(cfg.redacted_message).value
    prov = cfg.provenance(key)
    typer.echo(json.dumps({"key": key, "value": value, "source": prov.source_uri if prov else None}, indent=2))


@app.command()
def describe(key: str, env: str = typer.Option("development", "--env")):
    e = _env(env)
    try:
        cfg = e.get_config()
    except KvBootError as err:
        _fail(err)
    try:
        typer.echo(cfg.describe(key))
    except KeyError:
        typer.echo(f"Key not found: {key}", err=True)
        raise typer.Exit(code=1)


@app.command()
def sources(env: str = typer.Option("development", "--env")):
    e = _env(env)
    typer.echo(json.dumps([
        {
            "name": seed.name,
            "description": seed.describe(),
            "flags": sorted(f.value for f in seed.load_flags),
        }
        for seed in e.seeds
    ], indent=2))


if __name__ == "__main__":
    app()
