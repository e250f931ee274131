# -*- coding: utf-8 -*-
"""CLI commands for headless PCB analysis."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import typer

from electrorescue.config import DEFAULT_MODELS, ConfigError, get_api_key, load_config
from electrorescue.constants import ANALYSIS_PROVIDERS
from electrorescue.integrations.gemini_client import GeminiClient
from electrorescue.integrations.openrouter_client import OpenRouterClient
from electrorescue.pipeline.analyzer import AnalysisError, Analyzer
from electrorescue.utils.image_utils import ImageFormatError, file_to_data_url, parse_data_url

app = typer.Typer(help="Analyze PCB photos from the command line")
logger = logging.getLogger(__name__)


def _load_settings(config_path: Path | None) -> dict:
    try:
        return load_config(config_path)
    except ConfigError as e:
        typer.echo(f"Invalid settings: {e}", err=True)
        raise typer.Exit(2)


def _openrouter_model(settings: dict) -> str:
    analysis = settings.get("analysis", {})
    if analysis.get("provider") == "openrouter" and analysis.get("model"):
        return str(analysis["model"])
    return DEFAULT_MODELS["openrouter"]


@app.command()
def analyze(
    image_path: Path = typer.Argument(..., help="Path to the PCB photo"),
    provider: str = typer.Option(None, help="Analysis provider: gemini, openrouter"),
    model: str = typer.Option(None, help="Model name (default from settings)"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result as JSON"),
    config: Path = typer.Option(None, help="Path to settings.json"),
    verbose: bool = typer.Option(False, help="Verbose output"),
) -> None:
    """Analyze a single PCB photo and print the report."""
    if verbose:
        logging.basicConfig(level=logging.INFO)

    settings = _load_settings(config)
    if provider:
        if provider not in ANALYSIS_PROVIDERS:
            typer.echo(f"Unknown provider: {provider}", err=True)
            raise typer.Exit(2)
        settings["analysis"]["provider"] = provider
        if not model:
            settings["analysis"]["model"] = ""
    if model:
        settings["analysis"]["model"] = model

    try:
        data_url = file_to_data_url(image_path, max_file_mb=settings["uploader"]["max_file_mb"])
        payload = parse_data_url(data_url)
    except ImageFormatError as e:
        typer.echo(f"Image rejected: {e}", err=True)
        raise typer.Exit(1)

    if not as_json:
        typer.echo(f"Analyzing {image_path.name} with {settings['analysis']['provider']}...")
    try:
        result = Analyzer().analyze(payload, settings)
    except AnalysisError as e:
        typer.echo(f"Analysis failed: {e}", err=True)
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    typer.echo("")
    typer.echo(result.markdown_report)
    typer.echo("\nComponent breakdown:")
    if not result.component_stats:
        typer.echo("  (none)")
    for stat in result.component_stats:
        typer.echo(f"  {stat.category}: {stat.count}")
    typer.echo(f"\nTotal: {result.total_components} components ({result.model_used})")


@app.command()
def check_keys(
    remote: bool = typer.Option(False, help="Also verify keys against the provider APIs"),
    config: Path = typer.Option(None, help="Path to settings.json"),
) -> None:
    """Show which provider keys are configured and valid."""
    settings = _load_settings(config)
    clients = {"gemini": GeminiClient(), "openrouter": OpenRouterClient()}
    for name, client in clients.items():
        key = get_api_key(settings, name)
        if not key:
            typer.echo(f"{name}: missing")
            continue
        ok = client.validate_key(key, check_remote=remote)
        typer.echo(f"{name}: {'ok' if ok else 'invalid'}")
        if remote and ok and isinstance(client, OpenRouterClient):
            model_id = _openrouter_model(settings)
            listed = client.check_model_availability([model_id], api_key=key)[model_id]
            typer.echo(f"  {model_id}: {'available' if listed else 'not listed'}")


if __name__ == "__main__":
    app()
