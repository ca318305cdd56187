"""CLI entry point for LLM Nexus."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import anthropic
import httpx
import openai
import typer
from google.genai import errors as genai_errors

from .config import ConfigError, LLMSettings
from .errors import ArgumentError, ValidationError
from .factory import LLMServiceFactory
from .models import FileContent, LLMRequest, LLMResponse, MediaType, guess_mime_type
from .providers.base import ProviderError

app = typer.Typer(help="Send prompts to any configured LLM provider.")


def _level_for(name: str) -> int:
    level = getattr(logging, name.upper(), logging.INFO)
    if isinstance(level, int):
        return level
    return logging.INFO


def _load_settings(config_file: Optional[Path]) -> LLMSettings:
    try:
        if config_file is not None:
            try:
                data = json.loads(config_file.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                raise ConfigError(f"Cannot read settings file {config_file}: {exc}") from exc
            return LLMSettings.from_mapping(data)
        return LLMSettings.from_env()
    except ConfigError as exc:
        typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc


def _media_type_for(path: Path) -> MediaType:
    family = guess_mime_type(path).split("/", 1)[0]
    if family == "image":
        return MediaType.IMAGE
    if family == "audio":
        return MediaType.AUDIO
    if family == "video":
        return MediaType.VIDEO
    return MediaType.DOCUMENT


def _print_response(response: LLMResponse) -> None:
    typer.echo(response.content)
    typer.secho(
        f"[{response.provider} {response.model}] finish={response.finish_reason or '-'} "
        f"tokens={response.usage.prompt_tokens}+{response.usage.completion_tokens}"
        f"={response.usage.total_tokens}",
        fg=typer.colors.CYAN,
        err=True,
    )


@app.command()
def providers(
    config_file: Optional[Path] = typer.Option(None, "--config", help="JSON settings file."),
) -> None:
    """List configured provider names."""
    settings = _load_settings(config_file)
    factory = LLMServiceFactory(settings)
    default = factory.default_provider_name()
    for name in factory.list_configured_providers():
        marker = " (default)" if name == default else ""
        typer.echo(f"{name}: {settings.providers[name].provider.value} {settings.providers[name].model}{marker}")


@app.command()
def generate(
    prompt: str = typer.Argument(..., help="Prompt text."),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Configured provider name."),
    system: Optional[str] = typer.Option(None, "--system", help="System message."),
    max_tokens: Optional[int] = typer.Option(None, "--max-tokens", help="Output token ceiling."),
    temperature: Optional[float] = typer.Option(None, "--temperature", help="Sampling temperature (0-2)."),
    files: Optional[List[Path]] = typer.Option(None, "--file", "-f", help="Attach a local file."),
    media_type: Optional[MediaType] = typer.Option(
        None,
        "--media-type",
        case_sensitive=False,
        help="Media type for every attached file; inferred from the extension when omitted.",
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", help="JSON settings file."),
) -> None:
    """Send one prompt and print the normalized response."""
    settings = _load_settings(config_file)
    logging.basicConfig(level=_level_for(settings.log_level))

    try:
        attachments = [FileContent.from_path(path, media_type or _media_type_for(path)) for path in files or []]
    except FileNotFoundError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    request = LLMRequest(
        prompt=prompt,
        system_message=system,
        max_tokens=max_tokens,
        temperature=temperature,
        files=attachments,
    )

    async def _runner() -> LLMResponse:
        factory = LLMServiceFactory(settings)
        try:
            service = factory.create_service(provider)
            return await service.generate(request)
        finally:
            await factory.aclose()

    try:
        response = asyncio.run(_runner())
    except (ArgumentError, ValidationError) as exc:
        typer.secho(f"Invalid request: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    except ProviderError as exc:
        typer.secho(f"Provider error [{exc.code}]: {exc.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    except (httpx.HTTPError, openai.OpenAIError, anthropic.AnthropicError, genai_errors.APIError) as exc:
        typer.secho(f"Generation failed: {type(exc).__name__}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    _print_response(response)


def main() -> None:
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    main()
