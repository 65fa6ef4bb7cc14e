import asyncio
import json

import click

from . import __version__
from .config import get_settings
from .config.settings import LlmSettings
from .orchestrator.service import LlmService
from .schemas.llm import LlmRequest
from .schemas.translation import TranslationRequest
from .telemetry.logger import setup_logging
from .translation.service import TranslationService


def get_version():
    return __version__


def load_settings(config_path=None) -> LlmSettings:
    if config_path:
        return LlmSettings.from_file(config_path)
    return get_settings()


def build_service(settings: LlmSettings) -> LlmService:
    return LlmService(settings)


def _run(coro_factory, settings):
    async def main():
        async with build_service(settings) as service:
            return await coro_factory(service)

    return asyncio.run(main())


@click.group()
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--log-level", default=None)
@click.pass_context
def cli(ctx, config_path, log_level):
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["log_level"] = log_level


def _settings(ctx) -> LlmSettings:
    settings = load_settings(ctx.obj.get("config_path"))
    setup_logging(level=ctx.obj.get("log_level") or settings.log_level, format=settings.log_format)
    return settings


@cli.command()
@click.option("--format", default="text", type=click.Choice(["text", "json"]))
def version(format):
    if format == "json":
        click.echo(json.dumps({"version": get_version()}))
    else:
        click.echo(f"v{get_version()}")


@cli.command()
@click.pass_context
def backends(ctx):
    """List configured backends in selection order."""
    settings = _settings(ctx)
    for config in sorted(settings.backends, key=lambda b: (b.priority, b.name.casefold())):
        state = "enabled" if config.enabled else "disabled"
        click.echo(f"{config.name}\t{config.type.value}\tpriority={config.priority}\t{state}")


@cli.command()
@click.pass_context
def health(ctx):
    """Probe every backend."""
    settings = _settings(ctx)
    results = _run(lambda service: service.test_all_backends(), settings)

    unhealthy = 0
    for name, status in results.items():
        if status.is_healthy:
            click.echo(f"{name}: healthy")
        else:
            unhealthy += 1
            detail = f" ({status.last_error})" if status.last_error else ""
            click.echo(f"{name}: unhealthy{detail}")
    if unhealthy:
        ctx.exit(1)


@cli.command()
@click.argument("prompt")
@click.option("--backend", default=None, help="Route to this backend only")
@click.option("--system", "system_message", default=None)
@click.option("--temperature", type=float, default=None)
@click.option("--max-tokens", type=int, default=None)
@click.option("--format", default="text", type=click.Choice(["text", "json"]))
@click.pass_context
def complete(ctx, prompt, backend, system_message, temperature, max_tokens, format):
    """Send a single-shot completion."""
    settings = _settings(ctx)
    request = LlmRequest(
        prompt=prompt,
        system_message=system_message,
        temperature=temperature,
        max_tokens=max_tokens,
        preferred_backend=backend,
    )
    response = _run(lambda service: service.complete(request), settings)

    if format == "json":
        click.echo(response.model_dump_json())
    elif response.success:
        click.echo(response.content)
    else:
        click.echo(f"Error: {response.error_message}", err=True)
    if not response.success:
        ctx.exit(1)


@cli.command()
@click.argument("text")
@click.option("--target", "target_language", required=True)
@click.option("--source", "source_language", default="auto")
@click.option("--context", default=None)
@click.pass_context
def translate(ctx, text, target_language, source_language, context):
    """Translate TEXT."""
    settings = _settings(ctx)
    request = TranslationRequest(
        text=text,
        source_language=source_language,
        target_language=target_language,
        context=context,
    )
    response = _run(lambda service: TranslationService(service).translate(request), settings)

    if response.success:
        click.echo(response.translated_text)
    else:
        click.echo(f"Error: {response.error_message}", err=True)
        ctx.exit(1)


if __name__ == "__main__":
    cli()
