"""CLI for the prompt-to-video studio.

Usage:
    python -m videogen.runner status
    python -m videogen.runner generate "a cat skateboarding"
    python -m videogen.runner generate "a cat skateboarding" --select-key --output out/cat.mp4
"""

from __future__ import annotations

import asyncio
import logging
import sys
from functools import partial
from pathlib import Path

import click
from rich.console import Console

from videogen.auth import get_api_key, get_key_env, load_config
from videogen.client import ProviderError, veo_client_factory
from videogen.controller import StudioController
from videogen.generator import POLL_INTERVAL, generate_video
from videogen.key_gate import ConsoleKeyHost, KeyGate
from videogen.models import SessionState

console = Console()

_DEFAULT_CONFIG = "config.yaml"


def _setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quiet down httpx unless debugging
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def _build_controller(config: dict, select_key: bool, on_change=None) -> StudioController:
    key_env = get_key_env(config)
    host = ConsoleKeyHost(key_env) if select_key else None
    generate = partial(
        generate_video,
        provider_factory=veo_client_factory(config),
        key_env=key_env,
        poll_interval=float(config.get("polling", {}).get("interval_seconds", POLL_INTERVAL)),
    )
    return StudioController(KeyGate(host, key_env), generate, on_change=on_change)


def _resolve_output(config: dict, output: str) -> Path:
    """Place relative output paths under the configured output directory."""
    path = Path(output)
    out_dir = config.get("output", {}).get("dir")
    if out_dir and not path.is_absolute():
        path = Path(out_dir) / path
    return path


async def _check_status(config: dict) -> SessionState:
    controller = _build_controller(config, select_key=False)
    await controller.startup()
    return controller.state


async def _generate(config: dict, prompt: str, select_key: bool, output: str | None) -> int:
    spinner = console.status("[bold cyan]Starting...[/bold cyan]")

    def _render(state: SessionState) -> None:
        if state.progress_message:
            spinner.update(f"[bold cyan]{state.progress_message}[/bold cyan]")

    controller = _build_controller(config, select_key, on_change=_render)
    await controller.startup()

    if not controller.state.key_configured and select_key:
        console.print("[yellow]API key not selected. Enter your paid Google Cloud project key.[/yellow]")
        await controller.select_key()

    with spinner:
        result = await controller.submit(prompt)

    if result is None or not result.is_success:
        console.print(f"[red]Error: {controller.state.error}[/red]")
        if controller.needs_key_reselection:
            console.print("[yellow]Run again with --select-key to choose your API key.[/yellow]")
        return 1

    console.print("[bold green]Your video is ready:[/bold green]")
    console.print(result.video_url, soft_wrap=True, highlight=False, markup=False)

    if output:
        key_env = get_key_env(config)
        async with veo_client_factory(config)(get_api_key(key_env)) as client:
            path = await client.download_file(result.video_url, output)
        console.print(f"[green]Saved -> {path}[/green]")
    return 0


@click.group()
@click.option("--config", "-c", default=_DEFAULT_CONFIG, help="Path to config.yaml")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config: str, verbose: bool) -> None:
    """Generate videos from text prompts with Veo."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    _setup_logging(verbose)


@cli.command("status")
@click.pass_context
def cmd_status(ctx: click.Context) -> None:
    """Show whether an API key is configured."""
    try:
        config = load_config(ctx.obj["config"])
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    state = asyncio.run(_check_status(config))
    if state.error:
        console.print(f"[red]Error: {state.error}[/red]")
        sys.exit(1)
    if state.key_configured:
        console.print("[green]API key configured.[/green]")
    else:
        console.print(
            f"[yellow]API key not selected. Set {get_key_env(config)} or use "
            "'generate --select-key'.[/yellow]"
        )
        console.print("Billing information: https://ai.google.dev/gemini-api/docs/billing")


@cli.command("generate")
@click.argument("prompt")
@click.option("--select-key", is_flag=True, help="Prompt for an API key if none is configured")
@click.option("--output", "-o", default=None, help="Download the video to this path")
@click.pass_context
def cmd_generate(ctx: click.Context, prompt: str, select_key: bool, output: str | None) -> None:
    """Generate a video from PROMPT."""
    try:
        config = load_config(ctx.obj["config"])
    except FileNotFoundError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)
    except ValueError as exc:
        console.print(f"[red]Configuration error: {exc}[/red]")
        sys.exit(1)

    if output:
        output = str(_resolve_output(config, output))

    try:
        code = asyncio.run(_generate(config, prompt, select_key, output))
    except ProviderError as exc:
        console.print(f"[red]Download failed: {exc}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted. The provider job was not cancelled.[/yellow]")
        sys.exit(130)
    sys.exit(code)


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
