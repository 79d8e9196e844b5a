from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from applypatch import apply_patch
from applypatch.errors import DiffError
from applypatch.logger import configure_logging, logger
from applypatch.report import render_error, render_summary
from applypatch.settings import (
    Config,
    LogLevel,
    Mode,
    config_path,
    load_config,
    save_config,
)

USAGE = "Usage: apply_patch 'PATCH'\n       echo 'PATCH' | apply_patch"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def run_patch_command(text: str, root: Path, cfg: Config) -> int:
    """Apply text under root according to cfg.mode and print the outcome."""
    if cfg.mode == Mode.refuse:
        click.echo(cfg.effective_refuse_message)
        return EXIT_OK

    try:
        result = apply_patch(text, root)
    except DiffError as e:
        logger.info("patch failed", error=type(e).__name__, path=e.path)
        click.echo(render_error(e), err=True)
        return EXIT_FAILURE

    click.echo(render_summary(result))
    if cfg.mode == Mode.warn:
        click.echo(cfg.effective_warn_message)
    return EXIT_OK


def run_config_command(
    *,
    show: bool,
    mode: Optional[Mode],
    refuse_message: Optional[str],
    clear_refuse_message: bool,
    warn_message: Optional[str],
    clear_warn_message: bool,
) -> int:
    path = config_path()
    if path is None:
        click.echo(
            "Error: could not determine config path (HOME/XDG_CONFIG_HOME not set).",
            err=True,
        )
        return EXIT_FAILURE

    cfg = load_config(path)
    updates = {}
    if mode is not None:
        updates["mode"] = mode
    if clear_refuse_message:
        updates["refuse_message"] = None
    if refuse_message is not None:
        updates["refuse_message"] = refuse_message
    if clear_warn_message:
        updates["warn_message"] = None
    if warn_message is not None:
        updates["warn_message"] = warn_message

    if updates:
        cfg = cfg.model_copy(update=updates)
        try:
            save_config(path, cfg)
        except OSError as e:
            click.echo(f"Error: failed to write config: {e}", err=True)
            return EXIT_FAILURE
        logger.debug("config saved", path=str(path), fields=sorted(updates))

    if show:
        click.echo(f"Config file: {path}")
        click.echo(f"mode: {cfg.mode.value}")
        click.echo(
            "refuse_message: "
            + ("custom" if cfg.refuse_message is not None else "default")
        )
        click.echo(
            "warn_message: " + ("custom" if cfg.warn_message is not None else "default")
        )
    else:
        click.echo(f"Updated config: {path}")
    return EXIT_OK


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("patch", nargs=-1)
@click.option("--show-config", is_flag=True, help="Print the config file location and values.")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in Mode]),
    help="Persist the patch mode.",
)
@click.option("--apply", "mode_alias", flag_value=Mode.apply.value, help="Alias for --mode apply.")
@click.option("--refuse", "mode_alias", flag_value=Mode.refuse.value, help="Alias for --mode refuse.")
@click.option("--warn", "mode_alias", flag_value=Mode.warn.value, help="Alias for --mode warn.")
@click.option("--set-refuse-message", metavar="TEXT", help="Persist a custom refuse banner.")
@click.option("--clear-refuse-message", is_flag=True, help="Restore the default refuse banner.")
@click.option("--set-warn-message", metavar="TEXT", help="Persist a custom warn banner.")
@click.option("--clear-warn-message", is_flag=True, help="Restore the default warn banner.")
@click.option(
    "--log-level",
    type=click.Choice([lvl.value for lvl in LogLevel]),
    default=LogLevel.warning.value,
    show_default=True,
    help="Logging threshold for diagnostics written to stderr.",
)
@click.pass_context
def main(
    ctx: click.Context,
    patch: Tuple[str, ...],
    show_config: bool,
    mode: Optional[str],
    mode_alias: Optional[str],
    set_refuse_message: Optional[str],
    clear_refuse_message: bool,
    set_warn_message: Optional[str],
    clear_warn_message: bool,
    log_level: str,
) -> None:
    """Apply a *** Begin Patch script from PATCH or stdin to the current directory.

    Config flags persist in $XDG_CONFIG_HOME/.apply_patch/config.json (or
    ~/.apply_patch/config.json); $APPLY_PATCH_CONFIG overrides the location.
    """
    configure_logging(log_level)

    selected_mode = mode_alias or mode
    has_config_flags = (
        show_config
        or selected_mode is not None
        or set_refuse_message is not None
        or clear_refuse_message
        or set_warn_message is not None
        or clear_warn_message
    )
    if has_config_flags:
        if patch:
            click.echo(
                "Error: configuration flags cannot be combined with a PATCH argument.",
                err=True,
            )
            ctx.exit(EXIT_USAGE)
        ctx.exit(
            run_config_command(
                show=show_config,
                mode=Mode(selected_mode) if selected_mode is not None else None,
                refuse_message=set_refuse_message,
                clear_refuse_message=clear_refuse_message,
                warn_message=set_warn_message,
                clear_warn_message=clear_warn_message,
            )
        )

    if len(patch) > 1:
        click.echo("Error: apply_patch accepts exactly one argument.", err=True)
        ctx.exit(EXIT_USAGE)

    if patch:
        text = patch[0]
    else:
        try:
            text = sys.stdin.read()
        except (OSError, UnicodeDecodeError) as e:
            click.echo(f"Error: Failed to read PATCH from stdin.\n{e}", err=True)
            ctx.exit(EXIT_FAILURE)
        if not text:
            click.echo(USAGE, err=True)
            ctx.exit(EXIT_USAGE)

    path = config_path()
    cfg = load_config(path) if path is not None else Config()
    ctx.exit(run_patch_command(text, Path.cwd(), cfg))


if __name__ == "__main__":
    main()
