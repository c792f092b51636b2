"""Shared helpers for CLI commands."""

import logging
from typing import Any

import typer

from taskdeck.application.config import AppConfig, resolve_config
from taskdeck.domain.errors import CollectionError, InvalidActionError, TaskdeckError


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    """Resolve config with CLI overrides; None values fall through to file/env."""
    config = resolve_config(overrides)
    _apply_verbosity(config.verbose)
    return config


def _apply_verbosity(verbose: int) -> None:
    if verbose <= 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG
    logging.getLogger().setLevel(level)


def exit_on_error(e: TaskdeckError) -> None:
    """Print a taskdeck error and exit with its code (2 for bad input, 1 otherwise)."""
    typer.secho(f"Error: {e}", fg="red", err=True)
    if isinstance(e, CollectionError):
        typer.secho(
            "Set TASKDECK_COLLECTION_PATH or pass --collection.", fg="yellow", err=True
        )
    raise typer.Exit(2 if isinstance(e, InvalidActionError) else 1)
