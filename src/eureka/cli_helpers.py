"""Shared helpers for eureka CLI commands."""

import logging
import sys
from typing import NoReturn

import click
from rich.console import Console
from rich.markup import escape

from eureka.config_manager import ConfigManager
from eureka.deployment_pipeline import DeploymentPipeline
from eureka.errors import EurekaError
from eureka.log_sanitizer import LogSanitizer
from eureka.services import build_services

logger = logging.getLogger(__name__)

console = Console()


def load_pipeline(ctx: click.Context) -> DeploymentPipeline:
    """Build the pipeline for the current invocation.

    A pipeline already placed in ``ctx.obj`` is reused as is.

    Raises:
        ConfigError: If the config cannot be loaded
    """
    obj = ctx.find_root().ensure_object(dict)
    if obj.get("pipeline") is not None:
        return obj["pipeline"]

    config = ConfigManager.load_config(obj.get("config_path"))
    if obj.get("profile"):
        config.profile = obj["profile"]

    pipeline = DeploymentPipeline(build_services(config))
    obj["pipeline"] = pipeline
    return pipeline


def fail(error: EurekaError) -> NoReturn:
    """Report an error and exit with its exit code."""
    console.print(f"[red]Error:[/red] {escape(LogSanitizer.sanitize(str(error)))}")
    logger.debug("Command failed", exc_info=error)
    sys.exit(error.exit_code)


__all__ = ["console", "fail", "load_pipeline"]
