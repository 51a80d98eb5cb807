import logging
import os

import click
from rich.logging import RichHandler

from .constants import DEFAULT_CONFIG_FILE, DEFAULT_LOG_FILE, DEFAULT_ZSTD_WINDOW_LOG
from .core import Installer, InstallerError
from .services.config_loader import ConfigLoader


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


def _attach_log_file(logger: logging.Logger, log_file: str, verbose: bool):
    try:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        file_handler = logging.FileHandler(log_file)
    except OSError as exc:
        raise click.ClickException(f"Cannot open log file {log_file}: {exc}") from exc

    file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    logger.addHandler(file_handler)


@click.command()
@click.option(
    "--prompt",
    "prompt_mode",
    is_flag=True,
    default=False,
    help="Ask before running each module.",
)
@click.option(
    "--only",
    is_flag=False,
    flag_value="",
    default=None,
    metavar="[MODULE]",
    help="Run a single module. Without a name, list the available modules.",
)
@click.option("--release", required=False, help="DataRobot version to install (e.g. 10.1.0).")
@click.option(
    "--parent-dir",
    required=False,
    type=click.Path(file_okay=False),
    help="Parent directory for the installation (default: /opt/datarobot).",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option(
    "--strict",
    "strict_dependencies",
    is_flag=True,
    default=None,
    help="Fail when a required host tool is missing instead of only logging it.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Path to the installation log file")
def main(prompt_mode, only, release, parent_dir, config, strict_dependencies, verbose, log_file):
    """Prepare a DataRobot installation: tools, binaries, images, registry and Helm values."""
    logger = logging.getLogger("dr_preinstall")

    try:
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = ConfigLoader().load(resolved_config)
    except InstallerError as exc:
        raise click.ClickException(str(exc)) from exc

    release = _resolve_option(release, config_values, "version")
    parent_dir = _resolve_option(parent_dir, config_values, "parent_dir")
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file", default=DEFAULT_LOG_FILE)
    strict_dependencies = bool(
        _resolve_option(strict_dependencies, config_values, "strict_dependencies", default=False)
    )
    zstd_window_log = int(
        _resolve_option(None, config_values, "zstd_window_log", default=DEFAULT_ZSTD_WINDOW_LOG)
    )
    isolate_push_failures = _resolve_option(None, config_values, "isolate_push_failures")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    _attach_log_file(logger, log_file, verbose)

    installer = Installer(
        release_version=str(release) if release is not None else None,
        parent_dir=parent_dir,
        strict_dependencies=strict_dependencies,
        binary_urls=config_values.get("binary_urls"),
        extract_subdir=config_values.get("extract_subdir"),
        zstd_window_log=zstd_window_log,
        isolate_push_failures=None if isolate_push_failures is None else bool(isolate_push_failures),
    )

    raise SystemExit(installer.run(prompt_mode=prompt_mode, only=only))


if __name__ == "__main__":
    main()
