import logging
import os
from typing import Dict, Optional

import requests
from packaging import version
from rich.console import Console

from .constants import BINARY_NAMES, DEFAULT_PARENT_DIR, DEFAULT_ZSTD_WINDOW_LOG, DIR_MODE
from .errors import InstallerError
from .errors_catalog import actionable_error
from .models import InstallContext
from .services.archive import ArchiveService
from .services.command_runner import CommandRunner
from .services.container_engine import ContainerEngineService
from .services.download import DownloadService
from .services.filesystem import FileSystemService
from .services.helm_values import HelmValuesService
from .services.host_probe import HostProbeService
from .services.prompts import PromptService
from .services.registry import RegistryPublisherService

console = Console()
logger = logging.getLogger("dr_preinstall")


class Installer:
    MODULES = (
        "check_dependencies",
        "install_utilities",
        "select_container_runtime",
        "setup_directories",
        "initialize_binaries",
        "download_binaries",
        "extract_binaries",
        "extract_zstd_files",
        "load_tar_to_container_runtime",
        "push_images_to_registry",
        "create_helm_values",
    )

    def __init__(
        self,
        release_version: Optional[str] = None,
        parent_dir: Optional[str] = None,
        strict_dependencies: bool = False,
        binary_urls: Optional[Dict[str, str]] = None,
        extract_subdir: Optional[str] = None,
        zstd_window_log: int = DEFAULT_ZSTD_WINDOW_LOG,
        isolate_push_failures: Optional[bool] = None,
        prompts: Optional[PromptService] = None,
    ):
        self.release_version = release_version
        self.parent_dir = parent_dir
        self.strict_dependencies = strict_dependencies
        self.binary_urls = binary_urls
        self.extract_subdir = extract_subdir
        self.zstd_window_log = zstd_window_log
        self.isolate_push_failures = isolate_push_failures
        self.prompts = prompts or PromptService(console=console)
        self.context: Optional[InstallContext] = None

        self.command_runner = CommandRunner(logger=logger)
        self.filesystem_service = FileSystemService(logger=logger)
        self.download_service = DownloadService(
            logger=logger,
            console=console,
            requests_module=requests,
        )
        self.archive_service = ArchiveService(logger=logger, command_runner=self.command_runner)
        self.host_probe_service = HostProbeService(
            logger=logger,
            command_runner=self.command_runner,
            download_service=self.download_service,
            archive_service=self.archive_service,
        )
        self.engine_service = ContainerEngineService(
            logger=logger,
            console=console,
            command_runner=self.command_runner,
        )
        self.registry_service = RegistryPublisherService(
            logger=logger,
            console=console,
            command_runner=self.command_runner,
            engine_service=self.engine_service,
        )
        self.helm_values_service = HelmValuesService(
            logger=logger,
            filesystem_service=self.filesystem_service,
        )

    def _validate_version(self, value: str) -> str:
        clean_value = (value or "").strip()
        try:
            version.Version(clean_value)
        except version.InvalidVersion as exc:
            raise InstallerError(
                f"Invalid DataRobot version '{clean_value}'. Use a release number such as 10.1.0."
            ) from exc
        return clean_value

    def prepare_context(self) -> InstallContext:
        release = self.release_version or self.prompts.ask("Enter DataRobot version (e.g., 10.1.0)")
        release = self._validate_version(release)

        parent_dir = self.parent_dir or self.prompts.ask(
            "Enter the parent directory for installation",
            default=DEFAULT_PARENT_DIR,
        )
        context = InstallContext.create(
            release,
            parent_dir or DEFAULT_PARENT_DIR,
            extract_subdir=self.extract_subdir,
        )
        logger.info("Installation directory set to: %s", context.install_dir)

        try:
            os.makedirs(context.install_dir, exist_ok=True)
        except OSError as exc:
            raise InstallerError(
                actionable_error("install_dir_failed", path=context.install_dir)
            ) from exc

        self.context = context
        return context

    def _require_context(self) -> InstallContext:
        if self.context is None:
            raise InstallerError("Installation context is not prepared.")
        return self.context

    def check_dependencies(self):
        self.host_probe_service.check_dependencies(strict=self.strict_dependencies)

    def install_utilities(self):
        self.host_probe_service.install_utilities()

    def select_container_runtime(self):
        self.engine_service.select_runtime(self._require_context(), self.prompts)

    def setup_directories(self):
        context = self._require_context()
        logger.info("Setting up directories...")
        for name in BINARY_NAMES:
            self.filesystem_service.ensure_dir(context.binary_dir(name), DIR_MODE)

    def initialize_binaries(self):
        context = self._require_context()
        context.binaries = self.download_service.resolve_binaries(
            context,
            self.prompts,
            url_table=self.binary_urls,
        )

    def download_binaries(self):
        context = self._require_context()
        if not context.binaries:
            logger.info("Binary URLs are not initialized yet. Initializing them first.")
            self.initialize_binaries()
        logger.info("Downloading binaries...")
        self.download_service.fetch_binaries(context.binaries)

    def extract_binaries(self):
        self.archive_service.expand_binaries(self._require_context())

    def extract_zstd_files(self):
        self.archive_service.decompress_images(self._require_context(), window_log=self.zstd_window_log)

    def load_tar_to_container_runtime(self):
        self.engine_service.load_images(self._require_context(), self.archive_service)

    def push_images_to_registry(self):
        self.registry_service.publish(
            self._require_context(),
            self.prompts,
            isolate_failures=self.isolate_push_failures,
        )

    def create_helm_values(self):
        self.helm_values_service.create_values(self._require_context(), self.prompts)

    def list_modules(self):
        console.print("Available modules:")
        for name in self.MODULES:
            console.print(f"- {name}")

    def run_module(self, name: str):
        if name not in self.MODULES:
            raise InstallerError(f"Invalid module name '{name}'.")

        logger.info("Running module: %s", name)
        try:
            getattr(self, name)()
        except InstallerError as exc:
            raise InstallerError(f"{exc}\n{actionable_error('module_failed', module=name)}") from exc

    def run(self, prompt_mode: bool = False, only: Optional[str] = None) -> int:
        if only is not None and only not in self.MODULES:
            if only:
                logger.error("Invalid module name '%s'.", only)
            self.list_modules()
            return 0

        try:
            self.prepare_context()

            if only is not None:
                self.run_module(only)
                return 0

            logger.info(
                "Starting DataRobot pre-install setup for version %s...",
                self.context.version,
            )
            for name in self.MODULES:
                if prompt_mode:
                    answer = self.prompts.confirm(f"Would you like to run {name}?")
                    if answer is None:
                        logger.info("Invalid input. Skipping module: %s", name)
                        continue
                    if not answer:
                        logger.info("Skipping module: %s", name)
                        continue
                self.run_module(name)

            logger.info("DataRobot pre-installation setup completed.")
            return 0

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 1
        except InstallerError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return 1
