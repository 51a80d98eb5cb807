"""Host capability checks and best-effort utility installation."""

import os
import tempfile
from typing import Callable, Dict, List

from dr_preinstall.constants import (
    HELM_DOWNLOAD_URL,
    HELM_VERSION,
    INSTALLABLE_UTILITIES,
    KUBECTL_DOWNLOAD_URL,
    KUBECTL_STABLE_URL,
    REQUIRED_TOOLS,
    SYSTEM_BIN_DIR,
)
from dr_preinstall.errors import InstallerError
from dr_preinstall.errors_catalog import actionable_error


class HostProbeService:
    """Verifies required executables and installs missing utilities."""

    PACKAGE_MANAGER_UTILITIES = ("git", "zstd", "jq")
    ENGINE_UTILITIES = ("docker", "podman")

    def __init__(self, logger, command_runner, download_service, archive_service):
        self.logger = logger
        self.command_runner = command_runner
        self.download_service = download_service
        self.archive_service = archive_service

    def check_dependencies(self, strict: bool = False) -> List[str]:
        """Returns the missing required tools; raises instead when strict."""
        self.logger.info("Checking dependencies...")
        missing = [tool for tool in REQUIRED_TOOLS if not self.command_runner.is_available(tool)]

        for tool in missing:
            self.logger.error(actionable_error("missing_required_tool", tool=tool))

        if missing and strict:
            raise InstallerError(f"Missing required tools: {', '.join(missing)}")
        if not missing:
            self.logger.info("All required dependencies are installed.")
        return missing

    def install_utilities(self) -> Dict[str, bool]:
        """Installs every missing utility; maps attempted utilities to success."""
        self.logger.info("Checking and installing required utilities...")
        attempts: Dict[str, bool] = {}

        for utility in INSTALLABLE_UTILITIES:
            if self.command_runner.is_available(utility):
                continue

            self.logger.info("%s not found. Attempting to install...", utility)
            recipe = self._recipe_for(utility)
            try:
                recipe(utility)
            except InstallerError as exc:
                self.logger.error("Failed to install %s: %s", utility, exc)
                attempts[utility] = False
                continue

            self.logger.info("%s installed.", utility)
            attempts[utility] = True

        self.logger.info("Utility check completed.")
        return attempts

    def _recipe_for(self, utility: str) -> Callable[[str], None]:
        if utility == "kubectl":
            return self._install_kubectl
        if utility == "helm":
            return self._install_helm
        if utility in self.PACKAGE_MANAGER_UTILITIES:
            return self._install_package
        if utility in self.ENGINE_UTILITIES:
            return self._install_container_engine
        raise InstallerError(f"No installation recipe for {utility}.")

    def _install_kubectl(self, utility: str):
        release = self.download_service.fetch_text(KUBECTL_STABLE_URL)
        with tempfile.TemporaryDirectory(prefix="dr-preinstall-") as work_dir:
            binary_path = os.path.join(work_dir, utility)
            self.download_service.download_file(
                KUBECTL_DOWNLOAD_URL.format(version=release), binary_path, utility
            )
            self._move_into_system_path(binary_path)

    def _install_helm(self, utility: str):
        url = HELM_DOWNLOAD_URL.format(version=HELM_VERSION)
        with tempfile.TemporaryDirectory(prefix="dr-preinstall-") as work_dir:
            tarball = os.path.join(work_dir, os.path.basename(url))
            self.download_service.download_file(url, tarball, utility)
            self.archive_service.safe_extract_tar(tarball, work_dir)
            self._move_into_system_path(os.path.join(work_dir, "linux-amd64", utility))

    def _install_package(self, utility: str):
        result = self.command_runner.run(
            ["sudo", "apt-get", "install", "-y", utility],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            self.logger.info("apt-get could not install %s. Trying yum...", utility)
            self.command_runner.run(["sudo", "yum", "install", "-y", utility], capture_output=True)

    def _install_container_engine(self, _utility: str):
        self.command_runner.run(["sudo", "yum", "install", "docker", "-y"], capture_output=True)
        self.command_runner.run(["sudo", "systemctl", "start", "docker"], capture_output=True)

    def _move_into_system_path(self, binary_path: str):
        self.command_runner.run(["sudo", "chmod", "+x", binary_path], capture_output=True)
        self.command_runner.run(["sudo", "mv", binary_path, SYSTEM_BIN_DIR + "/"], capture_output=True)
