"""Download service for release artifacts with progress reporting."""

import os
from typing import Dict, List, Optional
from urllib.parse import urlparse

from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from dr_preinstall.constants import BINARY_NAMES, TAR_EXTENSION
from dr_preinstall.errors import InstallerError
from dr_preinstall.errors_catalog import actionable_error
from dr_preinstall.models import BinarySpec, InstallContext


class DownloadService:
    """Resolves binary URLs and streams them to the installation tree."""

    CHUNK_SIZE = 1024 * 1024

    def __init__(self, logger, console, requests_module):
        self.logger = logger
        self.console = console
        self.requests = requests_module

    def resolve_binaries(
        self,
        context: InstallContext,
        prompts,
        url_table: Optional[Dict[str, str]] = None,
    ) -> Dict[str, BinarySpec]:
        if url_table:
            self.logger.info("Using configured binary URLs for version %s.", context.version)
        else:
            self.logger.info("Prompting user to enter binary URLs for installation...")

        binaries: Dict[str, BinarySpec] = {}
        for name in BINARY_NAMES:
            if url_table:
                try:
                    url = url_table[name].format(version=context.version)
                except (KeyError, IndexError, ValueError) as exc:
                    raise InstallerError(
                        f"Invalid download URL template for {name} binary: {url_table[name]}. "
                        "Only the {version} placeholder is supported."
                    ) from exc
            else:
                url = prompts.ask(f"Enter the download URL for {name} binary")
            if not url:
                raise InstallerError(actionable_error("missing_binary_url", binary=name))
            binaries[name] = self.build_spec(context, name, url)

        self.logger.info("Binary URLs initialized successfully.")
        return binaries

    def build_spec(self, context: InstallContext, logical_name: str, url: str) -> BinarySpec:
        filename = os.path.basename(urlparse(url).path) or f"{logical_name}{TAR_EXTENSION}"
        return BinarySpec(
            logical_name=logical_name,
            source_url=url,
            local_archive_path=os.path.join(context.binary_dir(logical_name), filename),
        )

    def existing_archive(self, spec: BinarySpec) -> Optional[str]:
        for candidate in (spec.local_archive_path, spec.local_archive_path + TAR_EXTENSION):
            if os.path.isfile(candidate):
                return candidate
        return None

    def fetch_binaries(self, binaries: Dict[str, BinarySpec]) -> List[str]:
        """Downloads every binary missing on disk and returns the new archive paths."""
        downloaded = []
        for name in BINARY_NAMES:
            spec = binaries[name]
            existing = self.existing_archive(spec)
            if existing:
                self.logger.info("Binary %s already exists. Skipping download.", existing)
                continue

            self.download_file(spec.source_url, spec.local_archive_path, name)
            downloaded.append(self.ensure_tar_extension(spec.local_archive_path))

        self.logger.info("Binaries downloaded and validated.")
        return downloaded

    def ensure_tar_extension(self, file_path: str) -> str:
        if file_path.endswith(TAR_EXTENSION):
            return file_path

        renamed = file_path + TAR_EXTENSION
        try:
            os.replace(file_path, renamed)
        except OSError as exc:
            raise InstallerError(f"Could not rename {file_path}: {exc}") from exc
        self.logger.info("Renamed %s to %s", file_path, renamed)
        return renamed

    def download_file(self, url: str, dest_path: str, label: str):
        self.logger.info("Downloading %s to %s", url, dest_path)

        try:
            with self.requests.get(url, stream=True) as response:
                response.raise_for_status()
                total_size = int(response.headers.get("Content-Length", 0))

                os.makedirs(os.path.dirname(dest_path) or ".", exist_ok=True)

                with Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    TaskProgressColumn(),
                    DownloadColumn(),
                    TimeElapsedColumn(),
                    console=self.console,
                ) as progress:
                    task = progress.add_task(f"[cyan]Downloading {label}...", total=total_size or None)
                    with open(dest_path, "wb") as file_obj:
                        for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                            if not chunk:
                                continue
                            file_obj.write(chunk)
                            progress.update(task, advance=len(chunk))

        except self.requests.RequestException as exc:
            raise InstallerError(
                actionable_error("download_failed", binary=label, reason=str(exc))
            ) from exc
        except OSError as exc:
            raise InstallerError(
                actionable_error("download_failed", binary=label, reason=str(exc))
            ) from exc

    def fetch_text(self, url: str) -> str:
        try:
            response = self.requests.get(url)
            response.raise_for_status()
        except self.requests.RequestException as exc:
            raise InstallerError(f"Could not fetch {url}: {exc}") from exc
        return response.text.strip()
