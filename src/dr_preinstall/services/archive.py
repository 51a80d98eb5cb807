"""Archive expansion for downloaded release bundles."""

import os
import tarfile
from pathlib import Path
from typing import List, Optional, Tuple

from dr_preinstall.constants import (
    BINARY_NAMES,
    DEFAULT_ZSTD_WINDOW_LOG,
    IMAGE_BINARY_NAMES,
    TAR_EXTENSION,
    ZSTD_EXTENSION,
)
from dr_preinstall.errors import InstallerError
from dr_preinstall.models import InstallContext


class ArchiveService:
    """Two-stage expansion: outer bundle tarballs, then zstd image layers."""

    def __init__(self, logger, command_runner):
        self.logger = logger
        self.command_runner = command_runner

    def is_within_dir(self, base_dir: Path, candidate: Path) -> bool:
        try:
            return os.path.commonpath([str(base_dir), str(candidate)]) == str(base_dir)
        except ValueError:
            return False

    def safe_extract_tar(self, tar_path: str, destination_dir: str):
        base = Path(destination_dir).resolve()

        try:
            with tarfile.open(tar_path, "r:*") as tar_ref:
                members = tar_ref.getmembers()
                for member in members:
                    target_path = (base / member.name).resolve()
                    if not self.is_within_dir(base, target_path):
                        raise InstallerError(
                            f"Unsafe tar entry detected: `{member.name}`. "
                            "Archive extraction aborted to prevent path traversal."
                        )

                    if member.issym() or member.islnk():
                        link_base = target_path.parent if member.issym() else base
                        link_target = (link_base / member.linkname).resolve()
                        if not self.is_within_dir(base, link_target):
                            raise InstallerError(
                                f"Unsafe tar entry detected: `{member.name}` links outside the archive."
                            )

                if hasattr(tarfile, "data_filter"):
                    tar_ref.extractall(str(base), members=members, filter="data")
                else:
                    tar_ref.extractall(str(base), members=members)
        except tarfile.TarError as exc:
            raise InstallerError(f"Invalid tar archive: {tar_path}") from exc

    def find_archive(self, directory: str) -> Optional[str]:
        if not os.path.isdir(directory):
            return None

        archives = sorted(
            os.path.join(directory, entry)
            for entry in os.listdir(directory)
            if entry.endswith(TAR_EXTENSION) and os.path.isfile(os.path.join(directory, entry))
        )
        if len(archives) > 1:
            raise InstallerError(
                f"Found {len(archives)} tar files in {directory}; expected exactly one. "
                "Remove the extra archives and retry."
            )
        return archives[0] if archives else None

    def is_extracted(self, context: InstallContext, logical_name: str) -> bool:
        extraction_dir = context.extraction_dir(logical_name)
        if context.extract_subdir:
            return os.path.isdir(extraction_dir)

        # In-place extraction shares the directory with the downloaded archive.
        if not os.path.isdir(extraction_dir):
            return False
        return any(not entry.endswith(TAR_EXTENSION) for entry in os.listdir(extraction_dir))

    def expand_binaries(self, context: InstallContext) -> List[str]:
        self.logger.info("Extracting binaries...")
        extracted = []
        for name in BINARY_NAMES:
            binary_dir = context.binary_dir(name)
            extraction_dir = context.extraction_dir(name)
            # Bundles may unpack further .tar files next to the downloaded archive.
            if self.is_extracted(context, name):
                self.logger.info("Directory %s already extracted. Skipping.", extraction_dir)
                continue

            tar_file = self.find_archive(binary_dir)
            if not tar_file:
                self.logger.warning("No tar file found in %s. Skipping.", binary_dir)
                continue

            os.makedirs(extraction_dir, exist_ok=True)
            self.safe_extract_tar(tar_file, extraction_dir)
            self.logger.info("Extracted %s to %s.", tar_file, extraction_dir)
            extracted.append(name)
        return extracted

    def find_files(self, root: str, extension: str) -> List[str]:
        matches = []
        for current_root, _dirs, files in os.walk(root):
            for file_name in files:
                if file_name.endswith(extension):
                    matches.append(os.path.join(current_root, file_name))
        return sorted(matches)

    def decompress_images(
        self,
        context: InstallContext,
        window_log: int = DEFAULT_ZSTD_WINDOW_LOG,
    ) -> Tuple[List[str], List[str]]:
        """Decompresses every image layer; returns (decompressed, failed) paths."""
        self.logger.info("Finding and extracting .zst files in images directories...")
        decompressed: List[str] = []
        failed: List[str] = []

        for name in IMAGE_BINARY_NAMES:
            images_dir = context.images_dir(name)
            if not os.path.isdir(images_dir):
                self.logger.warning(
                    "Images directory %s does not exist. Skipping .zst extraction.", images_dir
                )
                continue

            for layer in self.find_files(images_dir, ZSTD_EXTENSION):
                result = self.command_runner.run(
                    ["zstd", "-d", f"--long={window_log}", layer],
                    check=False,
                    capture_output=True,
                )
                if result.returncode == 0:
                    decompressed.append(layer)
                else:
                    failed.append(layer)

        if failed:
            self.logger.warning("%s layer(s) could not be decompressed.", len(failed))
        self.logger.info(".zst extraction completed: %s file(s) decompressed.", len(decompressed))
        return decompressed, failed
