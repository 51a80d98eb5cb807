"""Filesystem helpers for dr-preinstall."""

import logging
import os
import shutil
import sys

from dr_preinstall.errors import InstallerError


class FileSystemService:
    """Encapsulates file and directory side effects."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def set_permissions(self, path: str, mode: int):
        if sys.platform == "win32":
            return

        try:
            os.chmod(path, mode)
        except OSError as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def set_tree_permissions(self, root: str, mode: int):
        if sys.platform == "win32" or not os.path.exists(root):
            return

        self.set_permissions(root, mode)
        for current_root, dirs, _files in os.walk(root):
            for directory in dirs:
                self.set_permissions(os.path.join(current_root, directory), mode)

    def ensure_dir(self, path: str, mode: int) -> bool:
        """Creates the directory; returns False when it already existed."""
        if os.path.isdir(path):
            self.logger.info("Directory %s already exists. Skipping creation.", path)
            return False

        try:
            os.makedirs(path, exist_ok=True)
        except OSError as exc:
            raise InstallerError(f"Failed to create directory {path}: {exc}") from exc

        self.set_tree_permissions(path, mode)
        self.logger.info("Created directory %s.", path)
        return True

    def copy_file(self, source: str, destination: str, label: str):
        try:
            shutil.copyfile(source, destination)
        except OSError as exc:
            raise InstallerError(f"Failed to copy the {label} file: {exc}") from exc
        self.logger.info("%s file created: %s", label, destination)
