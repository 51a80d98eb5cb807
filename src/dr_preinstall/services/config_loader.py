"""Configuration loader for dr-preinstall."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from dr_preinstall.constants import BINARY_NAMES
from dr_preinstall.errors import InstallerError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "version",
        "parent_dir",
        "log_file",
        "verbose",
        "strict_dependencies",
        "binary_urls",
        "extract_subdir",
        "zstd_window_log",
        "isolate_push_failures",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise InstallerError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise InstallerError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise InstallerError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise InstallerError(f"Unknown configuration keys: {unknown_list}")

        if "binary_urls" in parsed:
            self._validate_binary_urls(parsed["binary_urls"])

        return parsed

    def _validate_binary_urls(self, binary_urls: Any):
        if not isinstance(binary_urls, dict):
            raise InstallerError("`binary_urls` must map binary names to download URLs.")

        missing = [name for name in BINARY_NAMES if not binary_urls.get(name)]
        if missing:
            raise InstallerError(f"`binary_urls` is missing URLs for: {', '.join(missing)}")

        unknown = sorted(set(binary_urls.keys()) - set(BINARY_NAMES))
        if unknown:
            raise InstallerError(f"Unknown binaries in `binary_urls`: {', '.join(unknown)}")
