"""Actionable error catalog for dr-preinstall."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "missing_required_tool": {
        "what": "{tool} is not installed.",
        "next": "Install it (or run the `install_utilities` module) before retrying.",
    },
    "install_dir_failed": {
        "what": "Failed to create installation directory: {path}",
        "next": "Check permissions on the parent directory or choose another one.",
    },
    "missing_binary_url": {
        "what": "URL for {binary} is required.",
        "next": "Enter the download URL or set `binary_urls` in the configuration file.",
    },
    "download_failed": {
        "what": "Download failed for {binary}: {reason}",
        "next": "Check the URL and network access, remove any partial file, then rerun `download_binaries`.",
    },
    "registry_login_failed": {
        "what": "Failed to log into {registry}.",
        "next": "Check your credentials and that the registry is reachable.",
    },
    "engine_not_selected": {
        "what": "No container runtime selected in this run; defaulting to {engine}.",
        "next": "Run `select_container_runtime` first to choose another runtime.",
    },
    "module_failed": {
        "what": "Module {module} failed.",
        "next": "Inspect the installation log, fix the cause and rerun with `--only {module}`.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
