"""Domain errors for dr-preinstall."""


class InstallerError(RuntimeError):
    """Raised when an installation module cannot continue safely."""
