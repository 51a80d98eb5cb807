"""
dr-preinstall - DataRobot pre-installation orchestrator
"""

__version__ = "0.1.0"

from .core import Installer
from .errors import InstallerError

__all__ = ["Installer", "InstallerError"]
