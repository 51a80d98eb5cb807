"""Shared domain models for dr-preinstall."""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .constants import IMAGES_DIR_NAME, INSTALL_DIR_PREFIX
from .errors import InstallerError


class ContainerEngine(Enum):
    DOCKER = "docker"
    PODMAN = "podman"
    SUDO_DOCKER = "sudo-docker"

    @property
    def command(self) -> List[str]:
        if self is ContainerEngine.SUDO_DOCKER:
            return ["sudo", "docker"]
        return [self.value]

    @property
    def label(self) -> str:
        return " ".join(self.command)


class RegistryKind(Enum):
    GENERIC = "generic"
    AWS_ECR = "aws-ecr"
    AZURE_ACR = "azure-acr"
    GCP_GAR = "gcp-gar"

    @property
    def environment_name(self) -> str:
        return {
            RegistryKind.GENERIC: "generic",
            RegistryKind.AWS_ECR: "aws",
            RegistryKind.AZURE_ACR: "azure",
            RegistryKind.GCP_GAR: "google",
        }[self]


class HaMode(Enum):
    HA = "ha"
    NON_HA = "non-ha"


@dataclass(frozen=True)
class BinarySpec:
    """One downloadable release artifact and where it lands on disk."""

    logical_name: str
    source_url: str
    local_archive_path: str

    @property
    def directory(self) -> str:
        return os.path.dirname(self.local_archive_path)


@dataclass
class InstallContext:
    """Per-run installation state shared by every module."""

    version: str
    parent_dir: str
    install_dir: str
    container_engine: Optional[ContainerEngine] = None
    binaries: Dict[str, BinarySpec] = field(default_factory=dict)
    environment_name: Optional[str] = None
    extract_subdir: Optional[str] = None

    @classmethod
    def create(cls, version: str, parent_dir: str, extract_subdir: Optional[str] = None) -> "InstallContext":
        install_dir = os.path.join(parent_dir, f"{INSTALL_DIR_PREFIX}{version}")
        return cls(
            version=version,
            parent_dir=parent_dir,
            install_dir=install_dir,
            extract_subdir=extract_subdir,
        )

    def set_container_engine(self, engine: ContainerEngine):
        if self.container_engine is not None:
            raise InstallerError(
                f"Container runtime already set to {self.container_engine.label} for this run."
            )
        self.container_engine = engine

    def binary_dir(self, logical_name: str) -> str:
        return os.path.join(self.install_dir, logical_name)

    def extraction_dir(self, logical_name: str) -> str:
        if self.extract_subdir:
            return os.path.join(self.binary_dir(logical_name), self.extract_subdir)
        return self.binary_dir(logical_name)

    def images_dir(self, logical_name: str) -> str:
        return os.path.join(self.extraction_dir(logical_name), IMAGES_DIR_NAME)


@dataclass(frozen=True)
class ImageRef:
    repository: str
    tag: str

    @classmethod
    def parse(cls, reference: str) -> "ImageRef":
        repository, sep, tag = reference.strip().rpartition(":")
        if not sep or "/" in tag:
            return cls(repository=reference.strip(), tag="latest")
        return cls(repository=repository, tag=tag)

    @property
    def reference(self) -> str:
        return f"{self.repository}:{self.tag}"

    def __str__(self) -> str:
        return self.reference


@dataclass(frozen=True)
class RegistryTarget:
    """Destination registry and the naming rules applied to pushed images."""

    kind: RegistryKind
    base_url: str
    repository_prefix: str
    exclude_patterns: Tuple[str, ...] = ()
    isolate_failures: bool = True

    def excludes(self, image: ImageRef) -> bool:
        return any(pattern and pattern in image.reference for pattern in self.exclude_patterns)

    def destination_for(self, image: ImageRef) -> ImageRef:
        if self.kind is RegistryKind.GENERIC:
            # Generic registries keep only the path after the source host.
            _, sep, remainder = image.repository.partition("/")
            repository = remainder if sep else image.repository
            return ImageRef(repository=f"{self.base_url}/{repository}", tag=image.tag)
        return ImageRef(
            repository=f"{self.base_url}/{self.repository_prefix}/{image.repository}",
            tag=image.tag,
        )


@dataclass(frozen=True)
class DeploymentMode:
    ha_mode: HaMode
    environment_name: str


@dataclass
class PublishReport:
    pushed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
