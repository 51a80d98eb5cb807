"""Container engine selection and image operations for dr-preinstall."""

import getpass
import os
from typing import List, Optional

from dr_preinstall.constants import DOCKER_SOCKET, IMAGE_BINARY_NAMES, TAR_EXTENSION
from dr_preinstall.errors import InstallerError
from dr_preinstall.errors_catalog import actionable_error
from dr_preinstall.models import ContainerEngine, ImageRef, InstallContext


class ContainerEngineService:
    """Selects the local runtime and drives load/tag/push/login through it."""

    RUNTIME_OPTIONS = (
        ("Docker", ContainerEngine.DOCKER),
        ("Podman", ContainerEngine.PODMAN),
        ("Sudo Docker", ContainerEngine.SUDO_DOCKER),
    )

    def __init__(self, logger, console, command_runner):
        self.logger = logger
        self.console = console
        self.command_runner = command_runner

    def resolve_choice(self, index: Optional[int]) -> ContainerEngine:
        if index is None or not 0 <= index < len(self.RUNTIME_OPTIONS):
            self.logger.warning("Invalid choice. Defaulting to Docker.")
            return ContainerEngine.DOCKER
        return self.RUNTIME_OPTIONS[index][1]

    def select_runtime(self, context: InstallContext, prompts) -> ContainerEngine:
        self.logger.info("Prompting for container runtime selection...")
        index = prompts.choose(
            "Choose the container runtime:",
            [label for label, _engine in self.RUNTIME_OPTIONS],
        )
        engine = self.resolve_choice(index)
        self.logger.info("Selected container runtime: %s", engine.label)

        self.prepare_runtime(engine)
        context.set_container_engine(engine)
        self.logger.info("Using container tool: %s", engine.label)
        return engine

    def prepare_runtime(self, engine: ContainerEngine):
        if engine is ContainerEngine.DOCKER:
            self.logger.info("Adjusting permissions for Docker socket...")
            try:
                self.command_runner.run(
                    ["sudo", "chown", f"{getpass.getuser()}:", DOCKER_SOCKET],
                    capture_output=True,
                )
            except InstallerError as exc:
                raise InstallerError(f"Failed to adjust permissions for Docker socket. {exc}") from exc
        elif engine is ContainerEngine.SUDO_DOCKER:
            try:
                self.command_runner.run(["sudo", "systemctl", "start", "docker"], capture_output=True)
            except InstallerError as exc:
                raise InstallerError(f"Failed to start Docker service. {exc}") from exc

    def resolve_engine(self, context: InstallContext) -> ContainerEngine:
        if context.container_engine is not None:
            return context.container_engine

        self.logger.warning(
            actionable_error("engine_not_selected", engine=ContainerEngine.DOCKER.label)
        )
        return ContainerEngine.DOCKER

    def load_images(self, context: InstallContext, archive_service) -> List[str]:
        engine = self.resolve_engine(context)
        self.logger.info("Loading .tar files into container runtime...")

        loaded = []
        for name in IMAGE_BINARY_NAMES:
            images_dir = context.images_dir(name)
            if not os.path.isdir(images_dir):
                self.logger.warning(
                    "Images directory %s does not exist. Skipping container runtime loading.",
                    images_dir,
                )
                continue

            for archive in archive_service.find_files(images_dir, TAR_EXTENSION):
                self.command_runner.run(engine.command + ["load", "-i", archive])
                loaded.append(archive)
            self.logger.info("Loaded .tar files from %s into %s.", images_dir, engine.label)
        self.console.print(f"[green]Loaded {len(loaded)} image archive(s) into {engine.label}.[/green]")
        return loaded

    def list_images(self, engine: ContainerEngine) -> List[ImageRef]:
        result = self.command_runner.run(
            engine.command + ["images", "--format", "{{.Repository}}:{{.Tag}}"],
            capture_output=True,
        )
        images = []
        for line in (result.stdout or "").splitlines():
            line = line.strip()
            if not line or "<none>" in line:
                continue
            images.append(ImageRef.parse(line))
        return images

    def login(self, engine: ContainerEngine, registry: str, username: str, password: str):
        self.command_runner.run(
            engine.command + ["login", "--username", username, "--password-stdin", registry],
            capture_output=True,
            input_text=password,
        )

    def tag(self, engine: ContainerEngine, source: ImageRef, destination: ImageRef):
        self.command_runner.run(
            engine.command + ["tag", source.reference, destination.reference],
            capture_output=True,
        )

    def push(self, engine: ContainerEngine, image: ImageRef):
        self.command_runner.run(engine.command + ["push", image.reference])
