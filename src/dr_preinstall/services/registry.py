"""Registry publishing: authenticate, provision, retag and push local images."""

import dataclasses
import json
import os
from typing import List, Mapping, Optional

from dr_preinstall.constants import (
    ACR_TOKEN_USERNAME,
    ECR_AUXILIARY_REPOSITORIES,
    ECR_DOMAIN_MARKER,
    GAR_KEY_ENV_VAR,
    GAR_LOGIN_USERNAME,
    REGISTRY_EXCLUDE_MARKER,
)
from dr_preinstall.errors import InstallerError
from dr_preinstall.errors_catalog import actionable_error
from dr_preinstall.models import (
    ContainerEngine,
    ImageRef,
    InstallContext,
    PublishReport,
    RegistryKind,
    RegistryTarget,
)

REPOSITORY_PROMPT = "Enter the DataRobot Repository name (e.g., datarobot-dev)"


class RegistryBackend:
    """Base class for one registry flavour.

    Subclasses collect their inputs, authenticate the container engine and
    return the `RegistryTarget` that drives naming, exclusion and failure
    isolation in the shared push loop.
    """

    kind: RegistryKind
    label = ""
    pushes_images = True

    def __init__(self, logger, command_runner, engine_service, prompts, engine: ContainerEngine, environ):
        self.logger = logger
        self.command_runner = command_runner
        self.engine_service = engine_service
        self.prompts = prompts
        self.engine = engine
        self.environ = environ

    def connect(self) -> RegistryTarget:
        raise NotImplementedError

    def provision(self, target: RegistryTarget, images: List[ImageRef]):
        return None

    def _engine_login(self, registry: str, username: str, password: str):
        try:
            self.engine_service.login(self.engine, registry, username, password)
        except InstallerError as exc:
            raise InstallerError(
                f"{actionable_error('registry_login_failed', registry=self.label)}\n{exc}"
            ) from exc


class GenericRegistry(RegistryBackend):
    kind = RegistryKind.GENERIC
    label = "Docker registry"

    def connect(self) -> RegistryTarget:
        url = self.prompts.ask("Enter the Docker Registry URL (without https://)")
        username = self.prompts.ask("Enter the Docker Registry Username")
        password = self.prompts.ask("Enter the Docker Registry Password", password=True)
        if not url:
            raise InstallerError("A registry URL is required.")

        self._engine_login(url, username, password)
        prefix = self.prompts.ask(REPOSITORY_PROMPT)

        self.logger.info("Retagging and pushing images to Docker Registry: %s...", url)
        return RegistryTarget(
            kind=self.kind,
            base_url=url,
            repository_prefix=prefix,
            exclude_patterns=(REGISTRY_EXCLUDE_MARKER, url),
            isolate_failures=True,
        )


class EcrRegistry(RegistryBackend):
    kind = RegistryKind.AWS_ECR
    label = "AWS ECR"

    def connect(self) -> RegistryTarget:
        region = self.prompts.ask("Enter AWS Region")
        ecr_url = self.prompts.ask(
            f"Enter AWS ECR URL (e.g., <AWS_ACCOUNT_ID>.dkr.ecr.{region or '<region>'}.amazonaws.com)"
        )
        if not region or not ecr_url:
            raise InstallerError("AWS region and ECR URL are required.")

        try:
            token = self.command_runner.run(
                ["aws", "ecr", "get-login-password", "--region", region],
                capture_output=True,
            ).stdout.strip()
        except InstallerError as exc:
            raise InstallerError(
                f"{actionable_error('registry_login_failed', registry=self.label)}\n{exc}"
            ) from exc
        self._engine_login(ecr_url, "AWS", token)

        prefix = self.prompts.ask(REPOSITORY_PROMPT)
        if not prefix:
            raise InstallerError("An ECR repository prefix is required.")

        return RegistryTarget(
            kind=self.kind,
            base_url=ecr_url,
            repository_prefix=prefix,
            exclude_patterns=(REGISTRY_EXCLUDE_MARKER, ECR_DOMAIN_MARKER),
            isolate_failures=False,
        )

    def provision(self, target: RegistryTarget, images: List[ImageRef]):
        self.logger.info("Checking and creating repositories in ECR if necessary...")
        local_repositories = []
        for image in images:
            if image.repository not in local_repositories:
                local_repositories.append(image.repository)
        created = 0
        for repository in local_repositories:
            created += self.ensure_repository(f"{target.repository_prefix}/{repository}")

        self.logger.info("Processing additional repositories required by the build-service...")
        for repository in ECR_AUXILIARY_REPOSITORIES:
            created += self.ensure_repository(f"{target.repository_prefix}/{repository}")
        self.logger.info("Created %s ECR repositories.", created)

    def ensure_repository(self, name: str) -> bool:
        """Creates the ECR repository unless it exists; returns True when created."""
        described = self.command_runner.run(
            ["aws", "ecr", "describe-repositories", "--repository-names", name],
            check=False,
            capture_output=True,
        )
        if described.returncode == 0:
            self.logger.debug("ECR repository %s already exists.", name)
            return False

        try:
            self.command_runner.run(
                ["aws", "ecr", "create-repository", "--repository-name", name],
                capture_output=True,
            )
        except InstallerError as exc:
            raise InstallerError(f"Failed to create ECR repository {name}. {exc}") from exc
        self.logger.info("Created ECR repository %s.", name)
        return True


class AcrRegistry(RegistryBackend):
    kind = RegistryKind.AZURE_ACR
    label = "Azure ACR"

    def connect(self) -> RegistryTarget:
        self.logger.info("Logging into Azure CLI...")
        try:
            self.command_runner.run(["az", "login"])
        except InstallerError as exc:
            raise InstallerError(
                "Failed to log in to Azure CLI. Ensure you have Azure CLI installed and configured."
            ) from exc

        acr_name = self.prompts.ask("Enter Azure ACR Name")
        self.logger.info("Logging into Azure ACR: %s...", acr_name)
        try:
            result = self.command_runner.run(
                ["az", "acr", "login", "--expose-token", "-n", acr_name],
                capture_output=True,
            )
        except InstallerError as exc:
            raise InstallerError("Failed to retrieve ACR login token. Check your ACR name.") from exc

        login_server, token = self.parse_token_payload(result.stdout)

        self.logger.info("Logging into ACR using %s...", self.engine.label)
        self._engine_login(login_server, ACR_TOKEN_USERNAME, token)

        prefix = (self.prompts.ask(REPOSITORY_PROMPT) or "").strip("/ ")
        if not prefix:
            raise InstallerError("An ACR repository prefix is required.")

        self.logger.info("Retagging and pushing images to Azure ACR...")
        return RegistryTarget(
            kind=self.kind,
            base_url=login_server,
            repository_prefix=prefix,
            exclude_patterns=(REGISTRY_EXCLUDE_MARKER, login_server),
            isolate_failures=True,
        )

    @staticmethod
    def parse_token_payload(payload: Optional[str]):
        try:
            data = json.loads(payload or "")
        except ValueError as exc:
            raise InstallerError("Failed to parse the ACR login token response.") from exc

        if not isinstance(data, dict):
            raise InstallerError("Failed to parse the ACR login token response.")

        login_server = str(data.get("loginServer") or "").strip()
        token = str(data.get("accessToken") or "").strip()
        if not login_server or not token:
            raise InstallerError("Failed to extract ACR login server or token.")
        return login_server, token


class GarRegistry(RegistryBackend):
    kind = RegistryKind.GCP_GAR
    label = "Google Artifact Registry"
    # Pushing to GAR was never implemented; the target is only computed.
    pushes_images = False

    def connect(self) -> RegistryTarget:
        region = self.prompts.ask("Enter GCP Region")
        project = self.prompts.ask("Enter GCP Project Name")
        repository = self.prompts.ask("Enter GAR Repository Name (e.g., datarobot-dev)")
        if not region or not project or not repository:
            raise InstallerError("GCP region, project and GAR repository are required.")

        key = (self.environ.get(GAR_KEY_ENV_VAR) or "").strip()
        if not key:
            raise InstallerError(
                f"{GAR_KEY_ENV_VAR} is not set. Export the base64-encoded service account key and retry."
            )

        host = f"{region}-docker.pkg.dev"
        self._engine_login(f"https://{host}", GAR_LOGIN_USERNAME, key)

        return RegistryTarget(
            kind=self.kind,
            base_url=host,
            repository_prefix=f"{project}/{repository}",
            exclude_patterns=(REGISTRY_EXCLUDE_MARKER, host),
            isolate_failures=True,
        )


class RegistryPublisherService:
    """Runs the choose/authenticate/provision/enumerate/push flow."""

    BACKENDS = (GenericRegistry, EcrRegistry, AcrRegistry, GarRegistry)
    BACKEND_LABELS = (
        "Generic Docker Registry",
        "AWS ECR",
        "Azure ACR",
        "Google Artifact Registry (GAR)",
    )

    def __init__(self, logger, console, command_runner, engine_service, environ: Optional[Mapping[str, str]] = None):
        self.logger = logger
        self.console = console
        self.command_runner = command_runner
        self.engine_service = engine_service
        self.environ = os.environ if environ is None else environ

    def choose_backend(self, prompts):
        index = prompts.choose("Select your container registry type:", list(self.BACKEND_LABELS))
        if index is None:
            raise InstallerError("Invalid registry choice.")
        return self.BACKENDS[index]

    def publish(
        self,
        context: InstallContext,
        prompts,
        isolate_failures: Optional[bool] = None,
    ) -> PublishReport:
        self.logger.info("Starting the process to retag and push images to the container registry.")
        backend_cls = self.choose_backend(prompts)
        engine = self.engine_service.resolve_engine(context)
        backend = backend_cls(
            logger=self.logger,
            command_runner=self.command_runner,
            engine_service=self.engine_service,
            prompts=prompts,
            engine=engine,
            environ=self.environ,
        )
        context.environment_name = backend.kind.environment_name

        target = backend.connect()
        if isolate_failures is not None:
            target = dataclasses.replace(target, isolate_failures=isolate_failures)

        report = PublishReport()
        if not backend.pushes_images:
            destination = f"{target.base_url}/{target.repository_prefix}"
            self.logger.warning(
                "Logged into %s (%s). Retagging and pushing images to this registry is not "
                "implemented; push them manually.",
                backend.label,
                destination,
            )
            return report

        candidates = []
        for image in self.engine_service.list_images(engine):
            if target.excludes(image):
                report.skipped.append(image.reference)
            else:
                candidates.append(image)

        backend.provision(target, candidates)
        self.push_images(engine, target, candidates, report)

        self.logger.info(
            "Retag and push process to %s completed: %s pushed, %s failed, %s skipped.",
            backend.label,
            len(report.pushed),
            len(report.failed),
            len(report.skipped),
        )
        self.console.print(f"[green]Published {len(report.pushed)} image(s) to {target.base_url}.[/green]")
        return report

    def push_images(
        self,
        engine: ContainerEngine,
        target: RegistryTarget,
        images: List[ImageRef],
        report: PublishReport,
    ) -> PublishReport:
        for image in images:
            destination = target.destination_for(image)
            try:
                self.logger.info("Retagging %s as %s", image, destination)
                self.engine_service.tag(engine, image, destination)
                self.logger.info("Pushing %s...", destination)
                self.engine_service.push(engine, destination)
            except InstallerError as exc:
                if not target.isolate_failures:
                    raise
                self.logger.error("Failed to publish %s. Skipping. %s", image, exc)
                report.failed.append(image.reference)
                continue
            report.pushed.append(destination.reference)
        return report
