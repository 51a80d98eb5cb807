"""Helm values materialization from the bundled example templates."""

import os
from typing import Dict, List, Optional

from dr_preinstall.constants import (
    PCS_MARKER,
    PCS_VALUES_FILE,
    SMALL_PCS_FILE,
    SMALL_PCS_TEMPLATE,
    UMBRELLA_VALUES_DIR,
    VALUES_FILE,
)
from dr_preinstall.errors import InstallerError
from dr_preinstall.models import DeploymentMode, HaMode, InstallContext, RegistryKind


class HelmValuesService:
    """Copies environment and PCS templates into the installation directory."""

    def __init__(self, logger, filesystem_service):
        self.logger = logger
        self.filesystem_service = filesystem_service

    def choose_environment(self, context: InstallContext, prompts) -> str:
        if context.environment_name:
            return context.environment_name

        environments = [kind.environment_name for kind in RegistryKind]
        index = prompts.choose("Select the target environment:", environments)
        if index is None:
            raise InstallerError("Invalid environment choice.")
        return environments[index]

    def choose_ha_mode(self, prompts) -> HaMode:
        answer = prompts.confirm("Is this a High Availability (HA) deployment?")
        if answer is None:
            self.logger.info("Invalid HA/Non-HA choice. Defaulting to Non-HA.")
            return HaMode.NON_HA
        return HaMode.HA if answer else HaMode.NON_HA

    def matching_templates(self, templates_dir: str, marker: str) -> List[str]:
        return sorted(entry for entry in os.listdir(templates_dir) if marker in entry)

    def select_template(self, prompts, templates_dir: str, marker: str, title: str, label: str) -> str:
        matches = self.matching_templates(templates_dir, marker)
        if not matches:
            raise InstallerError(f"No {label} values files found matching '{marker}'.")

        index = prompts.choose(title, matches)
        if index is None:
            raise InstallerError("Invalid choice. Exiting module.")

        selected = matches[index]
        self.logger.info("Selected %s file: %s", label, selected)
        return os.path.join(templates_dir, selected)

    def create_values(self, context: InstallContext, prompts) -> Dict[str, str]:
        """Materializes the values files and returns output name -> source template."""
        self.logger.info("Starting the creation of Helm chart values files...")
        environment_name = self.choose_environment(context, prompts)
        self.logger.info("Using environment: %s", environment_name)
        mode = DeploymentMode(ha_mode=self.choose_ha_mode(prompts), environment_name=environment_name)
        self.logger.info("Deployment mode selected: %s", mode.ha_mode.value)

        templates_dir = os.path.join(context.install_dir, UMBRELLA_VALUES_DIR)
        if not os.path.isdir(templates_dir):
            raise InstallerError(f"Example values directory not found: {templates_dir}")

        written: Dict[str, str] = {}
        environment_template = self.select_template(
            prompts,
            templates_dir,
            mode.environment_name,
            "Select the values file for the environment:",
            "environment-based",
        )
        written[VALUES_FILE] = self._copy(context, environment_template, VALUES_FILE, "Environment-based Helm values")

        pcs_template = self.select_template(
            prompts,
            templates_dir,
            PCS_MARKER,
            "Select the PCS-specific values file to use:",
            "PCS-specific",
        )
        written[PCS_VALUES_FILE] = self._copy(context, pcs_template, PCS_VALUES_FILE, "PCS-specific Helm values")

        small_template = self.small_template(context, mode)
        if small_template:
            written[SMALL_PCS_FILE] = self._copy(context, small_template, SMALL_PCS_FILE, "Non-HA small_pcs")
        else:
            self.logger.info("HA deployment: Skipping small_pcs.yaml copy.")

        return written

    def small_template(self, context: InstallContext, mode: DeploymentMode) -> Optional[str]:
        if mode.ha_mode is HaMode.HA:
            return None

        template = os.path.join(context.install_dir, SMALL_PCS_TEMPLATE)
        if not os.path.isfile(template):
            raise InstallerError(f"small_pcs.yaml file not found: {template}")
        return template

    def _copy(self, context: InstallContext, source: str, output_name: str, label: str) -> str:
        destination = os.path.join(context.install_dir, output_name)
        self.filesystem_service.copy_file(source, destination, label)
        return source
