import os

import pytest

from dr_preinstall.errors import InstallerError
from dr_preinstall.models import (
    ContainerEngine,
    ImageRef,
    InstallContext,
    RegistryKind,
    RegistryTarget,
)


def test_install_dir_is_derived_from_parent_and_version(tmp_path):
    context = InstallContext.create("10.2.0", str(tmp_path))

    assert context.install_dir == os.path.join(str(tmp_path), "DataRobot-10.2.0")
    assert context.images_dir("main") == os.path.join(context.install_dir, "main", "images")


def test_extract_subdir_moves_images_root(tmp_path):
    context = InstallContext.create("10.2.0", str(tmp_path), extract_subdir="extracted")

    assert context.images_dir("pcs") == os.path.join(context.install_dir, "pcs", "extracted", "images")


def test_container_engine_is_set_once(tmp_path):
    context = InstallContext.create("10.2.0", str(tmp_path))
    context.set_container_engine(ContainerEngine.PODMAN)

    with pytest.raises(InstallerError, match="already set"):
        context.set_container_engine(ContainerEngine.DOCKER)


def test_engine_command_prefixes():
    assert ContainerEngine.DOCKER.command == ["docker"]
    assert ContainerEngine.PODMAN.command == ["podman"]
    assert ContainerEngine.SUDO_DOCKER.command == ["sudo", "docker"]


def test_image_ref_parse_handles_registry_ports():
    assert ImageRef.parse("app:1.0") == ImageRef("app", "1.0")
    assert ImageRef.parse("localhost:5000/team/app:2.1") == ImageRef("localhost:5000/team/app", "2.1")
    assert ImageRef.parse("localhost:5000/app") == ImageRef("localhost:5000/app", "latest")


def test_prefixed_destination_for_cloud_backends():
    target = RegistryTarget(
        kind=RegistryKind.AZURE_ACR,
        base_url="myacr.azurecr.io",
        repository_prefix="datarobot-dev",
        exclude_patterns=("registry",),
    )

    destination = target.destination_for(ImageRef("datarobot/app", "10.2.0"))

    assert destination.reference == "myacr.azurecr.io/datarobot-dev/datarobot/app:10.2.0"


def test_generic_destination_replaces_source_host():
    target = RegistryTarget(
        kind=RegistryKind.GENERIC,
        base_url="harbor.local",
        repository_prefix="datarobot-dev",
    )

    assert target.destination_for(ImageRef("app", "1.0")).reference == "harbor.local/app:1.0"
    assert target.destination_for(ImageRef("quay.io/team/app", "1.0")).reference == "harbor.local/team/app:1.0"


def test_exclusion_predicate_matches_any_pattern():
    target = RegistryTarget(
        kind=RegistryKind.AWS_ECR,
        base_url="123.dkr.ecr.us-east-1.amazonaws.com",
        repository_prefix="dr",
        exclude_patterns=("registry", ".dkr.ecr."),
    )

    assert target.excludes(ImageRef("registry.io/other", "2.0"))
    assert target.excludes(ImageRef("123.dkr.ecr.us-east-1.amazonaws.com/dr/app", "1"))
    assert not target.excludes(ImageRef("app", "1.0"))


def test_environment_names_follow_registry_kind():
    assert [kind.environment_name for kind in RegistryKind] == ["generic", "aws", "azure", "google"]
