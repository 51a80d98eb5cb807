"""Static layout and tool tables for dr-preinstall."""

import os

DIR_MODE = 0o755

DEFAULT_PARENT_DIR = "/opt/datarobot"
INSTALL_DIR_PREFIX = "DataRobot-"
DEFAULT_LOG_FILE = os.path.join(os.path.expanduser("~"), "logs", "datarobot_installation.log")
DEFAULT_CONFIG_FILE = ".dr-preinstall.yml"

BINARY_NAMES = ("main", "pcs", "tools")
IMAGE_BINARY_NAMES = ("main", "pcs")
IMAGES_DIR_NAME = "images"
TAR_EXTENSION = ".tar"
ZSTD_EXTENSION = ".zst"
DEFAULT_ZSTD_WINDOW_LOG = 30

REQUIRED_TOOLS = ("wget", "tar", "zstd", "jq")
INSTALLABLE_UTILITIES = ("kubectl", "helm", "git", "zstd", "docker", "podman", "jq")
SYSTEM_BIN_DIR = "/usr/local/bin"
KUBECTL_STABLE_URL = "https://dl.k8s.io/release/stable.txt"
KUBECTL_DOWNLOAD_URL = "https://dl.k8s.io/release/{version}/bin/linux/amd64/kubectl"
HELM_VERSION = "v3.13.0"
HELM_DOWNLOAD_URL = "https://get.helm.sh/helm-{version}-linux-amd64.tar.gz"

DOCKER_SOCKET = "/var/run/docker.sock"

ECR_DOMAIN_MARKER = ".dkr.ecr."
ECR_AUXILIARY_REPOSITORIES = (
    "base-image",
    "services/custom-model-conversion",
    "managed-image",
    "ephemeral-image",
    "custom-apps/managed-image",
    "custom-jobs/managed-image",
)
ACR_TOKEN_USERNAME = "00000000-0000-0000-0000-000000000000"
GAR_KEY_ENV_VAR = "GCP_BASE64_SERVICE_ACCOUNT_KEY"
GAR_LOGIN_USERNAME = "_json_key_base64"
REGISTRY_EXCLUDE_MARKER = "registry"

UMBRELLA_VALUES_DIR = os.path.join("tools", "example_umbrella_chart_values")
SMALL_PCS_TEMPLATE = os.path.join("tools", "example_tshirt_size_values", "small_pcs.yaml")
VALUES_FILE = "values.yaml"
PCS_VALUES_FILE = "pcs-values.yaml"
SMALL_PCS_FILE = "small_pcs.yaml"
PCS_MARKER = "pcs"
