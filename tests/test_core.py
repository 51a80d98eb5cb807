import os

import pytest

from dr_preinstall.core import Installer
from dr_preinstall.errors import InstallerError


class FakeResponse:
    def __init__(self, payload: bytes):
        self.payload = payload
        self.headers = {"Content-Length": str(len(payload))}

    def raise_for_status(self):
        return None

    def iter_content(self, chunk_size=8192):
        yield self.payload

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class FakeRequestsModule:
    class RequestException(Exception):
        pass

    def __init__(self):
        self.urls = []

    def get(self, url, *_args, **_kwargs):
        self.urls.append(url)
        return FakeResponse(b"bundle")


def _installer(tmp_path, prompts, **kwargs):
    return Installer(release_version="10.2.0", parent_dir=str(tmp_path), prompts=prompts, **kwargs)


def _record_modules(monkeypatch, installer, failing=None):
    executed = []

    def make(name):
        def module():
            executed.append(name)
            if name == failing:
                raise InstallerError(f"{name} exploded")

        return module

    for name in Installer.MODULES:
        monkeypatch.setattr(installer, name, make(name))
    return executed


def test_full_run_executes_every_module_in_order(tmp_path, monkeypatch, prompts_factory):
    installer = _installer(tmp_path, prompts_factory([]))
    executed = _record_modules(monkeypatch, installer)

    assert installer.run() == 0
    assert executed == list(Installer.MODULES)
    assert os.path.isdir(os.path.join(str(tmp_path), "DataRobot-10.2.0"))


def test_full_run_stops_at_first_failing_module(tmp_path, monkeypatch, prompts_factory):
    installer = _installer(tmp_path, prompts_factory([]))
    executed = _record_modules(monkeypatch, installer, failing="extract_binaries")

    assert installer.run() == 1
    assert executed[-1] == "extract_binaries"
    assert "extract_zstd_files" not in executed


def test_prompted_run_skips_declined_modules(tmp_path, monkeypatch, prompts_factory):
    answers = ["y", "n", "maybe"] + ["y"] * (len(Installer.MODULES) - 3)
    installer = _installer(tmp_path, prompts_factory(answers))
    executed = _record_modules(monkeypatch, installer)

    assert installer.run(prompt_mode=True) == 0
    assert executed == [name for name in Installer.MODULES if name not in ("install_utilities", "select_container_runtime")]


def test_prompted_run_still_aborts_on_failure(tmp_path, monkeypatch, prompts_factory):
    installer = _installer(tmp_path, prompts_factory(["y", "y"]))
    executed = _record_modules(monkeypatch, installer, failing="install_utilities")

    assert installer.run(prompt_mode=True) == 1
    assert executed == ["check_dependencies", "install_utilities"]


@pytest.mark.parametrize("only", ["", "Extract_Binaries", "nope"])
def test_only_with_unknown_name_lists_modules(tmp_path, monkeypatch, capsys, prompts_factory, only):
    installer = _installer(tmp_path, prompts_factory([]))
    executed = _record_modules(monkeypatch, installer)

    assert installer.run(only=only) == 0

    output = capsys.readouterr().out
    assert "Available modules:" in output
    for name in Installer.MODULES:
        assert name in output
    assert executed == []
    assert not os.path.exists(os.path.join(str(tmp_path), "DataRobot-10.2.0"))


def test_only_runs_exactly_one_module(tmp_path, monkeypatch, prompts_factory):
    installer = _installer(tmp_path, prompts_factory([]))
    executed = _record_modules(monkeypatch, installer)

    assert installer.run(only="create_helm_values") == 0
    assert executed == ["create_helm_values"]


def test_only_reports_module_failure(tmp_path, monkeypatch, prompts_factory):
    installer = _installer(tmp_path, prompts_factory([]))
    _record_modules(monkeypatch, installer, failing="create_helm_values")

    assert installer.run(only="create_helm_values") == 1


def test_invalid_version_is_rejected(tmp_path, prompts_factory):
    installer = Installer(release_version="ten", parent_dir=str(tmp_path), prompts=prompts_factory([]))

    assert installer.run() == 1


def test_install_dir_creation_failure_exits(tmp_path, prompts_factory):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file", encoding="utf-8")
    installer = Installer(release_version="10.2.0", parent_dir=str(blocker), prompts=prompts_factory([]))

    assert installer.run() == 1


def test_context_is_collected_from_prompts(tmp_path, prompts_factory):
    prompts = prompts_factory(["10.2.0", str(tmp_path)])
    installer = Installer(prompts=prompts)

    context = installer.prepare_context()

    assert context.version == "10.2.0"
    assert context.install_dir == os.path.join(str(tmp_path), "DataRobot-10.2.0")


def test_download_scenario_fetches_three_binaries(tmp_path, prompts_factory):
    prompts = prompts_factory(
        [
            "https://downloads.example.com/datarobot-10.2.0",
            "https://downloads.example.com/pcs-10.2.0.tar",
            "https://downloads.example.com/tools-10.2.0",
        ]
    )
    installer = _installer(tmp_path, prompts)
    requests_module = FakeRequestsModule()
    installer.download_service.requests = requests_module

    installer.prepare_context()
    for name in ("setup_directories", "initialize_binaries", "download_binaries"):
        installer.run_module(name)

    install_dir = os.path.join(str(tmp_path), "DataRobot-10.2.0")
    assert len(requests_module.urls) == 3
    assert os.path.isfile(os.path.join(install_dir, "main", "datarobot-10.2.0.tar"))
    assert os.path.isfile(os.path.join(install_dir, "pcs", "pcs-10.2.0.tar"))
    assert os.path.isfile(os.path.join(install_dir, "tools", "tools-10.2.0.tar"))

    installer.run_module("download_binaries")
    assert len(requests_module.urls) == 3


def test_module_failure_carries_rerun_hint(tmp_path, prompts_factory):
    installer = _installer(tmp_path, prompts_factory(["y"]))
    installer.prepare_context().environment_name = "aws"

    with pytest.raises(InstallerError, match="--only create_helm_values"):
        installer.run_module("create_helm_values")
