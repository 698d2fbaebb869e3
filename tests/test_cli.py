"""End-to-end tests for the helm-bulk CLI using Click framework."""

import subprocess

import pytest
from click.testing import CliRunner

from helm_bulk import cli

MANIFEST = """
    dry_run: true
    create_namespace: true
    wait: false
    timeout: false
    charts:
      - release_name: argocd
        chart_name: argo-cd
        chart_repo: https://argoproj.github.io/argo-helm
        values_file: values/argocd.yaml
        version: 6.4.0
        namespace: argo-cd
      - release_name: redis
        chart_name: redis
        chart_repo: oci://registry-1.docker.io/bitnamicharts
        values_file: values/redis.yaml
"""


class FakeSubprocess:
    """Stands in for subprocess.run and records every helm invocation."""

    def __init__(self, failing=None, output="ok"):
        self.calls = []
        self.failing = failing
        self.output = output

    def __call__(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        if cmd[1:3] == ["repo", "list"]:
            return subprocess.CompletedProcess(cmd, 0, stdout="[]", stderr="")
        returncode = 1 if self.failing and self.failing in cmd else 0
        return subprocess.CompletedProcess(cmd, returncode, stdout=self.output, stderr=None)

    def commands(self, *prefix):
        return [cmd for cmd in self.calls if cmd[1:1 + len(prefix)] == list(prefix)]


@pytest.fixture
def fake_subprocess(monkeypatch):
    fake = FakeSubprocess()
    monkeypatch.setattr("helm_bulk.helm_executor.subprocess.run", fake)
    monkeypatch.setattr("helm_bulk.orchestrator.time.sleep", lambda seconds: None)
    return fake


def invoke(args, tmp_path):
    runner = CliRunner()
    return runner.invoke(cli, args + ["--log-file", str(tmp_path / "helm-bulk.log")])


def test_dry_run_install_e2e(write_manifest, fake_subprocess, tmp_path):
    """End-to-end test: dry-run install of an HTTPS and an OCI chart.

    Verifies:
    1. CLI exit code is 0
    2. The HTTPS repository is registered once under its host alias
    3. One helm upgrade --install per chart, in manifest order
    4. helm output and commands are written to the run log
    """
    path = write_manifest(MANIFEST)

    result = invoke(["install", "-f", str(path)], tmp_path)

    assert result.exit_code == 0, f"CLI failed with exit code {result.exit_code}\nOutput:\n{result.output}"
    assert "2 chart(s) completed" in result.output

    assert fake_subprocess.commands("repo", "add") == [
        ["helm", "repo", "add", "argoproj.github.io", "https://argoproj.github.io/argo-helm"]
    ]
    installs = fake_subprocess.commands("upgrade")
    assert installs == [
        ["helm", "upgrade", "--install", "argocd", "argoproj.github.io/argo-cd",
         "-f", "values/argocd.yaml", "--namespace", "argo-cd",
         "--dry-run=client", "--create-namespace", "--version", "6.4.0"],
        ["helm", "upgrade", "--install", "redis", "oci://registry-1.docker.io/bitnamicharts/redis",
         "-f", "values/redis.yaml", "--namespace", "default",
         "--dry-run=client", "--create-namespace"],
    ]

    log_text = (tmp_path / "helm-bulk.log").read_text()
    assert "Running: helm upgrade --install argocd" in log_text
    assert "[helm] ok" in log_text, "helm output should be copied into the run log"


def test_default_manifest_path(write_manifest, fake_subprocess, tmp_path, monkeypatch):
    """Test that config.yaml in the working directory is used by default."""
    write_manifest(MANIFEST)
    monkeypatch.chdir(tmp_path)

    result = invoke(["uninstall"], tmp_path)

    assert result.exit_code == 0, result.output
    assert fake_subprocess.commands("uninstall") == [
        ["helm", "uninstall", "argocd", "--namespace", "argo-cd"],
        ["helm", "uninstall", "redis", "--namespace", "default"],
    ]
    assert fake_subprocess.commands("repo", "add") == []


def test_missing_manifest(fake_subprocess, tmp_path):
    """Test that a missing manifest exits with code 8 before running helm."""
    result = invoke(["install", "-f", str(tmp_path / "missing.yaml")], tmp_path)

    assert result.exit_code == 8
    assert "Manifest file not found" in result.output
    assert fake_subprocess.calls == []
    assert "ERROR - helm_bulk - Manifest file not found" in (tmp_path / "helm-bulk.log").read_text()


def test_missing_values_file_aborts_before_helm(write_manifest, fake_subprocess, tmp_path):
    """Test that a chart without values_file fails the run before any helm call."""
    path = write_manifest("""
        charts:
          - release_name: first
            chart_name: nginx
            chart_repo: oci://registry-1.docker.io/bitnamicharts
            values_file: values/nginx.yaml
          - release_name: second
            chart_name: redis
            chart_repo: oci://registry-1.docker.io/bitnamicharts
    """)

    result = invoke(["install", "-f", str(path)], tmp_path)

    assert result.exit_code == 6
    assert "values_file" in result.output
    assert fake_subprocess.calls == []


def test_helm_failure_exit_code(write_manifest, fake_subprocess, tmp_path):
    """Test that a failing helm command exits with code 5 and skips later charts."""
    fake_subprocess.failing = "argocd"
    path = write_manifest(MANIFEST)

    result = invoke(["install", "-f", str(path)], tmp_path)

    assert result.exit_code == 5
    assert "argocd failed with exit code 1" in result.output
    assert [cmd[3] for cmd in fake_subprocess.commands("upgrade")] == ["argocd"]


def test_no_pods_after_install(write_manifest, fake_subprocess, tmp_path, monkeypatch):
    """Test that a real install whose release has no pods exits with code 3."""
    monkeypatch.setattr("helm_bulk.orchestrator.PodPhaseLister", lambda: (lambda release, namespace: []))
    path = write_manifest(MANIFEST.replace("dry_run: true", "dry_run: false"))

    result = invoke(["install", "-f", str(path)], tmp_path)

    assert result.exit_code == 3
    assert "No pods found for release argocd" in result.output
    assert len(fake_subprocess.commands("upgrade")) == 1


def test_unknown_flag(fake_subprocess, tmp_path):
    """Test that an unknown flag exits with code 7."""
    result = invoke(["install", "--bogus"], tmp_path)

    assert result.exit_code == 7
    assert fake_subprocess.calls == []


def test_missing_flag_value(fake_subprocess):
    """Test that -f without a value exits with code 7."""
    result = CliRunner().invoke(cli, ["install", "-f"])

    assert result.exit_code == 7


def test_unknown_action(fake_subprocess):
    """Test that an unknown action exits with code 4."""
    result = CliRunner().invoke(cli, ["deploy"])

    assert result.exit_code == 4
    assert "Invalid action 'deploy'" in result.output


def test_help_action():
    """Test that the help action prints usage for all actions."""
    result = CliRunner().invoke(cli, ["help"])

    assert result.exit_code == 0
    assert "install" in result.output
    assert "uninstall" in result.output


def test_previous_log_is_rotated(write_manifest, fake_subprocess, tmp_path):
    """Test that the previous run log is archived at startup."""
    log_file = tmp_path / "helm-bulk.log"
    log_file.write_text("previous run\n")
    path = write_manifest(MANIFEST)

    result = invoke(["install", "-f", str(path)], tmp_path)

    assert result.exit_code == 0, result.output
    assert (tmp_path / "helm-bulk.log.1").read_text() == "previous run\n"
    assert "previous run" not in log_file.read_text()


def test_readiness_timeout_exit_code(write_manifest, fake_subprocess, tmp_path, monkeypatch):
    """Test that a release whose pods never run exits with code 2 and is logged."""
    clock = {"now": 0.0}

    def fake_sleep(seconds):
        clock["now"] += seconds

    monkeypatch.setattr("helm_bulk.orchestrator.time.sleep", fake_sleep)
    monkeypatch.setattr("helm_bulk.orchestrator.time.monotonic", lambda: clock["now"])
    monkeypatch.setattr("helm_bulk.orchestrator.PodPhaseLister", lambda: (lambda release, namespace: ["Pending"]))
    path = write_manifest(MANIFEST.replace("dry_run: true", "dry_run: false"))

    result = invoke(["install", "-f", str(path)], tmp_path)

    assert result.exit_code == 2
    assert "not ready after 1200 seconds" in result.output
    assert len(fake_subprocess.commands("upgrade")) == 1
    assert "ERROR - helm_bulk - Release argocd" in (tmp_path / "helm-bulk.log").read_text()


def test_manifest_not_utf8(fake_subprocess, tmp_path):
    """Test that an undecodable manifest exits with code 6 and reaches the run log."""
    path = tmp_path / "config.yaml"
    path.write_bytes(b"charts:\n  - release_name: \xff\xfe\n")

    result = invoke(["install", "-f", str(path)], tmp_path)

    assert result.exit_code == 6
    assert fake_subprocess.calls == []
    assert "ERROR - helm_bulk - Invalid manifest" in (tmp_path / "helm-bulk.log").read_text()


def test_no_action(fake_subprocess):
    """Test that running without an action exits with code 7, never 2."""
    result = CliRunner().invoke(cli, [])

    assert result.exit_code == 7
    assert "Missing action" in result.output
