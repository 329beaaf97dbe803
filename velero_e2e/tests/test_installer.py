import io

import pytest

from velero_e2e.errors import (
    ClusterUnavailableError,
    ConfigurationError,
    InstallError,
    ReadinessTimeoutError,
)
from velero_e2e.modules.velero.cluster import ClusterBackend
from velero_e2e.modules.velero.installer import Installer, InstallStage, install_velero
from velero_e2e.modules.velero.models import InstallConfig


class FakeBackend(ClusterBackend):
    def __init__(self, fail_at=None, error=None):
        self.fail_at = fail_at
        self.error = error or RuntimeError("boom")
        self.calls = []
        self.installed = None

    def _step(self, name):
        self.calls.append(name)
        if name == self.fail_at:
            raise self.error

    def ensure_cluster_exists(self):
        self._step("cluster")

    def build_resources(self, install_config):
        self._step("build")
        self.installed = install_config
        return [{"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": install_config.namespace}}]

    def apply_resources(self, resources, out):
        self._step("apply")
        out.write("Namespace/velero: created\n")

    def wait_for_deployment(self, namespace):
        self._step("deployment")

    def wait_for_daemonset(self, namespace):
        self._step("daemonset")


def _config(use_node_agent=False):
    return InstallConfig(provider="aws", credentials_file="/creds", bucket="b",
                         namespace="velero-e2e", use_node_agent=use_node_agent)


def test_full_sequence_with_node_agent():
    backend = FakeBackend()
    out = io.StringIO()
    installer = Installer(backend=backend, out=out)
    installer.install(_config(use_node_agent=True))
    assert backend.calls == ["cluster", "build", "apply", "deployment", "daemonset"]
    assert installer.stage is InstallStage.DONE
    assert "created" in out.getvalue()


def test_daemonset_skipped_without_node_agent():
    backend = FakeBackend()
    Installer(backend=backend, out=io.StringIO()).install(_config())
    assert backend.calls == ["cluster", "build", "apply", "deployment"]


def test_cluster_failure_aborts_everything():
    backend = FakeBackend(fail_at="cluster", error=ClusterUnavailableError("no cluster"))
    installer = Installer(backend=backend, out=io.StringIO())
    with pytest.raises(ClusterUnavailableError, match="Failed to ensure kubernetes cluster exists"):
        installer.install(_config())
    assert backend.calls == ["cluster"]
    assert installer.stage is InstallStage.CLUSTER_CHECK


def test_resource_build_failure_is_a_configuration_error():
    backend = FakeBackend(fail_at="build", error=ConfigurationError("bad flags"))
    with pytest.raises(ConfigurationError, match="translate install options"):
        Installer(backend=backend, out=io.StringIO()).install(_config())
    assert backend.calls == ["cluster", "build"]


@pytest.mark.parametrize("stage", ["apply", "deployment", "daemonset"])
def test_late_failures_carry_deploy_logs_hint(stage):
    backend = FakeBackend(fail_at=stage, error=ReadinessTimeoutError("timed out"))
    with pytest.raises(InstallError) as exc:
        Installer(backend=backend, out=io.StringIO()).install(_config(use_node_agent=True))
    assert "kubectl logs deploy/velero -n velero-e2e" in str(exc.value)
    assert backend.calls[-1] == stage


def _install(backend, tmp_path, **overrides):
    params = dict(
        image="velero/velero:v1.5.2",
        namespace="velero",
        cloud_provider="aws",
        object_store_provider="",
        use_volume_snapshots=False,
        credentials_file=str(tmp_path / "creds"),
        bucket="bucket",
        prefix="",
        bsl_config="region=us-east-1",
        vsl_config="",
        features="",
    )
    params.update(overrides)
    return install_velero(installer=Installer(backend=backend, out=io.StringIO()), **params)


def test_install_velero_on_cloud_uses_cloud_object_store(tmp_path):
    backend = FakeBackend()
    cfg = _install(backend, tmp_path)
    assert cfg is backend.installed
    assert cfg.provider == "aws"
    assert cfg.plugins == ["velero/velero-plugin-for-aws:v1.1.0"]
    assert cfg.use_node_agent is True
    assert cfg.image == "velero/velero:v1.5.2"
    assert cfg.backup_storage_config == {"region": "us-east-1"}
    assert backend.calls[-1] == "daemonset"


def test_install_velero_with_volume_snapshots_skips_node_agent(tmp_path):
    backend = FakeBackend()
    cfg = _install(backend, tmp_path, use_volume_snapshots=True)
    assert cfg.use_node_agent is False
    assert "daemonset" not in backend.calls


def test_install_velero_cloud_rejects_object_store_override(tmp_path):
    backend = FakeBackend()
    with pytest.raises(ConfigurationError, match="cannot be overridden"):
        _install(backend, tmp_path, object_store_provider="azure")
    assert backend.calls == []


def test_install_velero_kind_requires_object_store(tmp_path):
    with pytest.raises(ConfigurationError, match="No object store provider"):
        _install(FakeBackend(), tmp_path, cloud_provider="kind")


def test_install_velero_kind_with_object_store(tmp_path):
    cfg = _install(FakeBackend(), tmp_path, cloud_provider="kind", object_store_provider="aws")
    assert cfg.provider == "aws"


def test_install_velero_missing_credentials(tmp_path):
    with pytest.raises(ConfigurationError, match="plugin provider aws"):
        _install(FakeBackend(), tmp_path, credentials_file="")


def test_install_velero_wraps_install_errors(tmp_path):
    backend = FakeBackend(fail_at="deployment")
    with pytest.raises(InstallError, match="Failed to install Velero in cluster"):
        _install(backend, tmp_path)
