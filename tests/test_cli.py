"""Tests for agent_ops/cli.py using click's CliRunner."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from agent_ops.cli import cli
from agent_ops.config.deployment import load_deployment_config
from agent_ops.deploy.environment import CheckResult


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestValidateConfig:

    def test_valid(self, runner, deployment_file):
        result = runner.invoke(cli, ["validate-config", deployment_file])
        assert result.exit_code == 0
        assert "production-agent (gemini-1.5-pro)" in result.output
        assert "60/min, 10000/day" in result.output

    def test_default_path_from_settings(self, runner, override_settings, deployment_file):
        override_settings(DEPLOYMENT_CONFIG_PATH=deployment_file)
        result = runner.invoke(cli, ["validate-config"])
        assert result.exit_code == 0

    def test_invalid(self, runner, write_deployment, deployment_dict):
        deployment_dict["monitoring"]["alerting"]["thresholds"]["error_rate"] = 2
        result = runner.invoke(cli, ["validate-config", write_deployment(deployment_dict)])
        assert result.exit_code == 1
        assert "monitoring.alerting.thresholds.error_rate" in result.output


class TestInitConfig:

    def test_writes_loadable_config(self, runner, tmp_path):
        target = tmp_path / "config" / "deployment.yaml"
        result = runner.invoke(cli, ["init-config", str(target), "--name", "support-agent"])
        assert result.exit_code == 0
        assert load_deployment_config(target).agent.name == "support-agent"

    def test_refuses_overwrite(self, runner, deployment_file):
        result = runner.invoke(cli, ["init-config", deployment_file])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_invalid_name(self, runner, tmp_path):
        result = runner.invoke(cli, ["init-config", str(tmp_path / "d.yaml"), "--name", "bad name"])
        assert result.exit_code == 1


class TestRenderDockerfile:

    def test_stdout(self, runner):
        result = runner.invoke(cli, ["render-dockerfile", "--port", "9000"])
        assert result.exit_code == 0
        assert "EXPOSE 9000" in result.output

    def test_output_file(self, runner, tmp_path):
        target = tmp_path / "Dockerfile"
        result = runner.invoke(cli, ["render-dockerfile", "-o", str(target)])
        assert result.exit_code == 0
        assert target.read_text().startswith("FROM python:3.11-slim")

    def test_root_user_rejected(self, runner):
        result = runner.invoke(cli, ["render-dockerfile", "--user", "root"])
        assert result.exit_code == 1


class TestGcloudSetup:

    def test_prints_commands(self, runner):
        result = runner.invoke(cli, ["gcloud-setup", "--project", "my-agent-project"])
        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert lines[0] == "gcloud config set project my-agent-project"
        assert len(lines) == 5

    def test_project_required(self, runner, override_settings):
        override_settings(GOOGLE_CLOUD_PROJECT="")
        result = runner.invoke(cli, ["gcloud-setup"])
        assert result.exit_code == 1
        assert "GOOGLE_CLOUD_PROJECT" in result.output

    def test_owner_role_refused(self, runner):
        result = runner.invoke(cli, ["gcloud-setup", "--project", "my-agent-project", "--role", "roles/owner"])
        assert result.exit_code == 1


class TestCheckEnv:

    def test_all_pass(self, runner):
        with patch("agent_ops.cli.check_environment", return_value=[CheckResult("python", True, "3.11")]):
            result = runner.invoke(cli, ["check-env"])
        assert result.exit_code == 0
        assert "[PASS] python" in result.output

    def test_failure_exit_code(self, runner):
        with patch("agent_ops.cli.check_environment", return_value=[CheckResult("gcloud", False, "missing")]):
            result = runner.invoke(cli, ["check-env"])
        assert result.exit_code == 1
        assert "[FAIL] gcloud" in result.output


class TestCheckCredentials:

    def test_valid_key(self, runner, override_settings, service_account_file):
        override_settings(GOOGLE_APPLICATION_CREDENTIALS=str(service_account_file))
        result = runner.invoke(cli, ["check-credentials"])
        assert result.exit_code == 0
        assert "agent-service@agent-project-123" in result.output
        assert "passed" in result.output

    def test_unset_variable(self, runner, override_settings):
        override_settings(GOOGLE_APPLICATION_CREDENTIALS="")
        result = runner.invoke(cli, ["check-credentials"])
        assert result.exit_code == 1
        assert "GOOGLE_APPLICATION_CREDENTIALS" in result.output

    def test_key_in_git_tree(self, runner, tmp_path, service_account_file):
        (tmp_path / ".git").mkdir()
        result = runner.invoke(cli, ["check-credentials", str(service_account_file)])
        assert result.exit_code == 1
        assert "WARNING" in result.output


class TestDiagnose:

    def test_match(self, runner):
        result = runner.invoke(cli, ["diagnose", "No module named 'google.adk'"])
        assert result.exit_code == 0
        assert result.output.startswith("missing_dependency")

    def test_list(self, runner):
        result = runner.invoke(cli, ["diagnose", "--list"])
        assert result.exit_code == 0
        assert "wsl_memory" in result.output

    def test_requires_message(self, runner):
        result = runner.invoke(cli, ["diagnose"])
        assert result.exit_code == 2


class TestServe:

    def test_runs_uvicorn_on_port(self, runner, override_settings):
        override_settings(PORT="8123")
        with patch("uvicorn.run") as run:
            result = runner.invoke(cli, ["serve"])
        assert result.exit_code == 0
        run.assert_called_once_with("agent_ops.main:app", host="0.0.0.0", port=8123)
