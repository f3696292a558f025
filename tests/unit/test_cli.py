"""
Unit tests for CLI interface module.

Commands run through click's CliRunner with a mocked DeploymentPipeline
placed in ``ctx.obj``, so no config file or container engine is needed.

Test Coverage:
- Help, version and usage errors
- Deployment and undeploy commands
- Tenancy and access commands
- Error reporting and exit codes
"""

from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner
from rich.console import Console

from eureka.cli import main
from eureka.deployment_orchestrator import business_pattern, single_module_pattern
from eureka.deployment_pipeline import Resolution
from eureka.errors import HTTPRequestError, ReadinessTimeoutError
from eureka.models import Consortium, ModuleDescriptor


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def pipeline():
    """Mocked pipeline for the 'combined' profile."""
    mock = Mock()
    mock.config.profile = "combined"
    return mock


def invoke(runner, pipeline, *args):
    return runner.invoke(main, list(args), obj={"pipeline": pipeline})


# ============================================================================
# HELP AND USAGE TESTS
# ============================================================================


class TestHelpAndUsage:
    """Test help output and usage errors."""

    def test_no_command_shows_help(self, runner):
        result = runner.invoke(main, [])

        assert result.exit_code == 0
        assert "deploy-application" in result.output
        assert "get-vault-root-token" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_unknown_command_shows_help(self, runner):
        result = runner.invoke(main, ["deploy-everything"])

        assert result.exit_code == 2
        assert "No such command" in result.output
        assert "deploy-modules" in result.output

    def test_missing_required_option(self, runner, pipeline):
        result = invoke(runner, pipeline, "update-realm-lifespan")

        assert result.exit_code == 2
        assert "--seconds" in result.output
        pipeline.update_realm_lifespan.assert_not_called()

    def test_invalid_lifespan(self, runner, pipeline):
        result = invoke(runner, pipeline, "update-realm-lifespan", "--seconds", "0")

        assert result.exit_code == 2
        pipeline.update_realm_lifespan.assert_not_called()

    def test_negative_initial_delay_rejected(self, runner, pipeline):
        result = invoke(runner, pipeline, "deploy-application", "--initial-delay", "-5")

        assert result.exit_code == 2
        pipeline.deploy_application.assert_not_called()


# ============================================================================
# DEPLOYMENT COMMAND TESTS
# ============================================================================


class TestDeploymentCommands:
    """Test deploy and undeploy commands."""

    def test_deploy_management(self, runner, pipeline):
        pipeline.deploy_management.return_value = {"mgr-tenants": 30000, "mgr-applications": 30002}

        result = invoke(runner, pipeline, "deploy-management")

        assert result.exit_code == 0
        assert "Deployed 2 management module(s)" in result.output

    def test_deploy_modules(self, runner, pipeline):
        pipeline.deploy_modules.return_value = {"mod-users": 30004}

        result = invoke(runner, pipeline, "deploy-modules")

        assert result.exit_code == 0
        assert "Deployed 1 business module(s)" in result.output

    def test_deploy_application_passes_initial_delay(self, runner, pipeline):
        pipeline.deploy_application.return_value = Resolution(
            registry_modules={},
            descriptors={"mod-users": ModuleDescriptor(name="mod-users", version="19.3.0")},
        )

        result = invoke(runner, pipeline, "deploy-application", "--initial-delay", "30")

        assert result.exit_code == 0
        assert "Application deployed" in result.output
        pipeline.deploy_application.assert_called_once_with(initial_delay=30.0)

    def test_undeploy_module_uses_single_module_pattern(self, runner, pipeline):
        pipeline.undeploy.return_value = ["combined-mod-users", "combined-mod-users-sc"]

        result = invoke(runner, pipeline, "undeploy-module", "mod-users")

        assert result.exit_code == 0
        assert "Removed 2 container(s)" in result.output
        pipeline.undeploy.assert_called_once_with(single_module_pattern("combined", "mod-users"))

    def test_undeploy_modules_spares_management(self, runner, pipeline):
        pipeline.undeploy.return_value = []

        result = invoke(runner, pipeline, "undeploy-modules")

        assert result.exit_code == 0
        assert "No matching containers found" in result.output
        pipeline.undeploy.assert_called_once_with(business_pattern("combined"))

    def test_list_modules(self, runner, pipeline):
        pipeline.resolve.return_value = Resolution(
            registry_modules={},
            descriptors={
                "mgr-tenants": ModuleDescriptor(
                    name="mgr-tenants", version="2.0.0", port=30000, debug_port=30001, deploy_sidecar=False
                ),
                "mod-users": ModuleDescriptor(
                    name="mod-users",
                    version="19.3.0",
                    port=30002,
                    debug_port=30003,
                    sidecar_port=30004,
                    sidecar_debug_port=30005,
                ),
            },
        )

        with patch("eureka.commands.deployment.console", Console(width=200)):
            result = invoke(runner, pipeline, "list-modules")

        assert result.exit_code == 0
        assert "mgr-tenants" in result.output
        assert "19.3.0" in result.output
        assert "30004" in result.output


# ============================================================================
# TENANCY AND ACCESS COMMAND TESTS
# ============================================================================


class TestTenancyCommands:
    """Test tenancy and access commands."""

    @pytest.mark.parametrize(
        "command,method,message",
        [
            ("create-tenants", "services.management.create_tenants", "Tenants created"),
            ("remove-tenants", "remove_tenants", "Tenants removed"),
            ("create-tenant-entitlements", "create_tenant_entitlements", "Tenant entitlements created"),
            ("create-roles", "create_roles", "Roles created"),
            ("remove-roles", "remove_roles", "Roles removed"),
            ("create-users", "create_users", "Users created"),
            ("remove-users", "remove_users", "Users removed"),
            ("detach-capability-sets", "detach_capability_sets", "Capability sets detached"),
        ],
    )
    def test_simple_commands(self, runner, pipeline, command, method, message):
        result = invoke(runner, pipeline, command)

        target = pipeline
        for part in method.split("."):
            target = getattr(target, part)
        assert result.exit_code == 0
        assert message in result.output
        target.assert_called_once()

    @pytest.mark.parametrize("args,purge", [([], False), (["--purge"], True)])
    def test_remove_tenant_entitlements_purge(self, runner, pipeline, args, purge):
        result = invoke(runner, pipeline, "remove-tenant-entitlements", *args)

        assert result.exit_code == 0
        pipeline.remove_tenant_entitlements.assert_called_once_with(purge)

    def test_attach_capability_sets(self, runner, pipeline):
        result = invoke(runner, pipeline, "attach-capability-sets", "--initial-delay", "0")

        assert result.exit_code == 0
        pipeline.attach_capability_sets.assert_called_once_with(0.0)

    def test_create_consortiums(self, runner, pipeline):
        pipeline.services.consortiums.create_consortiums.return_value = [
            Consortium(id="c-1", name="ecs")
        ]

        result = invoke(runner, pipeline, "create-consortiums")

        assert result.exit_code == 0
        assert "Consortium ready:" in result.output
        assert "ecs (c-1)" in result.output

    def test_no_consortiums(self, runner, pipeline):
        pipeline.services.consortiums.create_consortiums.return_value = []

        result = invoke(runner, pipeline, "create-consortiums")

        assert "No consortiums to create" in result.output

    def test_get_keycloak_access_token(self, runner, pipeline):
        pipeline.services.identity.get_access_token.return_value = "eyJ.token"

        result = invoke(runner, pipeline, "get-keycloak-access-token", "--tenant", "diku")

        assert result.exit_code == 0
        assert result.output.strip() == "eyJ.token"
        pipeline.services.identity.get_access_token.assert_called_once_with("diku")

    def test_update_realm_lifespan(self, runner, pipeline):
        result = invoke(runner, pipeline, "update-realm-lifespan", "--seconds", "3600")

        assert result.exit_code == 0
        assert "Access token lifespan of master set to 3600s" in result.output
        pipeline.update_realm_lifespan.assert_called_once_with(3600, realm="master")

    def test_get_vault_root_token(self, runner, pipeline):
        pipeline.services.secret_store.get_root_token.return_value = "hvs.root"

        result = invoke(runner, pipeline, "get-vault-root-token")

        assert result.exit_code == 0
        assert result.output.strip() == "hvs.root"


# ============================================================================
# ERROR HANDLING TESTS
# ============================================================================


class TestErrorHandling:
    """Test error reporting."""

    def test_readiness_failure_exits_nonzero(self, runner, pipeline):
        pipeline.deploy_management.side_effect = ReadinessTimeoutError("management", ["mgr-tenants"])

        result = invoke(runner, pipeline, "deploy-management")

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Management readiness failed, unready: mgr-tenants" in result.output

    def test_error_messages_are_sanitized(self, runner, pipeline):
        pipeline.create_users.side_effect = HTTPRequestError("POST failed: password=hunter2")

        result = invoke(runner, pipeline, "create-users")

        assert result.exit_code == 1
        assert "hunter2" not in result.output

    def test_missing_config_file(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(main, ["--config", str(tmp_path / "missing.yaml"), "deploy-modules"])

        assert result.exit_code == 1
        assert "Config file not found" in result.output
