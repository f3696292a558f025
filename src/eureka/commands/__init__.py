"""Commands for eureka CLI."""

from eureka.commands.access import (
    attach_capability_sets,
    create_roles,
    create_users,
    detach_capability_sets,
    get_keycloak_access_token,
    remove_roles,
    remove_users,
    update_realm_lifespan,
)
from eureka.commands.deployment import (
    deploy_application,
    deploy_management,
    deploy_modules,
    list_modules,
    undeploy_application,
    undeploy_management,
    undeploy_module,
    undeploy_modules,
)
from eureka.commands.system import get_vault_root_token
from eureka.commands.tenancy import (
    create_consortiums,
    create_tenant_entitlements,
    create_tenants,
    remove_tenant_entitlements,
    remove_tenants,
)

ALL_COMMANDS = [
    deploy_management,
    deploy_modules,
    deploy_application,
    undeploy_application,
    undeploy_management,
    undeploy_modules,
    undeploy_module,
    list_modules,
    create_tenants,
    remove_tenants,
    create_tenant_entitlements,
    remove_tenant_entitlements,
    create_consortiums,
    create_roles,
    remove_roles,
    create_users,
    remove_users,
    attach_capability_sets,
    detach_capability_sets,
    get_keycloak_access_token,
    update_realm_lifespan,
    get_vault_root_token,
]

__all__ = ["ALL_COMMANDS"]
