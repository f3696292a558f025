"""Platform-wide constants shared by the deployment pipeline."""

# Container network
NETWORK_ID = "eureka"
HOST_IP = "0.0.0.0"
PRIVATE_SERVER_PORT = 8081
PRIVATE_DEBUG_PORT = 5005
RESTART_POLICY = "always"

# Port range
DEFAULT_PORT_START = 30000
DEFAULT_PORT_END = 31000

# Module naming
MANAGEMENT_MODULE_PREFIX = "mgr-"
EDGE_MODULE_PREFIX = "edge-"
SIDECAR_SUFFIX = "-sc"
SIDECAR_PROJECT_NAME = "folio-module-sidecar"
MODULE_ID_PATTERN = r"^([a-z_-]+)([\d_.-]+)([-\w.]+)$"

# Registries and images
FOLIO_REGISTRY = "folio"
EUREKA_REGISTRY = "eureka"
DEFAULT_REGISTRY_URL = "https://folio-registry.dev.folio.org"
SNAPSHOT_NAMESPACE = "folioci"
RELEASE_NAMESPACE = "folioorg"
ECR_REPOSITORY_ENV = "AWS_ECR_FOLIO_REPO"

# Container resources (memory in MiB)
MODULE_CPU = 1
MODULE_MEMORY_RESERVATION = 120
MODULE_MEMORY = 750
MODULE_SWAP = -1
SIDECAR_CPU = 1
SIDECAR_MEMORY_RESERVATION = 64
SIDECAR_MEMORY = 450
SIDECAR_SWAP = -1

# Infrastructure endpoints (inside the container network)
VAULT_HTTP = "http://vault.eureka:8200"
KEYCLOAK_HTTP = "http://keycloak.eureka:8080"
KAFKA_TCP = "kafka.eureka:9092"
GATEWAY_PORT = 8000
GATEWAY_ADMIN_PORT = 8001

# Infrastructure containers
VAULT_CONTAINER = "vault"
KAFKA_TOOLS_CONTAINER = "kafka-tools"
VAULT_ROOT_TOKEN_MARKER = "init.sh: Root VAULT TOKEN is:"

# Identity provider
MASTER_REALM = "master"
ADMIN_CLIENT_ID = "folio-backend-admin-client"
ADMIN_CLIENT_SECRET = "supersecret"  # noqa: S105 - well-known local dev client
ADMIN_CLI_CLIENT_ID = "admin-cli"
KEYCLOAK_ADMIN_USERNAME = "admin"
KEYCLOAK_ADMIN_PASSWORD = "admin"  # noqa: S105 - well-known local dev credential
CAPABILITY_SET_BATCH_SIZE = 250

# Broker
CAPABILITY_CONSUMER_GROUP = "{env}-mod-roles-keycloak-capability-group"
DEFAULT_ENV_NAME = "folio"

# Tenancy
NO_CONSORTIUM = "nop"
DEFAULT_TENANT_TYPE = "default"
CENTRAL_TENANT_TYPE = "central"
MEMBER_TENANT_TYPE = "member"
TENANT_TYPES = (CENTRAL_TENANT_TYPE, MEMBER_TENANT_TYPE)

# HTTP headers
OKAPI_TENANT_HEADER = "X-Okapi-Tenant"
OKAPI_TOKEN_HEADER = "X-Okapi-Token"
VAULT_TOKEN_HEADER = "X-Vault-Token"

# Health
HEALTH_PATH = "/admin/health"
PING_TIMEOUT = 15
