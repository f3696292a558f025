"""eureka - deployment orchestration CLI for a multi-tenant module platform

Philosophy:
- Fail fast with helpful guidance
- Brick architecture (self-contained modules behind Protocol seams)
- All state is transient: rebuilt from config and live services on every run
- Security by design (no secrets in logs)

The eureka CLI brings up backend module containers with their sidecars,
verifies readiness, and rolls tenants, entitlements, roles, users and
capability sets out across consortiums.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
