"""Identity Provider endpoint presets.

Available presets:
- keycloak: Red Hat Keycloak / RH-SSO
"""

from oidcdemo.idp_presets.keycloak import (
    KEYCLOAK_SETUP_GUIDE,
    KeycloakEndpoints,
    get_setup_guide,
)

__all__ = [
    "KEYCLOAK_SETUP_GUIDE",
    "KeycloakEndpoints",
    "get_setup_guide",
]
