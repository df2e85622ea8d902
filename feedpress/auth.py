"""Tenant identity resolution."""

import os
from typing import Optional

from .errors import AuthenticationError

TENANT_ENV = "FEEDPRESS_TENANT"


def resolve_current_tenant(explicit: Optional[str] = None) -> str:
    """Resolve the caller's tenant from an explicit value or FEEDPRESS_TENANT."""
    tenant = explicit if explicit is not None else os.environ.get(TENANT_ENV)
    if tenant is None or not tenant.strip():
        raise AuthenticationError(
            f"No tenant identity: pass --tenant or set {TENANT_ENV}"
        )
    return tenant.strip()
