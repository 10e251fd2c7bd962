from __future__ import annotations

from typing import Any, Optional

from ..auth.providers import AuthContext, AuthError, make_client
from ..util.errors import map_oci_error

try:
    import oci  # type: ignore
except Exception:  # pragma: no cover - surfaced when the client is built
    oci = None  # type: ignore


def get_cloud_guard_client(ctx: AuthContext, region: Optional[str] = None) -> Any:
    """
    Create a CloudGuardClient with the SDK default retry strategy.
    """
    if oci is None:  # pragma: no cover
        raise AuthError("oci Python SDK not installed.")
    try:
        return make_client(oci.cloud_guard.CloudGuardClient, ctx, region=region)  # type: ignore[attr-defined]
    except AuthError:
        raise
    except Exception as e:
        mapped = map_oci_error(e, "OCI SDK error while creating Cloud Guard client")
        if mapped:
            raise mapped from e
        raise AuthError(f"Failed to create Cloud Guard client: {e}") from e
