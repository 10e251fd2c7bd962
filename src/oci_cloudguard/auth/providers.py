from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..util.errors import OCIClientError, map_oci_error

try:
    import oci  # type: ignore
except Exception:  # pragma: no cover - import error surfaced at runtime
    oci = None  # type: ignore


ConfigDict = Dict[str, Any]

AUTH_METHODS = ("auto", "config", "instance", "resource", "security_token")


@dataclass(frozen=True)
class AuthContext:
    """
    Resolved credentials for building the Cloud Guard client.
    Exactly one of (config_dict, signer) is set.
    """

    method: str  # config|instance|resource|security_token (resolved final)
    config_dict: Optional[ConfigDict]
    signer: Optional[Any]
    profile: Optional[str]


class AuthError(RuntimeError):
    pass


def _require_oci() -> None:
    if oci is None:
        raise AuthError("oci Python SDK not installed. Install dependencies and try again: pip install .")


def _detect_region() -> Optional[str]:
    return os.getenv("OCI_REGION") or os.getenv("OCI_CLI_REGION")


def _ctx_from_config(profile: Optional[str], method: str = "config") -> AuthContext:
    resolved_profile = profile or "DEFAULT"
    try:
        cfg = oci.config.from_file(profile_name=resolved_profile)  # type: ignore[attr-defined]
        if method == "config":
            # Session profiles have no user key and fail validation.
            oci.config.validate_config(cfg)  # type: ignore[attr-defined]
    except Exception as e:
        mapped = map_oci_error(e, "OCI SDK error while loading config profile")
        if mapped:
            raise mapped from e
        raise AuthError(f"Failed to load OCI config profile {resolved_profile}: {e}") from e
    if method == "security_token":
        token_file = cfg.get("security_token_file")
        if not token_file:
            raise AuthError(f"Profile {resolved_profile} has no security_token_file")
        with open(os.path.expanduser(token_file), "r", encoding="utf-8") as f:
            token = f.read().strip()
        key = oci.signer.load_private_key_from_file(cfg["key_file"])  # type: ignore[attr-defined]
        signer = oci.auth.signers.SecurityTokenSigner(token, key)  # type: ignore[attr-defined]
        return AuthContext(method=method, config_dict=cfg, signer=signer, profile=resolved_profile)
    return AuthContext(method="config", config_dict=cfg, signer=None, profile=resolved_profile)


def _ctx_from_instance_principals() -> AuthContext:
    try:
        signer = oci.auth.signers.InstancePrincipalsSecurityTokenSigner()  # type: ignore[attr-defined]
    except Exception as e:
        mapped = map_oci_error(e, "OCI SDK error while resolving instance principals")
        if mapped:
            raise mapped from e
        raise AuthError(f"Failed to resolve instance principals: {e}") from e
    return AuthContext(method="instance", config_dict=None, signer=signer, profile=None)


def _ctx_from_resource_principals() -> AuthContext:
    try:
        signer = oci.auth.signers.get_resource_principals_signer()  # type: ignore[attr-defined]
    except Exception as e:
        mapped = map_oci_error(e, "OCI SDK error while resolving resource principals")
        if mapped:
            raise mapped from e
        raise AuthError(f"Failed to resolve resource principals: {e}") from e
    return AuthContext(method="resource", config_dict=None, signer=signer, profile=None)


def resolve_auth(method: str, profile: Optional[str]) -> AuthContext:
    """
    Resolve auth according to requested method.
    - config: ~/.oci/config profile (the SDK's default provider)
    - security_token: session profile in ~/.oci/config
    - instance: Instance Principals
    - resource: Resource Principals
    - auto: resource principals -> instance principals -> config
    """
    _require_oci()
    method = (method or "config").lower()

    if method in ("config", "security_token"):
        return _ctx_from_config(profile, method)
    if method == "instance":
        return _ctx_from_instance_principals()
    if method == "resource":
        return _ctx_from_resource_principals()
    if method != "auto":
        raise AuthError(f"Unsupported auth method: {method}")

    for resolver in (_ctx_from_resource_principals, _ctx_from_instance_principals):
        try:
            return resolver()
        except (AuthError, OCIClientError):
            continue
    try:
        return _ctx_from_config(profile)
    except OCIClientError:
        raise
    except Exception as e:
        raise AuthError(
            "Failed to resolve auth in 'auto' mode. Tried resource principals, instance principals, then config.\n"
            f"Last error: {e}"
        ) from e


def make_client(client_cls: Any, ctx: AuthContext, region: Optional[str] = None) -> Any:
    """
    Construct an OCI SDK client of type client_cls using the provided AuthContext.
    Signer-based auth needs a region from the caller or OCI_REGION/OCI_CLI_REGION.
    """
    _require_oci()
    kwargs: Dict[str, Any] = {}
    retry = getattr(oci.retry, "DEFAULT_RETRY_STRATEGY", None)  # type: ignore[attr-defined]
    if retry is not None:
        kwargs["retry_strategy"] = retry

    if ctx.config_dict is not None:
        cfg = dict(ctx.config_dict)
        if region:
            cfg["region"] = region
        if ctx.signer is not None:
            kwargs["signer"] = ctx.signer
        return client_cls(cfg, **kwargs)
    if ctx.signer is not None:
        detected_region = region or _detect_region()
        if not detected_region:
            raise AuthError(
                "Region is required for signer-based auth. Set OCI_REGION/OCI_CLI_REGION or pass --client-region."
            )
        return client_cls({"region": detected_region}, signer=ctx.signer, **kwargs)
    raise AuthError("Invalid AuthContext: neither config_dict nor signer present")
