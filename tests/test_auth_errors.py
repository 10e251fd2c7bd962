from __future__ import annotations

import types

import pytest

from oci_cloudguard.auth import providers as auth_providers
from oci_cloudguard.auth.providers import AuthContext, AuthError
from oci_cloudguard.oci import clients
from oci_cloudguard.util.errors import OCIClientError


class DummyOciError(Exception):
    __module__ = "oci.exceptions"


def test_resolve_auth_maps_oci_errors(monkeypatch) -> None:
    def _raise(*args, **kwargs):
        raise DummyOciError("boom")

    dummy_oci = types.SimpleNamespace(config=types.SimpleNamespace(from_file=_raise))
    monkeypatch.setattr(auth_providers, "oci", dummy_oci)

    with pytest.raises(OCIClientError):
        auth_providers.resolve_auth("config", profile=None)


def test_resolve_auth_wraps_other_config_failures(monkeypatch) -> None:
    def _raise(*args, **kwargs):
        raise FileNotFoundError("~/.oci/config")

    dummy_oci = types.SimpleNamespace(config=types.SimpleNamespace(from_file=_raise))
    monkeypatch.setattr(auth_providers, "oci", dummy_oci)

    with pytest.raises(AuthError, match="DEFAULT"):
        auth_providers.resolve_auth("config", profile=None)


def test_resolve_auth_rejects_unknown_method(monkeypatch) -> None:
    monkeypatch.setattr(auth_providers, "oci", types.SimpleNamespace())
    with pytest.raises(AuthError):
        auth_providers.resolve_auth("kerberos", profile=None)


def test_make_client_applies_region_override(monkeypatch) -> None:
    monkeypatch.setattr(
        auth_providers,
        "oci",
        types.SimpleNamespace(retry=types.SimpleNamespace(DEFAULT_RETRY_STRATEGY="retry")),
    )
    seen = {}

    class _Client:
        def __init__(self, cfg, **kwargs):
            seen["cfg"] = cfg
            seen["kwargs"] = kwargs

    ctx = AuthContext(method="config", config_dict={"region": "us-ashburn-1"}, signer=None, profile="DEFAULT")
    auth_providers.make_client(_Client, ctx, region="eu-frankfurt-1")

    assert seen["cfg"]["region"] == "eu-frankfurt-1"
    assert seen["kwargs"] == {"retry_strategy": "retry"}
    assert ctx.config_dict == {"region": "us-ashburn-1"}


def test_make_client_signer_requires_region(monkeypatch) -> None:
    monkeypatch.setattr(
        auth_providers,
        "oci",
        types.SimpleNamespace(retry=types.SimpleNamespace(DEFAULT_RETRY_STRATEGY=None)),
    )
    monkeypatch.delenv("OCI_REGION", raising=False)
    monkeypatch.delenv("OCI_CLI_REGION", raising=False)
    ctx = AuthContext(method="instance", config_dict=None, signer=object(), profile=None)

    with pytest.raises(AuthError):
        auth_providers.make_client(object, ctx)


def test_get_cloud_guard_client_uses_cloud_guard_client_class(monkeypatch) -> None:
    class _FakeCloudGuardClient:
        pass

    monkeypatch.setattr(
        clients,
        "oci",
        types.SimpleNamespace(cloud_guard=types.SimpleNamespace(CloudGuardClient=_FakeCloudGuardClient)),
    )
    calls = []

    def _fake_make_client(client_cls, ctx, region=None):
        calls.append((client_cls, region))
        return "client"

    monkeypatch.setattr(clients, "make_client", _fake_make_client)

    assert clients.get_cloud_guard_client(object(), region="us-phoenix-1") == "client"
    assert calls == [(_FakeCloudGuardClient, "us-phoenix-1")]


def test_security_token_profile_without_user_resolves_signer(monkeypatch, tmp_path) -> None:
    token_file = tmp_path / "token"
    token_file.write_text("session-token\n", encoding="utf-8")
    session_profile = {
        "fingerprint": "aa:bb",
        "key_file": str(tmp_path / "key.pem"),
        "tenancy": "ocid1.tenancy.oc1..t",
        "region": "us-ashburn-1",
        "security_token_file": str(token_file),
    }

    class _SecurityTokenSigner:
        def __init__(self, token, key):
            self.token = token
            self.key = key

    def _validate(cfg):
        raise DummyOciError({"user": "missing"})

    dummy_oci = types.SimpleNamespace(
        config=types.SimpleNamespace(from_file=lambda profile_name: dict(session_profile), validate_config=_validate),
        signer=types.SimpleNamespace(load_private_key_from_file=lambda path: f"key:{path}"),
        auth=types.SimpleNamespace(signers=types.SimpleNamespace(SecurityTokenSigner=_SecurityTokenSigner)),
    )
    monkeypatch.setattr(auth_providers, "oci", dummy_oci)

    ctx = auth_providers.resolve_auth("security_token", profile="SESSION")

    assert ctx.method == "security_token"
    assert ctx.profile == "SESSION"
    assert isinstance(ctx.signer, _SecurityTokenSigner)
    assert ctx.signer.token == "session-token"
    assert ctx.signer.key == f"key:{tmp_path / 'key.pem'}"
    assert "user" not in ctx.config_dict


def test_config_profile_is_still_validated(monkeypatch) -> None:
    def _validate(cfg):
        raise DummyOciError({"user": "missing"})

    dummy_oci = types.SimpleNamespace(
        config=types.SimpleNamespace(from_file=lambda profile_name: {"region": "us-ashburn-1"}, validate_config=_validate)
    )
    monkeypatch.setattr(auth_providers, "oci", dummy_oci)

    with pytest.raises(OCIClientError):
        auth_providers.resolve_auth("config", profile=None)
