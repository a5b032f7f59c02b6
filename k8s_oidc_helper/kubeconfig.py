"""Kubeconfig ``users`` entries for the kubectl oidc auth-provider.

The rendered fragment is meant to be pasted into ``~/.kube/config``::

    users:
    - name: user@example.com
      user:
        auth-provider:
          config:
            client-id: ...
            client-secret: ...
            id-token: ...
            idp-issuer-url: https://login.microsoftonline.com/common/v2.0
            refresh-token: ...
          name: oidc
"""

from dataclasses import dataclass
from typing import Iterable

import yaml

from .errors import SerializationError
from .settings import MICROSOFT, ProviderSettings

HEADER = "# Add the following to your ~/.kube/config"


@dataclass(frozen=True)
class AuthProviderConfig:
    client_id: str
    client_secret: str
    id_token: str
    idp_issuer_url: str
    refresh_token: str

    def to_dict(self) -> dict:
        return {
            "client-id": self.client_id,
            "client-secret": self.client_secret,
            "id-token": self.id_token,
            "idp-issuer-url": self.idp_issuer_url,
            "refresh-token": self.refresh_token,
        }


@dataclass(frozen=True)
class AuthProvider:
    config: AuthProviderConfig
    name: str

    def to_dict(self) -> dict:
        return {"config": self.config.to_dict(), "name": self.name}


@dataclass(frozen=True)
class KubectlUser:
    name: str
    auth_provider: AuthProvider

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "user": {"auth-provider": self.auth_provider.to_dict()},
        }


def generate_user(
    email: str,
    client_id: str,
    client_secret: str,
    id_token: str,
    refresh_token: str,
    provider: ProviderSettings = MICROSOFT,
) -> KubectlUser:
    """Build the kubectl user entry for a signed-in user.

    The issuer URL and auth-provider name come from ``provider``.
    """
    return KubectlUser(
        name=email,
        auth_provider=AuthProvider(
            config=AuthProviderConfig(
                client_id=client_id,
                client_secret=client_secret,
                id_token=id_token,
                idp_issuer_url=provider.issuer_url,
                refresh_token=refresh_token,
            ),
            name=provider.auth_provider_name,
        ),
    )


def render_users(users: Iterable[KubectlUser]) -> str:
    """Serialize user entries as a YAML document with a top-level ``users`` list.

    Raises:
        SerializationError: If the entries cannot be represented as YAML
    """
    document = {"users": [user.to_dict() for user in users]}
    try:
        return yaml.safe_dump(document, default_flow_style=False, sort_keys=False)
    except yaml.YAMLError as e:
        raise SerializationError(str(e)) from e
