"""Fixed endpoints and identifiers used by the helper.

Everything the Microsoft identity platform and kubectl expect verbatim lives in
a single :class:`ProviderSettings` table so the rest of the package never
hard-codes a URL or scope.
"""

from dataclasses import dataclass

ENV_CLIENT_ID = "K8S_OIDC_CLIENT_ID"
ENV_CLIENT_SECRET = "K8S_OIDC_CLIENT_SECRET"
ENV_LOG_LEVEL = "K8S_OIDC_HELPER_LOG_LEVEL"

REQUEST_TIMEOUT = 30


@dataclass(frozen=True)
class ProviderSettings:
    """Endpoints and constants for one identity provider.

    Attributes:
        authorize_url: OAuth2 authorize endpoint opened in the browser
        token_url: OAuth2 token endpoint the authorization code is posted to
        profile_url: Endpoint returning the signed-in user's profile
        redirect_uri: Redirect target registered for the application
        scope: Space separated scopes requested at authorization time
        resource: Resource identifier the access token is issued for
        issuer_url: Issuer kubectl uses to refresh the ID token
        auth_provider_name: kubectl auth-provider plugin name
    """

    authorize_url: str
    token_url: str
    profile_url: str
    redirect_uri: str
    scope: str
    resource: str
    issuer_url: str
    auth_provider_name: str = "oidc"


MICROSOFT = ProviderSettings(
    authorize_url="https://login.microsoftonline.com/common/oauth2/authorize",
    token_url="https://login.microsoftonline.com/common/oauth2/token",
    profile_url="https://graph.microsoft.com/v1.0/me/",
    redirect_uri="https://localhost",
    scope="openid offline_access user.read",
    resource="https://graph.microsoft.com",
    issuer_url="https://login.microsoftonline.com/common/v2.0",
)
