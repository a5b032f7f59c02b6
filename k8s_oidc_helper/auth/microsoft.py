"""Authorization code exchange against the Microsoft identity platform."""

import logging
from dataclasses import dataclass
from urllib.parse import quote

import requests
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.requests_client import OAuth2Session

from ..config import ClientCredentials
from ..errors import TokenExchangeError, UserInfoError
from ..settings import MICROSOFT, REQUEST_TIMEOUT, ProviderSettings

logger = logging.getLogger(__name__)

AUTHORIZE_URL_TEMPLATE = (
    "{authorize_url}?client_id={client_id}&response_type=code"
    "&redirect_uri={redirect_uri}&scope={scope}"
)


def authorization_url(client_id: str, provider: ProviderSettings = MICROSOFT) -> str:
    """Build the URL the user opens to approve the application.

    The redirect URI and scopes are inserted verbatim, the way the Azure AD v1
    endpoint documents them.

    Example:
        >>> authorization_url("X")
        'https://login.microsoftonline.com/common/oauth2/authorize?client_id=X&response_type=code&redirect_uri=https://localhost&scope=openid offline_access user.read'
    """
    return AUTHORIZE_URL_TEMPLATE.format(
        authorize_url=provider.authorize_url,
        client_id=quote(client_id, safe=""),
        redirect_uri=provider.redirect_uri,
        scope=provider.scope,
    )


@dataclass(frozen=True)
class TokenBundle:
    access_token: str
    refresh_token: str
    id_token: str

    @classmethod
    def from_response(cls, token: dict) -> "TokenBundle":
        """Pick the three tokens out of a token endpoint response.

        Absent fields become empty strings; a refresh token is only issued
        when ``offline_access`` was granted.
        """
        return cls(
            access_token=token.get("access_token") or "",
            refresh_token=token.get("refresh_token") or "",
            id_token=token.get("id_token") or "",
        )


class MicrosoftAuthProvider:
    """Exchanges a pasted authorization code for tokens and looks up the user.

    Uses authlib for the token request; the client secret is sent in the form
    body (``client_secret_post``) together with the Graph ``resource``
    parameter the v1 endpoint requires.

    Example:
        >>> auth = MicrosoftAuthProvider(ClientCredentials("app-id", "secret"))
        >>> print(auth.authorization_url)
        >>> tokens = auth.fetch_tokens(input("code: ").strip())
        >>> email = auth.fetch_user_email(tokens.access_token)
    """

    def __init__(
        self,
        credentials: ClientCredentials,
        provider: ProviderSettings = MICROSOFT,
    ):
        """Initialize the provider.

        Args:
            credentials: OAuth client identifier and secret
            provider: Endpoint table (default: Microsoft common tenant)
        """
        self.credentials = credentials
        self.provider = provider

    @property
    def authorization_url(self) -> str:
        return authorization_url(self.credentials.client_id, self.provider)

    def fetch_tokens(self, code: str) -> TokenBundle:
        """Exchange an authorization code for access, refresh and ID tokens.

        Args:
            code: Authorization code returned on the redirect

        Returns:
            TokenBundle with the three tokens

        Raises:
            TokenExchangeError: On transport failure, an OAuth error response
                or an undecodable body
        """
        client = OAuth2Session(
            client_id=self.credentials.client_id,
            client_secret=self.credentials.client_secret,
            redirect_uri=self.provider.redirect_uri,
            token_endpoint_auth_method="client_secret_post",
        )
        logger.info("exchanging authorization code at %s", self.provider.token_url)
        try:
            token = client.fetch_token(
                self.provider.token_url,
                grant_type="authorization_code",
                code=code,
                resource=self.provider.resource,
                timeout=REQUEST_TIMEOUT,
            )
        except AuthlibBaseError as e:
            raise TokenExchangeError(str(e)) from e
        except requests.RequestException as e:
            raise TokenExchangeError(str(e)) from e
        except ValueError as e:
            raise TokenExchangeError(f"could not decode token response: {e}") from e
        finally:
            client.close()

        return TokenBundle.from_response(dict(token))

    def fetch_user_email(self, access_token: str) -> str:
        """Look up the email address of the user the access token belongs to.

        The token is sent as the raw ``Authorization`` header value, without a
        ``Bearer`` prefix.

        Args:
            access_token: Access token issued for the Graph resource

        Returns:
            The ``mail`` field of the user's profile

        Raises:
            UserInfoError: On transport failure, a non-2xx status, an
                undecodable body or a profile without ``mail``
        """
        headers = {
            "Authorization": access_token,
            "Content-Type": "application/json",
        }
        logger.info("fetching user profile from %s", self.provider.profile_url)
        try:
            response = requests.get(
                self.provider.profile_url, headers=headers, timeout=REQUEST_TIMEOUT
            )
            response.raise_for_status()
            profile = response.json()
        except requests.RequestException as e:
            raise UserInfoError(str(e)) from e
        except ValueError as e:
            raise UserInfoError(f"could not decode profile response: {e}") from e

        mail = profile.get("mail") if isinstance(profile, dict) else None
        if not mail:
            raise UserInfoError('profile response has no "mail" field')
        return mail
