"""Unit tests for the Microsoft authorization code exchange."""

from unittest.mock import MagicMock, patch

import pytest
import requests
from authlib.integrations.base_client import OAuthError

from k8s_oidc_helper.auth import MicrosoftAuthProvider, TokenBundle, authorization_url
from k8s_oidc_helper.config import ClientCredentials
from k8s_oidc_helper.errors import TokenExchangeError, UserInfoError
from k8s_oidc_helper.settings import MICROSOFT


@pytest.fixture
def provider():
    return MicrosoftAuthProvider(ClientCredentials("A", "B"))


@pytest.fixture
def mock_token_response():
    """Token endpoint response as returned by the v1 endpoint."""
    return {
        "token_type": "Bearer",
        "expires_in": "3599",
        "resource": "https://graph.microsoft.com",
        "access_token": "at1",
        "refresh_token": "rt1",
        "id_token": "idt1",
    }


def _profile_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


def test_authorization_url_contains_fixed_parameters():
    url = authorization_url("X")

    assert url.startswith("https://login.microsoftonline.com/common/oauth2/authorize?")
    assert "client_id=X" in url
    assert "response_type=code" in url
    assert "redirect_uri=https://localhost" in url
    assert "scope=openid offline_access user.read" in url


def test_authorization_url_property_uses_client_id(provider):
    assert provider.authorization_url == authorization_url("A")


def test_token_bundle_defaults_absent_tokens_to_empty():
    tokens = TokenBundle.from_response({"access_token": "at1", "refresh_token": "rt1"})

    assert tokens == TokenBundle(access_token="at1", refresh_token="rt1", id_token="")


@patch("k8s_oidc_helper.auth.microsoft.OAuth2Session")
def test_fetch_tokens(MockSession, provider, mock_token_response):
    """Test a successful code exchange returns exactly the three tokens."""
    mock_client = MagicMock()
    mock_client.fetch_token.return_value = mock_token_response
    MockSession.return_value = mock_client

    tokens = provider.fetch_tokens("the-code")

    assert tokens == TokenBundle(access_token="at1", refresh_token="rt1", id_token="idt1")
    MockSession.assert_called_once_with(
        client_id="A",
        client_secret="B",
        redirect_uri="https://localhost",
        token_endpoint_auth_method="client_secret_post",
    )
    mock_client.fetch_token.assert_called_once()
    args, kwargs = mock_client.fetch_token.call_args
    assert args == ("https://login.microsoftonline.com/common/oauth2/token",)
    assert kwargs["grant_type"] == "authorization_code"
    assert kwargs["code"] == "the-code"
    assert kwargs["resource"] == "https://graph.microsoft.com"
    mock_client.close.assert_called_once()


@patch("k8s_oidc_helper.auth.microsoft.OAuth2Session")
def test_fetch_tokens_minimal_response(MockSession, provider):
    mock_client = MagicMock()
    mock_client.fetch_token.return_value = {
        "access_token": "at1",
        "refresh_token": "rt1",
        "id_token": "idt1",
    }
    MockSession.return_value = mock_client

    tokens = provider.fetch_tokens("code")

    assert tokens.access_token == "at1"
    assert tokens.refresh_token == "rt1"
    assert tokens.id_token == "idt1"


@patch("k8s_oidc_helper.auth.microsoft.OAuth2Session")
def test_fetch_tokens_oauth_error(MockSession, provider):
    """Test an error response from the token endpoint."""
    mock_client = MagicMock()
    mock_client.fetch_token.side_effect = OAuthError(
        error="invalid_grant", description="AADSTS70008: code has expired"
    )
    MockSession.return_value = mock_client

    with pytest.raises(TokenExchangeError, match="invalid_grant"):
        provider.fetch_tokens("expired-code")
    mock_client.close.assert_called_once()


@patch("k8s_oidc_helper.auth.microsoft.OAuth2Session")
def test_fetch_tokens_transport_error(MockSession, provider):
    mock_client = MagicMock()
    mock_client.fetch_token.side_effect = requests.ConnectionError("connection refused")
    MockSession.return_value = mock_client

    with pytest.raises(TokenExchangeError, match="connection refused"):
        provider.fetch_tokens("code")


@patch("k8s_oidc_helper.auth.microsoft.OAuth2Session")
def test_fetch_tokens_undecodable_body(MockSession, provider):
    mock_client = MagicMock()
    mock_client.fetch_token.side_effect = ValueError("Expecting value: line 1 column 1")
    MockSession.return_value = mock_client

    with pytest.raises(TokenExchangeError, match="could not decode"):
        provider.fetch_tokens("code")


@patch("k8s_oidc_helper.auth.microsoft.OAuth2Session")
def test_fetch_tokens_without_refresh_token(MockSession, provider):
    """Test a response without offline_access still yields a bundle."""
    mock_client = MagicMock()
    mock_client.fetch_token.return_value = {"access_token": "at1", "id_token": "idt1"}
    MockSession.return_value = mock_client

    tokens = provider.fetch_tokens("code")

    assert tokens.access_token == "at1"
    assert tokens.refresh_token == ""
    assert tokens.id_token == "idt1"


@patch("k8s_oidc_helper.auth.microsoft.requests.get")
def test_fetch_user_email(mock_get, provider):
    """Test the profile lookup sends the raw access token."""
    mock_get.return_value = _profile_response(
        {"displayName": "User", "mail": "user@example.com"}
    )

    assert provider.fetch_user_email("at1") == "user@example.com"

    mock_get.assert_called_once()
    args, kwargs = mock_get.call_args
    assert args == ("https://graph.microsoft.com/v1.0/me/",)
    assert kwargs["headers"] == {
        "Authorization": "at1",
        "Content-Type": "application/json",
    }


@patch("k8s_oidc_helper.auth.microsoft.requests.get")
def test_fetch_user_email_http_error(mock_get, provider):
    response = _profile_response({"error": {"code": "InvalidAuthenticationToken"}})
    response.raise_for_status.side_effect = requests.HTTPError("401 Client Error")
    mock_get.return_value = response

    with pytest.raises(UserInfoError, match="401"):
        provider.fetch_user_email("bad-token")


@patch("k8s_oidc_helper.auth.microsoft.requests.get")
def test_fetch_user_email_undecodable_body(mock_get, provider):
    response = _profile_response(None)
    response.json.side_effect = ValueError("Expecting value")
    mock_get.return_value = response

    with pytest.raises(UserInfoError, match="could not decode"):
        provider.fetch_user_email("at1")


@patch("k8s_oidc_helper.auth.microsoft.requests.get")
def test_fetch_user_email_without_mail(mock_get, provider):
    mock_get.return_value = _profile_response({"mail": None})

    with pytest.raises(UserInfoError, match="mail"):
        provider.fetch_user_email("at1")


def test_provider_defaults_to_microsoft(provider):
    assert provider.provider is MICROSOFT
