"""Authentication against the identity provider."""

from .microsoft import MicrosoftAuthProvider, TokenBundle, authorization_url

__all__ = ["MicrosoftAuthProvider", "TokenBundle", "authorization_url"]
