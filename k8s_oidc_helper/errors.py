"""Error kinds raised by each stage of the helper."""


class HelperError(Exception):
    """Base class for failures that abort the helper.

    Subclasses set ``prefix`` (shown before the underlying detail) and
    ``exit_code`` (returned by the command line entry point).
    """

    prefix = "Error"
    exit_code = 1

    def __init__(self, detail):
        super().__init__(detail)
        self.detail = detail

    def user_message(self) -> str:
        return f"{self.prefix}: {self.detail}"


class ConfigError(HelperError):
    """Raised when the application config file cannot be read."""

    exit_code = 2

    def __init__(self, path, detail):
        super().__init__(detail)
        self.path = path
        self.prefix = f"Error reading config file {path}"


class TokenExchangeError(HelperError):
    """Raised when the authorization code cannot be exchanged for tokens."""

    prefix = "Error getting tokens"


class UserInfoError(HelperError):
    """Raised when the signed-in user's email cannot be retrieved."""

    prefix = "Error getting user email"


class SerializationError(HelperError):
    """Raised when the kubeconfig fragment cannot be rendered."""

    prefix = "Error marshaling yaml"
