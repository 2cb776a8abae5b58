"""Import endpoint token validation."""

import hmac
from typing import Optional

from ..utils.config import get_config
from ..utils.logger import get_server_logger
from ..utils.exceptions import ConfigurationError, RequestAuthorizationError


class ImportRequestValidator:
    """Checks the ``X-Import-Token`` header against the configured token."""

    def __init__(self):
        """Initialize request validator."""
        config = get_config()
        self.token = config.env.import_api_token
        self.logger = get_server_logger()
        self.validate_enabled = config.server.require_token

    def validate_token(self, token_header: Optional[str]) -> bool:
        """
        Validate the caller's import token.

        Args:
            token_header: Value of the X-Import-Token header

        Returns:
            True if the token is valid

        Raises:
            RequestAuthorizationError: If the token is missing or wrong
            ConfigurationError: If validation is on but no token is configured
        """
        if not self.validate_enabled:
            self.logger.warning("Import token validation is disabled!")
            return True

        if not self.token:
            raise ConfigurationError("IMPORT_API_TOKEN is not configured")

        if not token_header:
            raise RequestAuthorizationError(
                "Missing import token header",
                details={"header": "X-Import-Token"}
            )

        # Constant-time comparison
        if not hmac.compare_digest(self.token.encode("utf-8"), token_header.encode("utf-8")):
            raise RequestAuthorizationError("Invalid import token")

        self.logger.debug("Import token validated successfully")
        return True
