"""Access token lookup.

The token is read once by the command line and handed to GitHubTagSource
explicitly; nothing else in the package looks at the environment for it.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from ghdepup.config.settings import DEFAULT_TOKEN_ENV_VAR
from ghdepup.integrations.exceptions import TokenMissingError

logger = logging.getLogger(__name__)


def get_token(
    env_var: str = DEFAULT_TOKEN_ENV_VAR,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Read the GitHub access token from the environment.

    Surrounding whitespace is stripped, so a token piped in with a
    trailing newline still works.

    Args:
        env_var: Name of the variable holding the token
        environ: Environment to read (defaults to os.environ)

    Returns:
        The token

    Raises:
        TokenMissingError: If the variable is unset or blank
    """
    source = os.environ if environ is None else environ
    token = source.get(env_var, "").strip()
    if not token:
        raise TokenMissingError(env_var)
    logger.info(f"Using GitHub token from ${env_var}")
    return token


__all__ = ["get_token"]
