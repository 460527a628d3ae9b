"""
PAM helper: resolves store credentials through the platform secret resolver.
"""

import logging
from typing import Optional

from interfaces.orchestrator_interfaces import PAMSecretResolver


def resolve_pam_field(
    resolver: Optional[PAMSecretResolver], logger: logging.Logger, name: str, key: Optional[str]
) -> Optional[str]:
    """
    Resolves one credential field.

    When no resolver is configured the key is returned unchanged, so plain
    credentials keep working.

    Args:
        resolver: PAM secret resolver (may be None)
        logger: caller logger
        name: field name for the log ("Server Username", ...)
        key: PAM key or literal value

    Returns:
        Resolved secret
    """
    logger.debug(f"Attempting to resolve PAM eligible field {name}")
    if resolver is None or key is None:
        return key
    return resolver.resolve(key)
