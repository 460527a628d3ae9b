"""
Orchestrator Configuration Package

Centralizes endpoints, trust anchor paths and constants of the extension.
"""

from .orchestrator_config import (
    AXIS_API,
    ORCHESTRATOR_CONSTANTS,
    TRUST_ANCHOR_PATHS,
    TrustAnchorConfig,
    TrustAnchorMode,
    get_log_level,
)

__all__ = [
    'AXIS_API',
    'ORCHESTRATOR_CONSTANTS',
    'TRUST_ANCHOR_PATHS',
    'TrustAnchorConfig',
    'TrustAnchorMode',
    'get_log_level',
]
