"""
Jobs Package

Inventory, Management and Reenrollment job runners.
"""

from .inventory import InventoryJob, tag_bindings
from .job_base import JobRunner
from .management import ManagementJob
from .reenrollment import ReenrollmentJob, parse_sans

__all__ = [
    "InventoryJob",
    "JobRunner",
    "ManagementJob",
    "ReenrollmentJob",
    "parse_sans",
    "tag_bindings",
]
