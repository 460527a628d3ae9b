"""
Entities Package

The device API client façade.
"""

from .device_api_client import DeviceApiClient

__all__ = ["DeviceApiClient"]
