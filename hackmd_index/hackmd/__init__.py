"""
Public surface of the HackMD client package.

    from hackmd_index.hackmd import HackMDClient
"""

from .client import HackMDClient, extract_csrf_token

__all__ = [
    "HackMDClient",
    "extract_csrf_token",
]
