"""
tor-auth Web Module

This module provides the HTTP listener answering authorization subrequests.
"""

from .server import AuthServer, ServerState

__all__ = ["AuthServer", "ServerState"]
