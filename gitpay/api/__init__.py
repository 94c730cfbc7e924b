"""
HTTP surface of the GitPay badge service.
"""

from .app import GitPayServices, create_app
from .routes import router

__all__ = ["GitPayServices", "create_app", "router"]
