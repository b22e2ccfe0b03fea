"""Automated post-install provisioning for Debian hosts."""

from .config import AppConfig

__version__ = AppConfig.VERSION
