"""
Checkend Setup - Provisioning tool for Checkend Community Edition
"""

__version__ = "0.3.0"

from .errors import SetupCancelled, SetupError
from .provisioner import Provisioner
from .service_installer import ServiceInstaller

__all__ = ["Provisioner", "ServiceInstaller", "SetupError", "SetupCancelled"]
