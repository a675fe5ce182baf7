"""
fireprov - Firebase credential provisioning and local stack tooling
"""

__version__ = "0.3.0"

from .core import Provisioner
from .errors import ProvisionError
from .stack import DevStack

__all__ = ["DevStack", "ProvisionError", "Provisioner"]
