"""Domain errors for fireprov."""


class ProvisionError(RuntimeError):
    """Raised when provisioning cannot continue safely."""
