"""Domain errors for Checkend Setup."""


class SetupError(RuntimeError):
    """Raised when provisioning cannot continue safely."""


class SetupCancelled(Exception):
    """Raised when the operator declines a step and the run should end cleanly."""
