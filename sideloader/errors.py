class LaunchError(Exception):
    """Base class for launch failures that escape the orchestrator."""

class ExecutionFailure(LaunchError):
    """The game process (or its compatibility wrapper) could not be started."""

    def __init__(self, argv, cause: Exception):
        self.argv = list(argv)
        self.cause = cause
        super().__init__(f"failed to start {self.argv[0] if self.argv else '?'}: {cause}")

class PermissionRepairFailure(LaunchError):
    """Granting or restoring the execute bit failed. Only ever logged."""
