class QLearnerError(Exception):
    """Base class for errors raised by the learner."""


class LifecycleError(QLearnerError):
    """A handle was used that the registry never issued or already released."""


class SnapshotError(QLearnerError, ValueError):
    """A serialized table could not be read back."""
