class ReconcileError(Exception):
    pass


class ConfigurationError(ReconcileError):
    pass


class InvalidTransitionError(ConfigurationError):
    def __init__(self, object_name: str, state: str, action: str) -> None:
        super().__init__(
            f"{action} is not allowed for '{object_name}' in state '{state}'"
        )
        self.object_name = object_name
        self.state = state
        self.action = action


class IntegrityError(ReconcileError):
    pass


class DuplicateKeyError(IntegrityError):
    pass


class AuditAppendError(IntegrityError):
    pass


class ConcurrentTransitionError(IntegrityError):
    def __init__(self, object_name: str) -> None:
        super().__init__(
            f"Another transition is already in progress for '{object_name}'"
        )
        self.object_name = object_name
