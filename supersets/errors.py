class SuperSetsError(Exception):
    """Base class for errors raised by the service layer."""


class NotFoundError(SuperSetsError):
    pass


class WorkoutStateError(SuperSetsError):
    """Starting a workout while one is active, or logging with none active."""


class SetValidationError(SuperSetsError):
    pass


class CatalogError(SuperSetsError):
    pass
