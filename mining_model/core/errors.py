# mining_model/core/errors.py


class ProjectionInputError(ValueError):
    """Raised when engine inputs are missing or malformed before a run."""
