# backend/agentsalud/services/availability/errors.py


class InvalidRequestError(ValueError):
    """Availability query parameters failed validation."""
