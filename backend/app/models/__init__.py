"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy.

Note: Feature models are imported lazily to avoid circular imports.
Use direct imports from features/ modules when possible.
"""

from app.models.base import Base


# Lazy import functions to avoid circular imports
def _get_user_models():
    """Lazy import of User models."""
    from app.features.users.models import User
    return User


def _get_strava_models():
    """Lazy import of Strava models."""
    from app.features.strava.models import StravaConnection
    return StravaConnection


def _get_fitness_models():
    """Lazy import of fitness models."""
    from app.features.fitness.models import FitnessActivity, FitnessBadge
    return FitnessActivity, FitnessBadge


# Expose as module-level attributes for backward compatibility
def __getattr__(name):
    if name == "User":
        return _get_user_models()

    if name == "StravaConnection":
        return _get_strava_models()

    if name in ("FitnessActivity", "FitnessBadge"):
        models = _get_fitness_models()
        return {"FitnessActivity": models[0], "FitnessBadge": models[1]}[name]

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "Base",
    "User",
    "StravaConnection",
    "FitnessActivity",
    "FitnessBadge",
]
