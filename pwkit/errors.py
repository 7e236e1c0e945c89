"""Exceptions raised while setting up local potentials."""


class ConfigurationError(ValueError):
    """Inputs that do not fit together, e.g. a species without a generator."""


class PhysicsInconsistencyError(ValueError):
    """A result violates a physical requirement, e.g. a complex-valued potential."""


class ShapeMismatchError(ValueError):
    """Array shape does not match the real-space grid of the basis."""
