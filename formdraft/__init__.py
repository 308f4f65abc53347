"""Session and draft manager for the dynamic form authoring screen."""

__version__ = "0.1.0"
