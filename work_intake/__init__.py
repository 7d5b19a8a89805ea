"""Turn free-text task descriptions into Asana or Microsoft Planner tasks."""

__version__ = "0.1.0"
