"""arsi-scaffold -- compose React starter projects from template fragments."""

__version__ = "0.1.0"
