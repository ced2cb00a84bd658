"""SMIS: School Management Information System backend."""
__version__ = "1.0.0"
