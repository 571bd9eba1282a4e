"""Image file handling, animated icon players, DCI icon theme lookup and font sizing helpers."""

__version__ = "0.1.0"