"""Core library for logpeek.

Turns command-line options into the validated Config read by the viewer.
"""

__all__ = [
    "config",
    "errors",
]
