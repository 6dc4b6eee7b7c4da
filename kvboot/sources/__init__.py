"""Resource loader implementations.

This package contains the loaders for the built-in URI schemes:
``file:`` and plain paths, ``classpath:``, ``system:``, ``env:``,
``cmd:``, ``stdin:``, ``profile.<scheme>:`` and ``null:``.
"""

__all__ = [
    "FileLoader",
    "ClasspathLoader",
    "SystemLoader",
    "EnvLoader",
    "CommandLineLoader",
    "StdinLoader",
    "ProfileLoader",
    "NullLoader",
]
