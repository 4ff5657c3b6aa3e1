"""ACVP XOF (cSHAKE) test-vector execution against an external actor."""

from .cshake import HANDLERS, CShake, handler_for
from .errors import (
    ConfigError,
    InvalidTestVector,
    MalformedEncoding,
    MalformedInput,
    SubjectFailure,
    VectorError,
)
from .transact import PooledTransactor, Transactable

__all__ = [
    "HANDLERS",
    "CShake",
    "handler_for",
    "ConfigError",
    "InvalidTestVector",
    "MalformedEncoding",
    "MalformedInput",
    "SubjectFailure",
    "VectorError",
    "PooledTransactor",
    "Transactable",
]
