"""Error taxonomy.

NotFound, AlreadyExists and Conflict are what the orchestrator answers. Any other
orchestrator error surfaces as CollaboratorFailure, as do staging failures.
ConversionFailure comes from our own pipeline. InvariantViolation is a bug
elsewhere in the system and does not derive from BridgeError.
"""
from __future__ import annotations


class BridgeError(Exception):
    pass


class NotFound(BridgeError):
    pass


class AlreadyExists(BridgeError):
    pass


class Conflict(BridgeError):
    """The resource changed between read and write."""


class ConversionFailure(BridgeError):
    pass


class CollaboratorFailure(BridgeError):
    pass


class InvariantViolation(AssertionError):
    pass
