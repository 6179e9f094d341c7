"""
Errors raised by the document tree.

Ordering operations (move_up, before, keep_end, ...) never raise; they leave
the node where it is. Everything below is fatal for the call that raised it.
"""


class CfgTreeError(Exception):
    """Base class for all cfgtree errors."""


class StructureNotFoundError(CfgTreeError, ValueError):
    """Raised when the `return [ ... ];` data block cannot be located or is unbalanced."""


class RootResolutionError(CfgTreeError, RuntimeError):
    """Raised when a node's ancestor chain does not end in a File."""


class UnsupportedOperationError(CfgTreeError, AttributeError):
    """Raised when a container capability is requested from a node that cannot provide it."""
