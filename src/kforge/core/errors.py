"""Base error type for failures that abort a kforge run.

Each concrete failure lives next to the component that raises it:
ExecutionFailure (kforge.core.subprocess), NoCandidateFound
(kforge.core.versions) and ReconciliationFailure (kforge.core.kconfig).
The CLI catches KforgeError at the command boundary and renders it.
"""


class KforgeError(Exception):
    """A fatal failure of the current build step."""
