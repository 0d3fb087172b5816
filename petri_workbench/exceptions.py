from __future__ import annotations


class PetriNetError(ValueError):
    """Base class for all Petri net workbench errors."""


class ParseError(PetriNetError):
    """Raised when model text is malformed or the model is structurally invalid."""


class ReplayError(PetriNetError):
    """Raised by strict replay when a step names an unknown or non-enabled transition."""
