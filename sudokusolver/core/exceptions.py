"""Custom exception hierarchy for the sudoku engine."""


class SudokuError(Exception):
    """Base exception for engine failures."""


class InvariantViolation(SudokuError):
    """Raised when a locked cell is mutated or a grid is built from bad data."""


class PreconditionViolation(SudokuError):
    """Raised when an operation is requested on a grid or session in the wrong state."""


class MaskFormatError(PreconditionViolation):
    """Raised when a mask template is not 81 letters between A and I."""


class InterruptedByCancellation(SudokuError):
    """Raised when a search is cut short by cancellation or the hard timeout."""


class GenerationError(SudokuError):
    """Raised when a puzzle cannot be generated with the requested settings."""


class ValidationError(SudokuError):
    """Raised when the grid integrity checks fail."""
