"""
CHIP-8 Disassembler Error Hierarchy
===================================

This module defines the exceptions raised by the package and the
diagnostics collected while analysing an image.

Exception Hierarchy
-------------------
Chip8Error (base)
├── ConfigurationError - invalid base address, mode or analysis limit
└── ImageError - the input image cannot be read

Diagnostics
-----------
Problems found in the analysed program are never raised. A disassembler's
job is a best-effort reconstruction of an unknown program, so every
malformed or ambiguous input degrades to a partial, annotated listing.
Each such problem is recorded as a Diagnostic on the DecodedProgram:

    MALFORMED_IMAGE            - odd trailing byte, oversized image
    UNRECOGNIZED_OPCODE        - word decoded as UNKNOWN; the path ends there
    UNRESOLVED_INDIRECT_BRANCH - JP V0, addr with V0 unknown
    OUT_OF_RANGE_TARGET        - branch target outside the address space
                                 or outside the loaded image

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Chip8Error(Exception):
    """
    Base exception for all chip8_disasm errors.

    Callers can catch every package error with a single except clause:

        try:
            program = disassemble(data, base_address=address)
        except Chip8Error as e:
            print(f"Error: {e}")
    """
    pass


class ConfigurationError(Chip8Error):
    """
    Invalid analysis configuration.

    Raised for caller contract violations, before any analysis starts:

    Examples:
        - Base address outside the 4KB address space
        - Unknown traversal mode name
        - Non-positive value set limit
    """
    pass


class ImageError(Chip8Error):
    """
    The input image could not be read.

    Attributes:
        path: The file that failed to load (if any)
    """

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


# =============================================================================
# Analysis Diagnostics
# =============================================================================

class DiagnosticKind(Enum):
    """Category of a non-fatal analysis problem."""
    MALFORMED_IMAGE = "malformed-image"
    UNRECOGNIZED_OPCODE = "unrecognized-opcode"
    UNRESOLVED_INDIRECT_BRANCH = "unresolved-indirect-branch"
    OUT_OF_RANGE_TARGET = "out-of-range-target"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Diagnostic:
    """
    A non-fatal problem found while analysing an image.

    Attributes:
        kind: Problem category
        message: Human-readable description
        address: Address of the instruction or byte concerned (if any)
        target: Offending branch target (for OUT_OF_RANGE_TARGET)
    """
    kind: DiagnosticKind
    message: str
    address: Optional[int] = None
    target: Optional[int] = None

    def __str__(self) -> str:
        """Format as '$ADDR: kind: message' for listings and logs."""
        if self.address is None:
            return f"{self.kind}: {self.message}"
        return f"${self.address:04X}: {self.kind}: {self.message}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "address": self.address,
            "target": self.target,
        }
