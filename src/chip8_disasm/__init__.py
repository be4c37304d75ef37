"""
chip8_disasm - Control-Flow Disassembler for CHIP-8 Programs
============================================================

This package statically reconstructs a readable instruction listing from a
raw CHIP-8 program image. Rather than decoding the image byte by byte, it
follows control flow from the entry point, so sprites and lookup tables
embedded between routines are kept as data instead of being misread as
instructions.

CHIP-8 programs are loaded at $200 in a 4KB address space. Every
instruction is two bytes, big-endian. The only computed branch is
JP V0, addr, whose target is resolved by tracking the possible values of
the registers along every traversal path.

Main Components
---------------
- **cpu**: CHIP-8 opcode table and instruction field layout
- **disassembler**: decoder, control-flow explorer, linear sweep baseline,
  register value tracker and listing emitter
- **config**: analysis configuration (defaults, environment, CLI)
- **cli**: the c8disasm command-line tool

Quick Start
-----------
Disassemble a ROM:
    >>> from chip8_disasm import disassemble_to_text
    >>> with open("pong.ch8", "rb") as f:
    ...     print(disassemble_to_text(f.read()))

Inspect the decoded program:
    >>> from chip8_disasm import disassemble
    >>> program = disassemble(rom_bytes)
    >>> program.unresolved
    {}

Or use the command-line tool:
    $ c8disasm pong.ch8
    $ c8disasm pong.ch8 --mode linear --no-bytes

Version History
---------------
1.0.0 - Initial release with recursive traversal and linear sweep
"""

__version__ = "1.0.0"
__author__ = "Hugo José Pinto & Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from chip8_disasm.errors import (
    Chip8Error,
    ConfigurationError,
    ImageError,
    Diagnostic,
    DiagnosticKind,
)
from chip8_disasm.config import DisassemblerConfig, TraversalMode
from chip8_disasm.disassembler import (
    ControlFlowExplorer,
    DecodedProgram,
    Instruction,
    LinearSweepDisassembler,
    ListingEmitter,
    RawImage,
    decode,
    disassemble,
    disassemble_to_text,
)

__all__ = [
    "__version__",
    # Errors
    "Chip8Error",
    "ConfigurationError",
    "ImageError",
    "Diagnostic",
    "DiagnosticKind",
    # Configuration
    "DisassemblerConfig",
    "TraversalMode",
    # Disassembly
    "ControlFlowExplorer",
    "DecodedProgram",
    "Instruction",
    "LinearSweepDisassembler",
    "ListingEmitter",
    "RawImage",
    "decode",
    "disassemble",
    "disassemble_to_text",
]
