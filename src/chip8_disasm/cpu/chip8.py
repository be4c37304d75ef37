"""
CHIP-8 Instruction Set Definition
=================================

This module defines the CHIP-8 instruction set as data: the bitfield layout
of an instruction word, the control-transfer class of every opcode, and the
effect each opcode has on the sixteen general-purpose registers V0-VF.

All CHIP-8 instructions are two bytes long and stored big-endian (most
significant byte first). The instruction word is split into these fields:

    u   - bits 12-15, the opcode class identifier
    x   - bits 8-11, a register index
    y   - bits 4-7, a register index
    n   - bits 0-3, a nibble
    kk  - bits 0-7, a byte literal
    nnn - bits 0-11, an address

Memory Map
----------
CHIP-8 programs see 4KB of address space. The first 512 bytes ($000-$1FF)
belonged to the interpreter on the COSMAC VIP, so programs are loaded at
$200 by convention.

Control Flow
------------
There are no conditional branches. Control can only change through:

- JP addr (1nnn): absolute jump
- CALL addr (2nnn) / RET (00EE): subroutine call and return
- CLS (00E0): clear screen, treated as the end of a path
- SYS addr (0nnn): call to a machine code routine
- JP V0, addr (Bnnn): jump to nnn + V0, the only indirect branch
- SE/SNE/SKP/SKNP: skip the next instruction

Reference
---------
- Cowgod's CHIP-8 Technical Reference: http://devernay.free.fr/hacks/chip8/C8TECH10.HTM

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


# =============================================================================
# Architecture Constants
# =============================================================================

MEMORY_SIZE = 0x1000        # Total addressable memory (4KB)
PROGRAM_START = 0x200       # Conventional load address for programs
INSTRUCTION_SIZE = 2        # Every instruction is one 16-bit word
REGISTER_COUNT = 16         # V0-VF
FLAG_REGISTER = 0xF         # VF doubles as carry/borrow/collision flag
INDIRECT_JUMP_REGISTER = 0  # Bnnn jumps to nnn + V0
BYTE_VALUES = 256           # Number of distinct values a register can hold


# =============================================================================
# Instruction Classification
# =============================================================================

class InstructionKind(Enum):
    """
    Control-transfer class of an instruction.

    The kind is all the control-flow explorer needs to know to enumerate
    the successors of an instruction.
    """
    SEQUENTIAL = auto()        # Falls through to address + 2
    SKIP_CONDITIONAL = auto()  # Falls through to address + 2 or address + 4
    CALL = auto()              # Calls nnn, returns to address + 2
    RETURN = auto()            # Returns to the caller
    TERMINAL = auto()          # Ends the path (clear screen)
    JUMP_ABSOLUTE = auto()     # Jumps to nnn
    JUMP_INDIRECT = auto()     # Jumps to nnn + V0
    SYS_CALL = auto()          # Calls machine code routine at nnn
    UNKNOWN = auto()           # Unrecognized bit pattern

    def __str__(self) -> str:
        return self.name.lower().replace("_", "-")


class RegisterEffect(Enum):
    """
    How an instruction changes the general-purpose registers.

    Used by the register value tracker to carry the possible values of
    each register along a traversal path.
    """
    NONE = auto()          # No register written
    LOAD_LITERAL = auto()  # Vx = kk
    ADD_LITERAL = auto()   # Vx = Vx + kk (no carry flag)
    COPY = auto()          # Vx = Vy
    OR = auto()            # Vx = Vx | Vy, VF clobbered
    AND = auto()           # Vx = Vx & Vy, VF clobbered
    XOR = auto()           # Vx = Vx ^ Vy, VF clobbered
    ADD = auto()           # Vx = Vx + Vy, VF = carry
    SUB = auto()           # Vx = Vx - Vy, VF = NOT borrow
    SHR = auto()           # Vx = Vx >> 1 (or Vy >> 1), VF = shifted bit
    SUBN = auto()          # Vx = Vy - Vx, VF = NOT borrow
    SHL = auto()           # Vx = Vx << 1 (or Vy << 1), VF = shifted bit
    RANDOM = auto()        # Vx = random byte & kk
    CLOBBER = auto()       # Vx = value from outside the program (timer, key)
    LOAD_MEMORY = auto()   # V0..Vx = memory at I
    COLLISION = auto()     # VF = sprite collision flag


@dataclass(frozen=True)
class InstructionFields:
    """
    The standard bitfield extractions of a 16-bit instruction word.

    Attributes:
        u: Opcode class (bits 12-15)
        x: First register index (bits 8-11)
        y: Second register index (bits 4-7)
        n: Low nibble (bits 0-3)
        kk: Low byte (bits 0-7)
        nnn: Address (bits 0-11)
    """
    u: int
    x: int
    y: int
    n: int
    kk: int
    nnn: int


def extract_fields(word: int) -> InstructionFields:
    """Split an instruction word into its bitfields."""
    return InstructionFields(
        u=(word >> 12) & 0xF,
        x=(word >> 8) & 0xF,
        y=(word >> 4) & 0xF,
        n=word & 0xF,
        kk=word & 0xFF,
        nnn=word & 0xFFF,
    )


# =============================================================================
# Opcode Information
# =============================================================================

@dataclass(frozen=True)
class OpcodeInfo:
    """
    Information about one CHIP-8 opcode encoding.

    An instruction word matches this entry when ``word & mask == pattern``.

    Operand tokens are rendered by the decoder:
        "Vx", "Vy" - register named by the x / y field
        "kk"       - byte literal
        "nnn"      - address
        "n"        - nibble literal
        anything else is emitted verbatim (e.g. "I", "DT", "[I]")

    Attributes:
        pattern: Fixed bits of the encoding
        mask: Which bits of the word are fixed
        mnemonic: Instruction mnemonic
        operands: Operand tokens in display order
        kind: Control-transfer class
        effect: Register effect
        description: One-line description for documentation
    """
    pattern: int
    mask: int
    mnemonic: str
    operands: tuple[str, ...]
    kind: InstructionKind
    effect: RegisterEffect
    description: str

    @property
    def opcode_class(self) -> int:
        """The u field shared by every word matching this entry."""
        return (self.pattern >> 12) & 0xF

    def matches(self, word: int) -> bool:
        return (word & self.mask) == self.pattern

    def __repr__(self) -> str:
        return f"OpcodeInfo(${self.pattern:04X}/${self.mask:04X}, {self.mnemonic})"


_K = InstructionKind
_E = RegisterEffect


def _op(pattern, mask, mnemonic, operands, kind, effect, description):
    return OpcodeInfo(pattern, mask, mnemonic, tuple(operands), kind, effect, description)


# =============================================================================
# Opcode Table
# =============================================================================
# Entries are listed in priority order. Within class 0 the exact encodings
# of CLS and RET must be tried before the SYS catch-all, since they live in
# the same opcode space (SYS $0E0 and SYS $0EE are never valid).
# =============================================================================

OPCODE_TABLE: list[OpcodeInfo] = [
    # Class 0: screen, return, machine code routine
    _op(0x00E0, 0xFFFF, "CLS", (), _K.TERMINAL, _E.NONE,
        "Clear the display"),
    _op(0x00EE, 0xFFFF, "RET", (), _K.RETURN, _E.NONE,
        "Return from subroutine"),
    _op(0x0000, 0xF000, "SYS", ("nnn",), _K.SYS_CALL, _E.NONE,
        "Call machine code routine at nnn"),

    # Classes 1-2: absolute jump and call
    _op(0x1000, 0xF000, "JP", ("nnn",), _K.JUMP_ABSOLUTE, _E.NONE,
        "Jump to nnn"),
    _op(0x2000, 0xF000, "CALL", ("nnn",), _K.CALL, _E.NONE,
        "Call subroutine at nnn"),

    # Classes 3-5: skips
    _op(0x3000, 0xF000, "SE", ("Vx", "kk"), _K.SKIP_CONDITIONAL, _E.NONE,
        "Skip next instruction if Vx == kk"),
    _op(0x4000, 0xF000, "SNE", ("Vx", "kk"), _K.SKIP_CONDITIONAL, _E.NONE,
        "Skip next instruction if Vx != kk"),
    _op(0x5000, 0xF00F, "SE", ("Vx", "Vy"), _K.SKIP_CONDITIONAL, _E.NONE,
        "Skip next instruction if Vx == Vy"),

    # Classes 6-7: literal loads
    _op(0x6000, 0xF000, "LD", ("Vx", "kk"), _K.SEQUENTIAL, _E.LOAD_LITERAL,
        "Set Vx = kk"),
    _op(0x7000, 0xF000, "ADD", ("Vx", "kk"), _K.SEQUENTIAL, _E.ADD_LITERAL,
        "Set Vx = Vx + kk"),

    # Class 8: register arithmetic, selected by n
    _op(0x8000, 0xF00F, "LD", ("Vx", "Vy"), _K.SEQUENTIAL, _E.COPY,
        "Set Vx = Vy"),
    _op(0x8001, 0xF00F, "OR", ("Vx", "Vy"), _K.SEQUENTIAL, _E.OR,
        "Set Vx = Vx OR Vy"),
    _op(0x8002, 0xF00F, "AND", ("Vx", "Vy"), _K.SEQUENTIAL, _E.AND,
        "Set Vx = Vx AND Vy"),
    _op(0x8003, 0xF00F, "XOR", ("Vx", "Vy"), _K.SEQUENTIAL, _E.XOR,
        "Set Vx = Vx XOR Vy"),
    _op(0x8004, 0xF00F, "ADD", ("Vx", "Vy"), _K.SEQUENTIAL, _E.ADD,
        "Set Vx = Vx + Vy, set VF = carry"),
    _op(0x8005, 0xF00F, "SUB", ("Vx", "Vy"), _K.SEQUENTIAL, _E.SUB,
        "Set Vx = Vx - Vy, set VF = NOT borrow"),
    _op(0x8006, 0xF00F, "SHR", ("Vx", "Vy"), _K.SEQUENTIAL, _E.SHR,
        "Set Vx = Vx SHR 1"),
    _op(0x8007, 0xF00F, "SUBN", ("Vx", "Vy"), _K.SEQUENTIAL, _E.SUBN,
        "Set Vx = Vy - Vx, set VF = NOT borrow"),
    _op(0x800E, 0xF00F, "SHL", ("Vx", "Vy"), _K.SEQUENTIAL, _E.SHL,
        "Set Vx = Vx SHL 1"),

    # Class 9: register skip
    _op(0x9000, 0xF00F, "SNE", ("Vx", "Vy"), _K.SKIP_CONDITIONAL, _E.NONE,
        "Skip next instruction if Vx != Vy"),

    # Classes A-D
    _op(0xA000, 0xF000, "LD", ("I", "nnn"), _K.SEQUENTIAL, _E.NONE,
        "Set I = nnn"),
    _op(0xB000, 0xF000, "JP", ("V0", "nnn"), _K.JUMP_INDIRECT, _E.NONE,
        "Jump to nnn + V0"),
    _op(0xC000, 0xF000, "RND", ("Vx", "kk"), _K.SEQUENTIAL, _E.RANDOM,
        "Set Vx = random byte AND kk"),
    _op(0xD000, 0xF000, "DRW", ("Vx", "Vy", "n"), _K.SEQUENTIAL, _E.COLLISION,
        "Draw n-byte sprite at (Vx, Vy), set VF = collision"),

    # Class E: keyboard skips, selected by kk
    _op(0xE09E, 0xF0FF, "SKP", ("Vx",), _K.SKIP_CONDITIONAL, _E.NONE,
        "Skip next instruction if key Vx is pressed"),
    _op(0xE0A1, 0xF0FF, "SKNP", ("Vx",), _K.SKIP_CONDITIONAL, _E.NONE,
        "Skip next instruction if key Vx is not pressed"),

    # Class F: timers, memory, selected by kk
    _op(0xF007, 0xF0FF, "LD", ("Vx", "DT"), _K.SEQUENTIAL, _E.CLOBBER,
        "Set Vx = delay timer"),
    _op(0xF00A, 0xF0FF, "LD", ("Vx", "K"), _K.SEQUENTIAL, _E.CLOBBER,
        "Wait for a key press, store the key in Vx"),
    _op(0xF015, 0xF0FF, "LD", ("DT", "Vx"), _K.SEQUENTIAL, _E.NONE,
        "Set delay timer = Vx"),
    _op(0xF018, 0xF0FF, "LD", ("ST", "Vx"), _K.SEQUENTIAL, _E.NONE,
        "Set sound timer = Vx"),
    _op(0xF01E, 0xF0FF, "ADD", ("I", "Vx"), _K.SEQUENTIAL, _E.NONE,
        "Set I = I + Vx"),
    _op(0xF029, 0xF0FF, "LD", ("F", "Vx"), _K.SEQUENTIAL, _E.NONE,
        "Set I = location of sprite for digit Vx"),
    _op(0xF033, 0xF0FF, "LD", ("B", "Vx"), _K.SEQUENTIAL, _E.NONE,
        "Store BCD of Vx at I, I+1, I+2"),
    _op(0xF055, 0xF0FF, "LD", ("[I]", "Vx"), _K.SEQUENTIAL, _E.NONE,
        "Store V0 through Vx at I"),
    _op(0xF065, 0xF0FF, "LD", ("Vx", "[I]"), _K.SEQUENTIAL, _E.LOAD_MEMORY,
        "Read V0 through Vx from I"),
]


def _build_class_index() -> dict[int, list[OpcodeInfo]]:
    """
    Group the opcode table by opcode class (u field), keeping priority order.

    Returns:
        Dictionary mapping each class 0x0-0xF to its candidate entries.
    """
    index: dict[int, list[OpcodeInfo]] = {u: [] for u in range(16)}
    for info in OPCODE_TABLE:
        index[info.opcode_class].append(info)
    return index


_CLASS_INDEX = _build_class_index()


def lookup_opcode(word: int) -> Optional[OpcodeInfo]:
    """
    Find the opcode table entry for an instruction word.

    The primary class (u field) selects a short candidate list, which is then
    searched in priority order.

    Args:
        word: 16-bit instruction word

    Returns:
        The matching OpcodeInfo, or None for an unrecognized bit pattern.
    """
    for info in _CLASS_INDEX[(word >> 12) & 0xF]:
        if info.matches(word):
            return info
    return None


def register_name(index: int) -> str:
    """Return the display name of general-purpose register Vx."""
    return f"V{index:X}"
