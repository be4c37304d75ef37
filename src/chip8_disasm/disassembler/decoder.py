"""
CHIP-8 Instruction Decoder
==========================

Maps a 16-bit instruction word to a classified Instruction. The decoder is a
pure function: it has no state, and it is total, so every one of the 65536
possible words decodes to something. Words that match no opcode table entry
decode as UNKNOWN rather than failing.

Usage:
    instr = decode(0x2208, address=0x200)
    print(f"{instr.address:04X}: {instr.mnemonic} {instr.operand_str}")
    # 0200: CALL $208

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from chip8_disasm.cpu import (
    INSTRUCTION_SIZE,
    InstructionFields,
    InstructionKind,
    OpcodeInfo,
    RegisterEffect,
    extract_fields,
    lookup_opcode,
    register_name,
)


# Kinds whose nnn field is a static branch target
_STATIC_TARGET_KINDS = (
    InstructionKind.JUMP_ABSOLUTE,
    InstructionKind.CALL,
    InstructionKind.SYS_CALL,
)


# =============================================================================
# Data Structures
# =============================================================================

@dataclass(frozen=True)
class Instruction:
    """
    A single decoded CHIP-8 instruction.

    Attributes:
        address: Memory address of the instruction
        word: The 16-bit instruction word
        fields: Bitfield extractions of the word
        kind: Control-transfer class
        info: Opcode table entry (None for UNKNOWN)
    """
    address: int
    word: int
    fields: InstructionFields
    kind: InstructionKind
    info: Optional[OpcodeInfo]

    @property
    def mnemonic(self) -> str:
        if self.info is None:
            return ".WORD"
        return self.info.mnemonic

    @property
    def effect(self) -> RegisterEffect:
        if self.info is None:
            return RegisterEffect.NONE
        return self.info.effect

    @property
    def size(self) -> int:
        return INSTRUCTION_SIZE

    @property
    def raw_bytes(self) -> bytes:
        return bytes([(self.word >> 8) & 0xFF, self.word & 0xFF])

    @property
    def target(self) -> Optional[int]:
        """
        The nnn field for branch instructions, None otherwise.

        For JP V0, addr this is the base of the indirect target, not the
        target itself.
        """
        if self.kind in _STATIC_TARGET_KINDS or self.kind == InstructionKind.JUMP_INDIRECT:
            return self.fields.nnn
        return None

    @property
    def operands(self) -> tuple[str, ...]:
        return self.format_operands()

    @property
    def operand_str(self) -> str:
        return ", ".join(self.operands)

    def format_operands(self, labels: Optional[Mapping[int, str]] = None) -> tuple[str, ...]:
        """
        Render the operand tokens of this instruction.

        Args:
            labels: Optional mapping of addresses to label names. The address
                    operand of JP, CALL and SYS is replaced by its label.

        Returns:
            Tuple of operand strings in display order.
        """
        if self.info is None:
            return (f"${self.word:04X}",)

        f = self.fields
        rendered = []
        for token in self.info.operands:
            if token == "Vx":
                rendered.append(register_name(f.x))
            elif token == "Vy":
                rendered.append(register_name(f.y))
            elif token == "kk":
                rendered.append(f"#${f.kk:02X}")
            elif token == "n":
                rendered.append(f"#${f.n:X}")
            elif token == "nnn":
                label = None
                if labels and self.kind in _STATIC_TARGET_KINDS:
                    label = labels.get(f.nnn)
                rendered.append(label or f"${f.nnn:03X}")
            else:
                rendered.append(token)
        return tuple(rendered)

    def static_successors(self) -> tuple[int, ...]:
        """
        Addresses control can reach next, for every kind except JUMP_INDIRECT.

        The call site's fallthrough is included for CALL because the callee
        returns there. JUMP_INDIRECT depends on V0 and yields nothing here.
        """
        following = self.address + INSTRUCTION_SIZE
        if self.kind == InstructionKind.SEQUENTIAL:
            return (following,)
        if self.kind == InstructionKind.SKIP_CONDITIONAL:
            return (following, following + INSTRUCTION_SIZE)
        if self.kind in (InstructionKind.JUMP_ABSOLUTE, InstructionKind.SYS_CALL):
            return (self.fields.nnn,)
        if self.kind == InstructionKind.CALL:
            return (self.fields.nnn, following)
        return ()

    def __str__(self) -> str:
        """Format as 'ADDRESS: MNEMONIC OPERANDS'."""
        if self.operand_str:
            return f"${self.address:04X}: {self.mnemonic} {self.operand_str}"
        return f"${self.address:04X}: {self.mnemonic}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": f"${self.address:04X}",
            "address_int": self.address,
            "word": f"${self.word:04X}",
            "mnemonic": self.mnemonic,
            "operands": list(self.operands),
            "kind": str(self.kind),
            "target": self.target,
        }


# =============================================================================
# Decoder
# =============================================================================

def decode(word: int, address: int = 0) -> Instruction:
    """
    Decode a single instruction word.

    Args:
        word: 16-bit instruction word (big-endian value of the two bytes)
        address: Memory address of the instruction

    Returns:
        Instruction with kind UNKNOWN if the word matches no opcode.
    """
    word &= 0xFFFF
    info = lookup_opcode(word)
    kind = info.kind if info is not None else InstructionKind.UNKNOWN
    return Instruction(
        address=address,
        word=word,
        fields=extract_fields(word),
        kind=kind,
        info=info,
    )
