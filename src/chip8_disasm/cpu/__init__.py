"""
CHIP-8 CPU Package
==================

This package contains the CHIP-8 architecture definitions shared by the
decoder, the register value tracker and the control-flow explorer.

Keeping the instruction set in one place means the decoder (which classifies
words) and the tracker (which models register writes) read the same table.

Usage:
    from chip8_disasm.cpu import (
        InstructionKind,
        OPCODE_TABLE,
        lookup_opcode,
    )
"""

from chip8_disasm.cpu.chip8 import (
    # Architecture constants
    MEMORY_SIZE,
    PROGRAM_START,
    INSTRUCTION_SIZE,
    REGISTER_COUNT,
    FLAG_REGISTER,
    INDIRECT_JUMP_REGISTER,
    BYTE_VALUES,
    # Core types
    InstructionKind,
    RegisterEffect,
    InstructionFields,
    OpcodeInfo,
    # Master instruction database
    OPCODE_TABLE,
    # Lookup functions
    extract_fields,
    lookup_opcode,
    register_name,
)

__all__ = [
    "MEMORY_SIZE",
    "PROGRAM_START",
    "INSTRUCTION_SIZE",
    "REGISTER_COUNT",
    "FLAG_REGISTER",
    "INDIRECT_JUMP_REGISTER",
    "BYTE_VALUES",
    "InstructionKind",
    "RegisterEffect",
    "InstructionFields",
    "OpcodeInfo",
    "OPCODE_TABLE",
    "extract_fields",
    "lookup_opcode",
    "register_name",
]
