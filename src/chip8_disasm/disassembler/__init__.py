"""
CHIP-8 Disassembler Module
==========================

This module turns a raw CHIP-8 program image into a listing. Two traversal
strategies produce the same DecodedProgram structure:

- **recursive** (default): follows control flow from the entry point,
  resolving JP V0, addr through register value tracking. Bytes that no
  path reaches are classified as data.
- **linear**: decodes every aligned word in order. Kept as a baseline
  that shows what naive disassembly gets wrong.

Usage:
    from chip8_disasm.disassembler import disassemble, disassemble_to_text

    program = disassemble(rom_bytes)
    for address in program.sorted_addresses():
        print(program.instructions[address])

    print(disassemble_to_text(rom_bytes, mode="linear"))

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from typing import Callable, Optional, Union

from chip8_disasm.config import DisassemblerConfig, TraversalMode
from chip8_disasm.disassembler.decoder import Instruction, decode
from chip8_disasm.disassembler.explorer import ControlFlowExplorer, WorklistEntry
from chip8_disasm.disassembler.image import RawImage
from chip8_disasm.disassembler.linear import LinearSweepDisassembler
from chip8_disasm.disassembler.listing import ListingEmitter
from chip8_disasm.disassembler.program import DecodedProgram, LabelKind
from chip8_disasm.disassembler.tracker import RegisterFile, RegisterValueSet


# =============================================================================
# Strategy Selection
# =============================================================================

def _recursive(image: RawImage, config: DisassemblerConfig) -> DecodedProgram:
    return ControlFlowExplorer(config).explore(image)


def _linear(image: RawImage, config: DisassemblerConfig) -> DecodedProgram:
    return LinearSweepDisassembler().disassemble(image)


STRATEGIES: dict[TraversalMode, Callable[[RawImage, DisassemblerConfig], DecodedProgram]] = {
    TraversalMode.RECURSIVE: _recursive,
    TraversalMode.LINEAR: _linear,
}


def disassemble(
    source: Union[bytes, bytearray, RawImage],
    config: Optional[DisassemblerConfig] = None,
    **overrides,
) -> DecodedProgram:
    """
    Disassemble a program image.

    Args:
        source: Raw program bytes, or an already loaded RawImage
        config: Analysis configuration (default: DisassemblerConfig())
        **overrides: Config fields to change for this call, e.g.
                     mode="linear" or base_address=0x600

    Returns:
        DecodedProgram produced by the configured traversal mode.

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    config = (config or DisassemblerConfig()).replace(**overrides).validate()

    if isinstance(source, RawImage):
        image = source
    else:
        image = RawImage(bytes(source), config.base_address, config.memory_size)

    return STRATEGIES[config.mode](image, config)


def disassemble_to_text(
    source: Union[bytes, bytearray, RawImage],
    config: Optional[DisassemblerConfig] = None,
    title: Optional[str] = None,
    **overrides,
) -> str:
    """Disassemble a program image and render it as a text listing."""
    config = (config or DisassemblerConfig()).replace(**overrides)
    program = disassemble(source, config)
    return ListingEmitter.from_config(config).emit(program, title=title)


__all__ = [
    "ControlFlowExplorer",
    "DecodedProgram",
    "Instruction",
    "LabelKind",
    "LinearSweepDisassembler",
    "ListingEmitter",
    "RawImage",
    "RegisterFile",
    "RegisterValueSet",
    "STRATEGIES",
    "WorklistEntry",
    "decode",
    "disassemble",
    "disassemble_to_text",
]
