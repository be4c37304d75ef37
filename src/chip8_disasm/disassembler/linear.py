"""
Linear Sweep Disassembler
=========================

Decodes every 2-byte-aligned address of an image in order, ignoring control
flow. This is the naive approach most CHIP-8 disassemblers take, kept here
as a baseline to compare recursive traversal against.

In the presence of branches, linear sweep misreads embedded data (sprites,
tables) as instructions. Its output is never authoritative: it has no data
regions apart from an odd trailing byte, and it never annotates unresolved
branches.
"""

import logging

from chip8_disasm.config import TraversalMode
from chip8_disasm.cpu import INSTRUCTION_SIZE, InstructionKind
from chip8_disasm.disassembler.decoder import decode
from chip8_disasm.disassembler.image import RawImage
from chip8_disasm.disassembler.program import DecodedProgram, LabelKind
from chip8_disasm.errors import DiagnosticKind

logger = logging.getLogger(__name__)


class LinearSweepDisassembler:
    """Sequential decoder over the whole image."""

    def disassemble(self, image: RawImage) -> DecodedProgram:
        """
        Decode every aligned word of the image.

        Args:
            image: The program image

        Returns:
            DecodedProgram covering the whole image.
        """
        program = DecodedProgram(
            mode=TraversalMode.LINEAR,
            base_address=image.base_address,
            image_data=image.data,
            diagnostics=list(image.diagnostics),
        )

        for address in range(image.base_address, image.end_address - 1, INSTRUCTION_SIZE):
            instruction = decode(image.word_at(address), address)
            program.instructions[address] = instruction

            if instruction.kind == InstructionKind.UNKNOWN:
                program.add_diagnostic(
                    DiagnosticKind.UNRECOGNIZED_OPCODE,
                    f"unrecognized opcode ${instruction.word:04X}",
                    address=address,
                )
            elif instruction.kind == InstructionKind.CALL:
                program.add_label(instruction.fields.nnn, LabelKind.SUBROUTINE)
            elif instruction.kind in (InstructionKind.JUMP_ABSOLUTE, InstructionKind.SYS_CALL):
                program.add_label(instruction.fields.nnn, LabelKind.BRANCH)

        program.labels = {
            address: kind
            for address, kind in program.labels.items()
            if address in program.instructions
        }
        program.classify_data(image.addresses())

        logger.debug(
            f"Linear sweep decoded {len(program.instructions)} words from {image!r}"
        )
        return program
