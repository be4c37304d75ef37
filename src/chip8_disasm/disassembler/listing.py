"""
Listing Emitter
===============

Renders a DecodedProgram as an assembler-style text listing. The emitter
only reads the program; it never decodes or analyses anything itself, so
the same program always renders to the same text.

Listing format:

    ; CHIP-8 disassembly
    ; Mode: recursive
    ; ...

    start:
    $0200: 60 05  LD     V0, #$05
    $0202: B2 10  JP     V0, $210  ; -> $0215
    $0204: FF FF  .BYTE  $FF, $FF

    sub_0208:
    $0208: 00 EE  RET

Each code line is the address, the raw bytes (unless disabled), the
mnemonic padded to a fixed column and the operands. Branch targets that
carry a label are shown by name. Data bytes are grouped in runs of up to
eight per line. Annotations follow the operands as ``;`` comments.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from typing import Optional

from chip8_disasm.config import DisassemblerConfig
from chip8_disasm.cpu import InstructionKind
from chip8_disasm.disassembler.decoder import Instruction
from chip8_disasm.disassembler.program import DecodedProgram


# Data bytes per .BYTE line
BYTES_PER_DATA_LINE = 8

# Width of the mnemonic column
MNEMONIC_WIDTH = 6


class ListingEmitter:
    """
    Turns a DecodedProgram into listing lines.

    Attributes:
        show_bytes: Include raw bytes after the address
        show_header: Start with a summary comment block
        show_diagnostics: End with the diagnostics as comments
    """

    def __init__(
        self,
        show_bytes: bool = True,
        show_header: bool = True,
        show_diagnostics: bool = True,
    ):
        self.show_bytes = show_bytes
        self.show_header = show_header
        self.show_diagnostics = show_diagnostics

    @classmethod
    def from_config(cls, config: DisassemblerConfig) -> "ListingEmitter":
        return cls(
            show_bytes=config.show_bytes,
            show_header=config.show_header,
            show_diagnostics=config.show_diagnostics,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def emit(self, program: DecodedProgram, title: Optional[str] = None) -> str:
        """
        Render the full listing.

        Args:
            program: The program to render
            title: Name shown in the header (e.g. the input file name)

        Returns:
            Listing text ending with a newline.
        """
        return "\n".join(self.lines(program, title=title)) + "\n"

    def lines(self, program: DecodedProgram, title: Optional[str] = None) -> list[str]:
        """Render the listing as a list of lines without newlines."""
        output = []
        if self.show_header:
            output.extend(self._header(program, title))
            output.append("")

        output.extend(self._body(program))

        if self.show_diagnostics and program.diagnostics:
            output.append("")
            output.append(f"; Diagnostics ({len(program.diagnostics)}):")
            for diagnostic in program.diagnostics:
                output.append(f";   {diagnostic}")

        return output

    # =========================================================================
    # Sections
    # =========================================================================

    def _header(self, program: DecodedProgram, title: Optional[str]) -> list[str]:
        header = [f"; Disassembly of {title}" if title else "; CHIP-8 disassembly"]
        header.append(f"; Mode: {program.mode}")
        header.append(f"; Base address: ${program.base_address:04X}")
        header.append(f"; Size: {len(program.image_data)} bytes")
        if program.entry_point is not None:
            header.append(f"; Entry point: ${program.entry_point:04X}")
        header.append(
            f"; Instructions: {len(program.instructions)}, "
            f"data bytes: {len(program.data)}, "
            f"labels: {len(program.labels)}"
        )
        return header

    def _body(self, program: DecodedProgram) -> list[str]:
        labels = program.label_names()

        # Merge code and data chunks into one address-ordered stream
        items = [(address, 0, program.instructions[address]) for address in program.sorted_addresses()]
        for start, chunk in program.data_regions():
            for offset in range(0, len(chunk), BYTES_PER_DATA_LINE):
                items.append((start + offset, 1, chunk[offset:offset + BYTES_PER_DATA_LINE]))
        items.sort(key=lambda item: (item[0], item[1]))

        body = []
        for address, _, item in items:
            if isinstance(item, Instruction):
                name = labels.get(address)
                if name:
                    if body:
                        body.append("")
                    body.append(f"{name}:")
                body.append(self._instruction_line(item, program, labels))
            else:
                body.append(self._data_line(address, item))
        return body

    # =========================================================================
    # Line Formatting
    # =========================================================================

    def _prefix(self, address: int, raw: bytes) -> str:
        if self.show_bytes:
            return f"${address:04X}: {raw.hex(' ').upper()}  "
        return f"${address:04X}: "

    def _instruction_line(
        self,
        instruction: Instruction,
        program: DecodedProgram,
        labels: dict[int, str],
    ) -> str:
        operands = ", ".join(instruction.format_operands(labels))
        line = self._prefix(instruction.address, instruction.raw_bytes)
        line += f"{instruction.mnemonic:<{MNEMONIC_WIDTH}} {operands}".rstrip()

        comments = self._annotations(instruction, program)
        if comments:
            line += "  ; " + "; ".join(comments)
        return line

    def _data_line(self, address: int, chunk: bytes) -> str:
        values = ", ".join(f"${b:02X}" for b in chunk)
        return self._prefix(address, chunk) + f"{'.BYTE':<{MNEMONIC_WIDTH}} {values}"

    def _annotations(self, instruction: Instruction, program: DecodedProgram) -> list[str]:
        """Trailing comments for one instruction, in a fixed order."""
        address = instruction.address
        comments = []

        if instruction.kind == InstructionKind.UNKNOWN:
            comments.append("unknown opcode")

        reason = program.unresolved.get(address)
        if reason is not None:
            comments.append(f"unresolved: {reason}")

        targets = program.indirect_targets.get(address)
        if targets:
            comments.append("-> " + ", ".join(f"${t:04X}" for t in targets))

        # Decoded at an odd offset inside another instruction
        if program.is_code(address - 1):
            comments.append(f"overlaps ${address - 1:04X}")

        return comments
