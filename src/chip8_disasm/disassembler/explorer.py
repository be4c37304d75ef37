"""
Control-Flow Explorer
=====================

Recursive-traversal disassembly of a CHIP-8 image. Instead of decoding the
image sequentially, the explorer starts at the entry point and only decodes
addresses that control flow can reach, so data embedded between code is
never mistaken for instructions.

Traversal uses an explicit worklist, never native recursion: CHIP-8
programs are full of jump and call cycles, and crafted input could nest
arbitrarily deep. Each address is decoded at most once, so the worklist
empties after at most one decode per image address.

Algorithm
---------
1. Pop the oldest worklist entry (address, registers).
2. If the address was already decoded, discard the entry.
3. Decode the instruction, record it, and queue its successors:

       SEQUENTIAL        address + 2
       SKIP_CONDITIONAL  address + 2 and address + 4
       JUMP_ABSOLUTE     nnn
       SYS_CALL          nnn
       CALL              nnn and address + 2 (the callee returns there)
       JUMP_INDIRECT     nnn + v for each possible value v of V0
       RETURN, TERMINAL  nothing
       UNKNOWN           nothing

4. Successors carry the register state after the instruction. Queuing an
   address that is already waiting joins the two register states into a new
   entry that keeps the original queue position.
5. When the worklist is empty, every image byte not covered by a decoded
   instruction is classified as data.

Register values are only propagated forward: once an address is decoded,
values reaching it later along other paths are not pushed through it again.

Usage:
    explorer = ControlFlowExplorer()
    program = explorer.explore(RawImage(rom_bytes))
    for address in program.sorted_addresses():
        print(program.instructions[address])
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional
import logging

from chip8_disasm.config import DisassemblerConfig, TraversalMode
from chip8_disasm.cpu import INDIRECT_JUMP_REGISTER, INSTRUCTION_SIZE, InstructionKind
from chip8_disasm.disassembler.decoder import Instruction, decode
from chip8_disasm.disassembler.image import RawImage
from chip8_disasm.disassembler.program import DecodedProgram, LabelKind
from chip8_disasm.disassembler.tracker import RegisterFile
from chip8_disasm.errors import DiagnosticKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorklistEntry:
    """
    A pending traversal task.

    Attributes:
        address: Address to decode
        registers: Register state on arrival
    """
    address: int
    registers: RegisterFile

    def merged(self, registers: RegisterFile, limit: int) -> "WorklistEntry":
        """Return a new entry whose registers are joined with another path's."""
        return WorklistEntry(self.address, self.registers.join(registers, limit))


class ControlFlowExplorer:
    """
    Worklist-based recursive traversal disassembler.

    The explorer is reusable: each call to explore() starts from a clean
    state.

    Attributes:
        config: Analysis configuration
        steps: Number of worklist entries processed by the last run
    """

    def __init__(self, config: Optional[DisassemblerConfig] = None):
        self.config = config or DisassemblerConfig()
        self.steps = 0
        self._image: Optional[RawImage] = None
        self._program: Optional[DecodedProgram] = None
        self._worklist: "OrderedDict[int, WorklistEntry]" = OrderedDict()
        self._visited: set[int] = set()

    # =========================================================================
    # Public API
    # =========================================================================

    def explore(self, image: RawImage, entry: Optional[int] = None) -> DecodedProgram:
        """
        Disassemble an image by following control flow.

        Args:
            image: The program image
            entry: Entry point (default: the image's base address)

        Returns:
            DecodedProgram with instructions, data, labels and diagnostics.
        """
        entry = image.base_address if entry is None else entry

        self._image = image
        self._program = DecodedProgram(
            mode=TraversalMode.RECURSIVE,
            base_address=image.base_address,
            image_data=image.data,
            entry_point=entry,
            diagnostics=list(image.diagnostics),
        )
        self._worklist = OrderedDict()
        self._visited = set()
        self.steps = 0

        logger.debug(f"Exploring {image!r} from ${entry:04X}")

        if self._check_target(entry, source=None):
            self._program.add_label(entry, LabelKind.ENTRY)
            self._schedule(entry, RegisterFile.initial())

        while self._worklist:
            _, item = self._worklist.popitem(last=False)
            self.steps += 1
            self._step(item)

        program = self._program
        # Labels only make sense on decoded instructions
        program.labels = {
            address: kind
            for address, kind in program.labels.items()
            if address in program.instructions
        }
        program.classify_data(image.addresses())

        logger.debug(
            f"Explored {len(program.instructions)} instructions in {self.steps} steps; "
            f"{len(program.data)} data bytes, {len(program.diagnostics)} diagnostics"
        )

        self._image = None
        self._program = None
        return program

    # =========================================================================
    # Traversal
    # =========================================================================

    def _step(self, item: WorklistEntry) -> None:
        """Decode one address and queue its successors."""
        address = item.address
        if address in self._visited:
            return
        self._visited.add(address)

        word = self._image.word_at(address)
        if word is None:
            self._report(
                DiagnosticKind.MALFORMED_IMAGE,
                "instruction truncated by end of image",
                address=address,
            )
            return

        instruction = decode(word, address)
        self._program.instructions[address] = instruction

        if instruction.kind == InstructionKind.UNKNOWN:
            self._report(
                DiagnosticKind.UNRECOGNIZED_OPCODE,
                f"unrecognized opcode ${word:04X}; path ends here",
                address=address,
            )
            return

        if instruction.kind == InstructionKind.JUMP_INDIRECT:
            self._follow_indirect(instruction, item.registers)
            return

        registers = item.registers.apply(instruction, self.config.value_set_limit)
        following = address + INSTRUCTION_SIZE

        if instruction.kind in (InstructionKind.SEQUENTIAL, InstructionKind.SKIP_CONDITIONAL):
            for successor in instruction.static_successors():
                self._follow_fallthrough(successor, registers, instruction)

        elif instruction.kind in (InstructionKind.JUMP_ABSOLUTE, InstructionKind.SYS_CALL):
            self._follow_branch(instruction.fields.nnn, registers, instruction, LabelKind.BRANCH)

        elif instruction.kind == InstructionKind.CALL:
            self._follow_branch(instruction.fields.nnn, registers, instruction, LabelKind.SUBROUTINE)
            self._follow_fallthrough(following, registers, instruction)

        # RETURN and TERMINAL end the path

    def _follow_fallthrough(self, target: int, registers: RegisterFile, source: Instruction) -> None:
        if self._image.contains(target):
            self._schedule(target, registers)
            return
        self._report(
            DiagnosticKind.OUT_OF_RANGE_TARGET,
            f"execution continues at ${target:04X}, past the end of the image",
            address=source.address,
            target=target,
        )

    def _follow_branch(
        self,
        target: int,
        registers: RegisterFile,
        source: Instruction,
        label: LabelKind,
    ) -> bool:
        if not self._check_target(target, source=source):
            return False
        self._program.add_label(target, label)
        self._schedule(target, registers)
        return True

    def _follow_indirect(self, instruction: Instruction, registers: RegisterFile) -> None:
        """Resolve JP V0, nnn against the possible values of V0."""
        address = instruction.address
        v0 = registers.get(INDIRECT_JUMP_REGISTER)

        if v0.is_unknown:
            reason = "V0 unknown"
            self._program.unresolved[address] = reason
            self._report(
                DiagnosticKind.UNRESOLVED_INDIRECT_BRANCH,
                f"cannot resolve JP V0, ${instruction.fields.nnn:03X}: {reason}",
                address=address,
            )
            return

        targets = [instruction.fields.nnn + value for value in v0]
        followed = tuple(
            target for target in targets
            if self._follow_branch(target, registers, instruction, LabelKind.BRANCH)
        )
        logger.debug(
            f"${address:04X}: JP V0, ${instruction.fields.nnn:03X} with V0={v0} "
            f"resolves to {len(followed)} of {len(targets)} targets"
        )

        if followed:
            self._program.indirect_targets[address] = followed
        else:
            self._program.unresolved[address] = "no target inside the image"

    def _schedule(self, address: int, registers: RegisterFile) -> None:
        """
        Queue an address for decoding.

        Already-decoded addresses are ignored. An address that is already
        queued has its register state joined with the new one.
        """
        if address in self._visited:
            return
        pending = self._worklist.get(address)
        if pending is None:
            self._worklist[address] = WorklistEntry(address, registers)
        else:
            self._worklist[address] = pending.merged(registers, self.config.value_set_limit)

    def _check_target(self, target: int, source: Optional[Instruction]) -> bool:
        """
        Check that a branch target can be decoded.

        Targets outside the address space or outside the loaded image are
        reported and never dereferenced.
        """
        if self._image.contains(target):
            return True

        origin = source.address if source is not None else None
        if not self._image.in_address_space(target):
            message = f"target ${target:04X} outside the address space"
        else:
            message = f"target ${target:04X} not in the loaded image"
        if source is not None and source.kind != InstructionKind.JUMP_INDIRECT:
            self._program.unresolved[source.address] = message
        self._report(DiagnosticKind.OUT_OF_RANGE_TARGET, message, address=origin, target=target)
        return False

    def _report(
        self,
        kind: DiagnosticKind,
        message: str,
        address: Optional[int] = None,
        target: Optional[int] = None,
    ) -> None:
        diagnostic = self._program.add_diagnostic(kind, message, address=address, target=target)
        logger.warning(str(diagnostic))
