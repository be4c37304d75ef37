"""
Unit Tests for the Control-Flow Explorer
========================================

Tests for recursive traversal, register-based resolution of JP V0, addr,
and the code/data split.

Test coverage includes:
- Entry point, fallthrough, skips, calls and returns
- Termination on jump and call cycles
- Resolution of indirect jumps from tracked register values
- Unresolved and out-of-range branches
- Malformed images and unknown opcodes
- Determinism and soundness of the code/data split

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from chip8_disasm.config import DisassemblerConfig, TraversalMode
from chip8_disasm.cpu import InstructionKind
from chip8_disasm.disassembler.explorer import ControlFlowExplorer, WorklistEntry
from chip8_disasm.disassembler.image import RawImage
from chip8_disasm.disassembler.program import LabelKind
from chip8_disasm.disassembler.tracker import RegisterFile
from chip8_disasm.disassembler.decoder import decode
from chip8_disasm.errors import DiagnosticKind


def words(*values):
    """Assemble 16-bit words into big-endian bytes."""
    data = bytearray()
    for value in values:
        data += bytes([(value >> 8) & 0xFF, value & 0xFF])
    return bytes(data)


# Indirect jump resolved through V0: LD V0, #$05 / JP V0, $210 with the
# target routine at $215, inside a block of sprite data
INDIRECT_ROM = (
    words(0x6005, 0xB210)
    + bytes([0xFF] * 17)        # $0204-$0214
    + words(0x00EE)             # $0215
    + bytes([0xFF])             # $0217
)


class TestControlFlowExplorer:
    """Tests for ControlFlowExplorer.explore()."""

    def setup_method(self):
        """Create explorer instance for each test."""
        self.explorer = ControlFlowExplorer()

    def explore(self, data, **kwargs):
        return self.explorer.explore(RawImage(data, **kwargs))

    # -------------------------------------------------------------------------
    # Basic Traversal
    # -------------------------------------------------------------------------

    def test_straight_line(self):
        """Test sequential instructions up to a return."""
        program = self.explore(words(0x6005, 0xA300, 0x00EE))
        assert program.sorted_addresses() == [0x200, 0x202, 0x204]
        assert program.data == set()
        assert program.diagnostics == []
        assert program.mode == TraversalMode.RECURSIVE
        assert program.entry_point == 0x200
        assert program.labels == {0x200: LabelKind.ENTRY}

    def test_return_ends_path(self):
        """Test bytes after a top-level return are data."""
        program = self.explore(words(0x00EE, 0xFFFF))
        assert program.sorted_addresses() == [0x200]
        assert program.data == {0x202, 0x203}

    def test_clear_screen_ends_path(self):
        """Test nothing after CLS is decoded unless reached another way."""
        program = self.explore(words(0x00E0, 0x00EE))
        assert program.sorted_addresses() == [0x200]
        assert program.data == {0x202, 0x203}
        assert program.diagnostics == []

    def test_jump_over_data(self):
        """Test a jump skips embedded data."""
        program = self.explore(words(0x1204, 0xFFFF, 0x1204))
        assert program.sorted_addresses() == [0x200, 0x204]
        assert program.data == {0x202, 0x203}
        assert program.labels[0x204] == LabelKind.BRANCH

    def test_skip_explores_both_paths(self):
        """Test a skip explores the next and the one after."""
        program = self.explore(words(0x3000, 0x1202, 0x00EE))
        assert program.sorted_addresses() == [0x200, 0x202, 0x204]

    def test_call_continuation(self):
        """Test the instruction after a CALL is explored."""
        program = self.explore(words(0x2208, 0x6001, 0x1202, 0xFFFF, 0x00EE))
        assert program.sorted_addresses() == [0x200, 0x202, 0x204, 0x208]
        assert program.data == {0x206, 0x207}
        assert program.labels[0x208] == LabelKind.SUBROUTINE
        assert program.label_name(0x208) == "sub_0208"

    def test_label_precedence(self):
        """Test the entry label wins over a branch to the entry."""
        program = self.explore(words(0x2204, 0x1200, 0x1200))
        assert program.labels[0x200] == LabelKind.ENTRY
        assert program.labels[0x204] == LabelKind.SUBROUTINE
        assert program.label_name(0x200) == "start"

    def test_subroutine_label_beats_branch(self):
        """Test a called address stays a subroutine when also jumped to."""
        program = self.explore(words(0x1204, 0x00EE, 0x2206, 0x1206))
        assert program.labels[0x206] == LabelKind.SUBROUTINE

    def test_explicit_entry(self):
        """Test traversal from an explicit entry point."""
        image = RawImage(words(0xFFFF, 0x00EE))
        program = self.explorer.explore(image, entry=0x202)
        assert program.sorted_addresses() == [0x202]
        assert program.data == {0x200, 0x201}

    def test_base_address(self):
        """Test images loaded at a non-standard base."""
        program = self.explore(words(0x1602), base_address=0x600)
        assert program.base_address == 0x600
        assert program.entry_point == 0x600
        # $0602 is past the two-byte image
        assert program.diagnostics_of(DiagnosticKind.OUT_OF_RANGE_TARGET)

    # -------------------------------------------------------------------------
    # Termination
    # -------------------------------------------------------------------------

    def test_self_loop_terminates(self):
        """Test a jump to itself is decoded once."""
        program = self.explore(words(0x1200))
        assert program.sorted_addresses() == [0x200]
        assert self.explorer.steps == 1

    def test_mutual_recursion_terminates(self):
        """Test call cycles terminate with each address decoded once."""
        program = self.explore(words(0x2204, 0x1200, 0x2200, 0x00EE))
        assert program.sorted_addresses() == [0x200, 0x202, 0x204, 0x206]

    def test_decode_at_most_once(self):
        """Test the step count is bounded by the number of queued entries."""
        program = self.explore(words(0x3000, 0x3000, 0x3000, 0x3000, 0x1200))
        assert program.sorted_addresses() == [0x200, 0x202, 0x204, 0x206, 0x208]
        # Join-on-enqueue keeps one pending entry per address
        assert self.explorer.steps <= len(program.instructions) + 1

    def test_explorer_is_reusable(self):
        """Test each run starts from a clean state."""
        first = self.explore(words(0x1200))
        second = self.explore(words(0x6001, 0x00EE))
        assert first.sorted_addresses() == [0x200]
        assert second.sorted_addresses() == [0x200, 0x202]

    # -------------------------------------------------------------------------
    # Indirect Jumps
    # -------------------------------------------------------------------------

    def test_indirect_resolved(self):
        """Test LD V0, #$05 / JP V0, $210 resolves to exactly $0215."""
        program = self.explore(INDIRECT_ROM)
        assert program.sorted_addresses() == [0x200, 0x202, 0x215]
        assert program.indirect_targets == {0x202: (0x215,)}
        assert program.unresolved == {}
        assert program.labels[0x215] == LabelKind.BRANCH
        assert program.diagnostics == []

    def test_indirect_data_split(self):
        """Test the bytes around the resolved target are data."""
        program = self.explore(INDIRECT_ROM)
        assert program.data == set(range(0x204, 0x215)) | {0x217}

    def test_indirect_unresolved(self):
        """Test JP V0 with V0 loaded from an unknown register."""
        program = self.explore(words(0x8010, 0xB300, 0xFFFF))
        assert program.unresolved == {0x202: "V0 unknown"}
        diagnostics = program.diagnostics_of(DiagnosticKind.UNRESOLVED_INDIRECT_BRANCH)
        assert len(diagnostics) == 1
        assert diagnostics[0].address == 0x202
        assert program.data == {0x204, 0x205}

    def test_indirect_from_copied_register(self):
        """Test V0 copied from a register with a known value."""
        program = self.explore(words(0x6104, 0x8010, 0xB204, 0xFFFF, 0x00EE))
        assert program.indirect_targets == {0x204: (0x208,)}
        assert program.unresolved == {}
        assert program.data == {0x206, 0x207}

    def test_indirect_multiple_targets(self):
        """Test every possible value of V0 is followed."""
        program = self.explore(words(0xC002, 0xB206, 0xFFFF, 0x00EE, 0x00EE))
        assert program.indirect_targets == {0x202: (0x206, 0x208)}
        assert program.sorted_addresses() == [0x200, 0x202, 0x206, 0x208]

    def test_indirect_widened_by_limit(self):
        """Test a value set above the limit leaves the jump unresolved."""
        explorer = ControlFlowExplorer(DisassemblerConfig(value_set_limit=1))
        program = explorer.explore(RawImage(words(0xC002, 0xB206, 0xFFFF, 0x00EE, 0x00EE)))
        assert program.unresolved == {0x202: "V0 unknown"}
        assert 0x206 not in program.instructions

    def test_indirect_unconstrained_random(self):
        """Test RND V0, #$FF leaves V0 unconstrained and the jump unresolved."""
        program = self.explore(words(0xC0FF, 0xB202) + bytes(range(256)))
        assert program.unresolved == {0x202: "V0 unknown"}
        assert program.indirect_targets == {}
        assert program.sorted_addresses() == [0x200, 0x202]
        assert program.data == set(range(0x204, 0x304))

    def test_paths_merge_before_decode(self):
        """Test register values of two paths queued for one address are joined."""
        program = self.explore(words(
            0x6000,     # LD V0, #$00
            0x3100,     # SE V1, #$00
            0x6004,     # LD V0, #$04
            0xB20A,     # JP V0, $20A   reached with V0 in {0, 4}
            0x00EE,
            0x00EE,     # $020A
            0xFFFF,
            0x00EE,     # $020E
        ))
        assert program.indirect_targets == {0x206: (0x20A, 0x20E)}
        assert program.unresolved == {}
        assert program.data == {0x208, 0x209, 0x20C, 0x20D}

    def test_indirect_all_targets_outside_image(self):
        """Test an indirect jump with no target inside the image."""
        program = self.explore(words(0xC001, 0xB300))
        assert program.unresolved == {0x202: "no target inside the image"}
        out_of_range = program.diagnostics_of(DiagnosticKind.OUT_OF_RANGE_TARGET)
        assert sorted(d.target for d in out_of_range) == [0x300, 0x301]

    def test_indirect_some_targets_outside_image(self):
        """Test partially resolvable indirect jumps follow what they can."""
        program = self.explore(words(0xC004, 0xB204, 0x00EE))
        assert program.indirect_targets == {0x202: (0x204,)}
        assert 0x202 not in program.unresolved
        assert len(program.diagnostics_of(DiagnosticKind.OUT_OF_RANGE_TARGET)) == 1

    def test_indirect_past_address_space(self):
        """Test nnn + V0 beyond $FFF is out of range, never dereferenced."""
        program = self.explore(words(0x60FF, 0xBFFF))
        [diagnostic] = program.diagnostics_of(DiagnosticKind.OUT_OF_RANGE_TARGET)
        assert diagnostic.target == 0x10FE
        assert "address space" in diagnostic.message

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def test_static_branch_out_of_range(self):
        """Test a jump outside the image is unresolved and reported."""
        program = self.explore(words(0x1F00))
        assert program.unresolved == {0x200: "target $0F00 not in the loaded image"}
        [diagnostic] = program.diagnostics
        assert diagnostic.kind == DiagnosticKind.OUT_OF_RANGE_TARGET
        assert diagnostic.address == 0x200
        assert diagnostic.target == 0xF00

    def test_sys_call_out_of_range(self):
        """Test SYS into interpreter memory is out of range."""
        program = self.explore(words(0x0123, 0x00EE))
        assert 0x200 in program.unresolved
        assert program.sorted_addresses() == [0x200]

    def test_fallthrough_past_end(self):
        """Test running off the image is reported without unresolved marks."""
        program = self.explore(words(0x6005))
        [diagnostic] = program.diagnostics
        assert diagnostic.kind == DiagnosticKind.OUT_OF_RANGE_TARGET
        assert diagnostic.target == 0x202
        assert program.unresolved == {}

    def test_unknown_opcode_ends_path(self):
        """Test an unrecognized word is recorded and ends its path."""
        program = self.explore(words(0x6005, 0x5121, 0x00EE))
        assert program.instructions[0x202].kind == InstructionKind.UNKNOWN
        assert 0x204 not in program.instructions
        assert program.data == {0x204, 0x205}
        [diagnostic] = program.diagnostics
        assert diagnostic.kind == DiagnosticKind.UNRECOGNIZED_OPCODE
        assert diagnostic.address == 0x202

    def test_truncated_instruction(self):
        """Test control reaching the odd trailing byte."""
        program = self.explore(words(0x6005) + bytes([0x12]))
        kinds = [d.kind for d in program.diagnostics]
        assert kinds == [DiagnosticKind.MALFORMED_IMAGE, DiagnosticKind.MALFORMED_IMAGE]
        assert program.data == {0x202}

    def test_empty_image(self):
        """Test an empty image decodes nothing."""
        program = self.explore(b"")
        assert program.instructions == {}
        assert program.data == set()
        assert program.labels == {}
        assert program.diagnostics_of(DiagnosticKind.OUT_OF_RANGE_TARGET)

    def test_overlapping_decode(self):
        """Test a jump into the middle of another instruction."""
        program = self.explore(bytes([0x30, 0x00, 0x12, 0x05, 0x60, 0x12, 0x00, 0xEE]))
        assert program.sorted_addresses() == [0x200, 0x202, 0x204, 0x205, 0x206]
        assert program.instructions[0x205].word == 0x1200
        assert program.data == set()

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    def test_deterministic(self):
        """Test two runs over the same image give the same program."""
        data = INDIRECT_ROM + words(0x2200, 0xC00F, 0xB300)
        first = self.explore(data).to_dict()
        second = ControlFlowExplorer().explore(RawImage(data)).to_dict()
        assert first == second

    def test_code_and_data_partition_image(self):
        """Test every image byte is either covered by code or data, never both."""
        data = INDIRECT_ROM + words(0x2218, 0x00EE)
        program = self.explore(data)
        covered = set()
        for address, instruction in program.instructions.items():
            covered.update(range(address, address + instruction.size))
        assert covered.isdisjoint(program.data)
        assert covered | program.data == set(range(0x200, 0x200 + len(data)))

    def test_labels_only_on_decoded_addresses(self):
        """Test labels never point at data or outside the image."""
        program = self.explore(words(0x1F00, 0x2300))
        assert set(program.labels) <= set(program.instructions)


class TestWorklistEntry:
    """Tests for worklist entries."""

    def test_merged_joins_registers(self):
        """Test merging creates a new entry with joined registers."""
        a = RegisterFile.initial().apply(decode(0x6001))
        b = RegisterFile.initial().apply(decode(0x6002))
        entry = WorklistEntry(0x204, a)
        merged = entry.merged(b, limit=256)
        assert merged is not entry
        assert merged.address == 0x204
        assert merged.registers.get(0).sorted() == [1, 2]
        assert entry.registers.get(0).sorted() == [1]
