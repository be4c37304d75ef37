"""
Decoded Program
===============

The result of a disassembly run: decoded instructions keyed by address, the
byte addresses classified as data, branch/call target labels, unresolved
branches and the diagnostics collected along the way.

A DecodedProgram has exactly one writer (the control-flow explorer or the
linear sweep) and is handed read-only to the listing emitter once the run
is complete.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from chip8_disasm.config import TraversalMode
from chip8_disasm.disassembler.decoder import Instruction
from chip8_disasm.errors import Diagnostic, DiagnosticKind


class LabelKind(Enum):
    """Why an address carries a label. Higher values take precedence."""
    BRANCH = 1       # Target of JP, SYS or a resolved JP V0
    SUBROUTINE = 2   # Target of CALL
    ENTRY = 3        # Where traversal started

    @property
    def prefix(self) -> str:
        return {
            LabelKind.BRANCH: "loc",
            LabelKind.SUBROUTINE: "sub",
            LabelKind.ENTRY: "start",
        }[self]


@dataclass
class DecodedProgram:
    """
    Instructions and data recovered from one image.

    Attributes:
        mode: Traversal mode that produced this program
        base_address: Address of the first image byte
        image_data: Raw image bytes (byte 0 at base_address)
        entry_point: Where traversal started (None for linear sweep)
        instructions: Decoded instructions keyed by address (one per address)
        data: Image byte addresses not covered by any decoded instruction
        labels: Branch/call target addresses and why they are labelled
        unresolved: Branch instructions whose target could not be followed,
            mapped to the reason
        indirect_targets: Resolved targets of each JP V0, addr
        diagnostics: Non-fatal problems in the order they were found
    """
    mode: TraversalMode
    base_address: int
    image_data: bytes
    entry_point: Optional[int] = None
    instructions: dict[int, Instruction] = field(default_factory=dict)
    data: set[int] = field(default_factory=set)
    labels: dict[int, LabelKind] = field(default_factory=dict)
    unresolved: dict[int, str] = field(default_factory=dict)
    indirect_targets: dict[int, tuple[int, ...]] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    def add_label(self, address: int, kind: LabelKind) -> None:
        """Label an address, keeping the strongest label kind."""
        current = self.labels.get(address)
        if current is None or kind.value > current.value:
            self.labels[address] = kind

    def add_diagnostic(
        self,
        kind: DiagnosticKind,
        message: str,
        address: Optional[int] = None,
        target: Optional[int] = None,
    ) -> Diagnostic:
        diagnostic = Diagnostic(kind, message, address=address, target=target)
        self.diagnostics.append(diagnostic)
        return diagnostic

    def classify_data(self, addresses) -> None:
        """
        Mark every address not covered by a decoded instruction as data.

        Args:
            addresses: Byte addresses of the image
        """
        covered = set()
        for address, instruction in self.instructions.items():
            covered.update(range(address, address + instruction.size))
        self.data = {address for address in addresses if address not in covered}

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def end_address(self) -> int:
        return self.base_address + len(self.image_data)

    @property
    def label_addresses(self) -> set[int]:
        return set(self.labels)

    def sorted_addresses(self) -> list[int]:
        return sorted(self.instructions)

    def is_code(self, address: int) -> bool:
        return address in self.instructions

    def label_name(self, address: int) -> Optional[str]:
        """Return the label name of an address, or None if unlabelled."""
        kind = self.labels.get(address)
        if kind is None:
            return None
        if kind == LabelKind.ENTRY:
            return kind.prefix
        return f"{kind.prefix}_{address:04X}"

    def label_names(self) -> dict[int, str]:
        return {address: self.label_name(address) for address in self.labels}

    def data_regions(self) -> list[tuple[int, bytes]]:
        """
        Group data addresses into contiguous runs.

        Returns:
            List of (start address, bytes) in ascending address order.
        """
        regions = []
        start = None
        previous = None
        for address in sorted(self.data):
            if start is None:
                start = address
            elif address != previous + 1:
                regions.append((start, previous))
                start = address
            previous = address
        if start is not None:
            regions.append((start, previous))

        return [
            (first, self.image_data[first - self.base_address:last - self.base_address + 1])
            for first, last in regions
        ]

    def diagnostics_of(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        labels = self.label_names()
        return {
            "mode": str(self.mode),
            "base_address": self.base_address,
            "image_size": len(self.image_data),
            "entry_point": self.entry_point,
            "instructions": [
                dict(self.instructions[address].to_dict(), label=labels.get(address))
                for address in self.sorted_addresses()
            ],
            "data": sorted(self.data),
            "labels": {f"${address:04X}": name for address, name in sorted(labels.items())},
            "unresolved": {f"${address:04X}": reason for address, reason in sorted(self.unresolved.items())},
            "indirect_targets": {
                f"${address:04X}": list(targets)
                for address, targets in sorted(self.indirect_targets.items())
            },
            "data_regions": [
                {"address": start, "bytes": [f"${b:02X}" for b in chunk]}
                for start, chunk in self.data_regions()
            ],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
