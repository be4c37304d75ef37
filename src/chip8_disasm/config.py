"""
Disassembler Configuration
==========================

Configuration for a disassembly run. Values can come from:
- Default values (defined here)
- Environment variables
- Command-line options (applied by the CLI through ``replace``)

The only option that changes the meaning of the analysis is the traversal
mode; the rest select the memory layout and how the listing is rendered.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass, replace as dataclass_replace
from enum import Enum
import os

from chip8_disasm.cpu import BYTE_VALUES, MEMORY_SIZE, PROGRAM_START
from chip8_disasm.errors import ConfigurationError


class TraversalMode(Enum):
    """
    How the image is turned into a DecodedProgram.

    RECURSIVE follows control flow from the entry point and is authoritative.
    LINEAR decodes every aligned word and exists only as a baseline.
    """
    RECURSIVE = "recursive"
    LINEAR = "linear"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> "TraversalMode":
        """
        Look up a mode by name (case-insensitive).

        Raises:
            ConfigurationError: If the name is not a known mode
        """
        try:
            return cls(text.strip().lower())
        except ValueError:
            names = ", ".join(mode.value for mode in cls)
            raise ConfigurationError(
                f"unknown traversal mode '{text}' (expected one of: {names})"
            ) from None


def parse_address(text: str) -> int:
    """
    Parse an address written as hex (0x200 or $200) or decimal (512).

    Raises:
        ConfigurationError: If the text is not a number
    """
    value = text.strip()
    try:
        if value.lower().startswith("0x"):
            return int(value, 16)
        if value.startswith("$"):
            return int(value[1:], 16)
        return int(value)
    except ValueError:
        raise ConfigurationError(f"invalid address '{text}'") from None


@dataclass(frozen=True)
class DisassemblerConfig:
    """
    Configuration for one disassembly run.

    Attributes:
        base_address: Address at which byte 0 of the image is loaded (default: $200)
        memory_size: Size of the address space (default: 4096)
        mode: Traversal strategy (default: RECURSIVE)
        value_set_limit: Largest register value set tracked before widening
            to unknown (default: 256, every byte value)
        show_bytes: Include raw instruction bytes in the listing
        show_header: Include the summary comment header in the listing
        show_diagnostics: Include diagnostics as comments in the listing
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # MEMORY LAYOUT
    # ═══════════════════════════════════════════════════════════════════════════

    base_address: int = PROGRAM_START
    memory_size: int = MEMORY_SIZE

    # ═══════════════════════════════════════════════════════════════════════════
    # ANALYSIS
    # ═══════════════════════════════════════════════════════════════════════════

    mode: TraversalMode = TraversalMode.RECURSIVE
    value_set_limit: int = BYTE_VALUES

    # ═══════════════════════════════════════════════════════════════════════════
    # LISTING
    # ═══════════════════════════════════════════════════════════════════════════

    show_bytes: bool = True
    show_header: bool = True
    show_diagnostics: bool = True

    # ═══════════════════════════════════════════════════════════════════════════
    # FACTORY METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    @classmethod
    def from_env(cls) -> "DisassemblerConfig":
        """
        Create a DisassemblerConfig from environment variables.

        Environment variables (all optional):
            CHIP8_BASE_ADDRESS: Load address (e.g. "0x200", "$600", "1536")
            CHIP8_MODE: Traversal mode ("recursive" or "linear")
            CHIP8_VALUE_SET_LIMIT: Register value set limit (integer)

        Invalid values are ignored and the default is kept.

        Returns:
            DisassemblerConfig with values from environment variables
        """
        config = cls()

        if address := os.environ.get("CHIP8_BASE_ADDRESS"):
            try:
                config = config.replace(base_address=parse_address(address))
            except ConfigurationError:
                pass

        if mode := os.environ.get("CHIP8_MODE"):
            try:
                config = config.replace(mode=TraversalMode.parse(mode))
            except ConfigurationError:
                pass

        if limit := os.environ.get("CHIP8_VALUE_SET_LIMIT"):
            try:
                config = config.replace(value_set_limit=int(limit))
            except ValueError:
                pass

        return config

    def replace(self, **changes) -> "DisassemblerConfig":
        """Return a copy with the given fields changed; None values are skipped."""
        changes = {key: value for key, value in changes.items() if value is not None}
        if isinstance(changes.get("mode"), str):
            changes["mode"] = TraversalMode.parse(changes["mode"])
        return dataclass_replace(self, **changes)

    # ═══════════════════════════════════════════════════════════════════════════
    # VALIDATION
    # ═══════════════════════════════════════════════════════════════════════════

    def validate(self) -> "DisassemblerConfig":
        """
        Check the configuration for contract violations.

        Returns:
            self, so calls can be chained

        Raises:
            ConfigurationError: If any value is out of range
        """
        if self.memory_size <= 0:
            raise ConfigurationError(f"memory size must be positive, got {self.memory_size}")
        if not 0 <= self.base_address < self.memory_size:
            raise ConfigurationError(
                f"base address ${self.base_address:04X} outside address space "
                f"$0000-${self.memory_size - 1:04X}"
            )
        if not isinstance(self.mode, TraversalMode):
            raise ConfigurationError(f"invalid traversal mode {self.mode!r}")
        if self.value_set_limit < 1:
            raise ConfigurationError(
                f"value set limit must be at least 1, got {self.value_set_limit}"
            )
        return self
