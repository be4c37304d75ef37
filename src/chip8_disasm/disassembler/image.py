"""
Raw Program Image
=================

An immutable byte buffer placed at a base address in the CHIP-8 address
space. The image is read once and shared, read-only, by every component of
a disassembly run.

Loading never fails for malformed content. An image larger than the space
between the base address and the end of memory is truncated, and an odd
trailing byte is kept (it is rendered as data). Both are reported as
MALFORMED_IMAGE diagnostics.
"""

from pathlib import Path
from typing import Optional, Union
import logging

from chip8_disasm.cpu import MEMORY_SIZE, PROGRAM_START
from chip8_disasm.errors import (
    ConfigurationError,
    Diagnostic,
    DiagnosticKind,
    ImageError,
)

logger = logging.getLogger(__name__)


class RawImage:
    """
    A program image loaded at a base address.

    Attributes:
        base_address: Address of byte 0
        memory_size: Size of the address space
        diagnostics: Problems found while loading
    """

    def __init__(
        self,
        data: bytes,
        base_address: int = PROGRAM_START,
        memory_size: int = MEMORY_SIZE,
    ):
        """
        Load an image.

        Args:
            data: Raw program bytes
            base_address: Address at which byte 0 lives
            memory_size: Size of the address space

        Raises:
            ConfigurationError: If base_address is outside the address space
        """
        if not 0 <= base_address < memory_size:
            raise ConfigurationError(
                f"base address ${base_address:04X} outside address space "
                f"$0000-${memory_size - 1:04X}"
            )

        self.base_address = base_address
        self.memory_size = memory_size
        self.diagnostics: list[Diagnostic] = []

        capacity = memory_size - base_address
        if len(data) > capacity:
            self._report(
                f"image is {len(data)} bytes but only {capacity} fit above "
                f"${base_address:04X}; truncated",
                address=base_address + capacity,
            )
            data = data[:capacity]

        if len(data) % 2:
            self._report(
                "odd trailing byte is not a complete instruction",
                address=base_address + len(data) - 1,
            )

        self._data = bytes(data)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        base_address: int = PROGRAM_START,
        memory_size: int = MEMORY_SIZE,
    ) -> "RawImage":
        """
        Load an image from a binary file.

        Raises:
            ImageError: If the file cannot be read
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ImageError(e.strerror or str(e), path=str(path)) from e
        logger.debug(f"Loaded {len(data)} bytes from {path}")
        return cls(data, base_address=base_address, memory_size=memory_size)

    def _report(self, message: str, address: Optional[int] = None) -> None:
        diagnostic = Diagnostic(DiagnosticKind.MALFORMED_IMAGE, message, address=address)
        self.diagnostics.append(diagnostic)
        logger.warning(str(diagnostic))

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def end_address(self) -> int:
        """Address one past the last byte of the image."""
        return self.base_address + len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def addresses(self) -> range:
        """Every byte address covered by the image."""
        return range(self.base_address, self.end_address)

    def contains(self, address: int) -> bool:
        return self.base_address <= address < self.end_address

    def in_address_space(self, address: int) -> bool:
        return 0 <= address < self.memory_size

    def byte_at(self, address: int) -> int:
        """
        Return the byte at an address.

        Raises:
            IndexError: If the address is not in the image
        """
        if not self.contains(address):
            raise IndexError(f"address ${address:04X} not in image")
        return self._data[address - self.base_address]

    def word_at(self, address: int) -> Optional[int]:
        """
        Return the big-endian instruction word starting at an address.

        Returns:
            The 16-bit word, or None if fewer than two bytes of the image
            remain at that address.
        """
        if not (self.contains(address) and self.contains(address + 1)):
            return None
        offset = address - self.base_address
        return (self._data[offset] << 8) | self._data[offset + 1]

    def __repr__(self) -> str:
        return f"RawImage({len(self._data)} bytes at ${self.base_address:04X})"
