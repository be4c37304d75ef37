"""
c8disasm - CHIP-8 Disassembler Command-Line Interface
=====================================================

This module implements the command-line interface for the CHIP-8
disassembler. By default it follows control flow from the entry point
(recursive traversal); a linear sweep is available for comparison.

Usage Examples
--------------
Disassemble a ROM loaded at $200:
    $ c8disasm pong.ch8

With a different load address:
    $ c8disasm eti660.ch8 --address 0x600

Compare against a naive linear sweep:
    $ c8disasm pong.ch8 --mode linear

Output to file:
    $ c8disasm pong.ch8 -o pong.asm

Machine-readable output:
    $ c8disasm pong.ch8 --json -o pong.json

Hex dump with disassembly:
    $ c8disasm pong.ch8 --hex

Environment
-----------
CHIP8_BASE_ADDRESS, CHIP8_MODE and CHIP8_VALUE_SET_LIMIT provide defaults
that the command-line options override.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from chip8_disasm import __version__
from chip8_disasm.cli.errors import ExitCode, handle_cli_exception
from chip8_disasm.config import DisassemblerConfig, TraversalMode, parse_address
from chip8_disasm.disassembler import ListingEmitter, RawImage, disassemble
from chip8_disasm.errors import ImageError


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def hex_dump(data: bytes, base_address: int) -> list[str]:
    """Render image bytes as commented hex dump lines, 16 bytes per line."""
    lines = ["; Hex dump:", "; " + "-" * 60]
    for i in range(0, len(data), 16):
        addr = base_address + i
        chunk = data[i:i+16]
        hex_str = " ".join(f"{b:02X}" for b in chunk)
        ascii_str = "".join(
            chr(b) if 0x20 <= b < 0x7F else "."
            for b in chunk
        )
        lines.append(f"; ${addr:04X}: {hex_str:<48} {ascii_str}")
    lines.append("; " + "-" * 60)
    lines.append("")
    return lines


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-a", "--address",
    type=str,
    default=None,
    help="Load address of the image (hex with 0x or $ prefix, or decimal). Default: 0x200",
)
@click.option(
    "-m", "--mode",
    type=click.Choice([mode.value for mode in TraversalMode], case_sensitive=False),
    default=None,
    help="Traversal mode (default: recursive)",
)
@click.option(
    "--json", "as_json",
    is_flag=True,
    help="Write the decoded program as JSON instead of a listing",
)
@click.option(
    "--hex",
    "show_hex",
    is_flag=True,
    help="Include hex dump before disassembly",
)
@click.option(
    "--no-bytes",
    is_flag=True,
    help="Omit raw bytes from output (show only mnemonic and operands)",
)
@click.option(
    "--no-header",
    is_flag=True,
    help="Omit the summary comment header",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Exit with status 1 if the analysis reported any diagnostics",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="c8disasm")
def main(
    input_file: Path,
    output: Optional[Path],
    address: Optional[str],
    mode: Optional[str],
    as_json: bool,
    show_hex: bool,
    no_bytes: bool,
    no_header: bool,
    strict: bool,
    verbose: bool,
) -> None:
    """
    Disassemble a CHIP-8 program image.

    INPUT_FILE is the binary ROM to disassemble.

    Code is found by following jumps, calls and skips from the entry point;
    everything control flow never reaches is listed as data.

    Examples:

        # Disassemble a ROM loaded at the standard $200
        c8disasm pong.ch8

        # Naive linear sweep, without raw bytes
        c8disasm pong.ch8 --mode linear --no-bytes

        # JSON for further processing
        c8disasm pong.ch8 --json -o pong.json
    """
    setup_logging(verbose)

    try:
        config = DisassemblerConfig.from_env().replace(
            base_address=parse_address(address) if address is not None else None,
            mode=mode,
            show_bytes=not no_bytes,
            show_header=not no_header,
        ).validate()

        # Read input file
        try:
            data = input_file.read_bytes()
        except OSError as e:
            raise ImageError(e.strerror or str(e), path=str(input_file)) from e

        if len(data) == 0:
            raise ImageError("file is empty", path=str(input_file))

        if verbose:
            click.echo(f"Input file: {input_file} ({len(data)} bytes)", err=True)
            click.echo(f"Base address: ${config.base_address:04X}", err=True)
            click.echo(f"Mode: {config.mode}", err=True)

        image = RawImage(data, config.base_address, config.memory_size)
        program = disassemble(image, config)

        # Build output
        if as_json:
            result = json.dumps(program.to_dict(), indent=2) + "\n"
        else:
            output_lines = []
            if show_hex:
                output_lines.extend(hex_dump(image.data, image.base_address))
            emitter = ListingEmitter.from_config(config)
            output_lines.extend(emitter.lines(program, title=input_file.name))
            result = "\n".join(output_lines) + "\n"

        # Write output
        if output:
            output.write_text(result, encoding="utf-8")
            if verbose:
                click.echo(f"Output written to: {output}", err=True)
        else:
            click.echo(result, nl=False)

        if verbose:
            click.echo(f"Instructions disassembled: {len(program.instructions)}", err=True)
            click.echo(f"Data bytes: {len(program.data)}", err=True)
            click.echo(f"Diagnostics: {len(program.diagnostics)}", err=True)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)

    if strict and program.diagnostics:
        click.echo(
            f"Error: {len(program.diagnostics)} diagnostic(s) reported",
            err=True,
        )
        sys.exit(ExitCode.ANALYSIS_ERROR)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
