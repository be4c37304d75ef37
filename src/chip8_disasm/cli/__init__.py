"""
CHIP-8 Disassembler Command-Line Interface
==========================================

This package provides the command-line tool for the disassembler:

- **c8disasm**: CHIP-8 control-flow disassembler

The tool is a Click-based CLI application with comprehensive help and
error reporting.
"""

__all__ = ["c8disasm"]
