"""
Unit Tests for Disassembler Configuration
=========================================

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import pytest

from chip8_disasm.config import DisassemblerConfig, TraversalMode, parse_address
from chip8_disasm.errors import ConfigurationError


class TestParseAddress:
    """Tests for address parsing."""

    @pytest.mark.parametrize("text,expected", [
        ("0x200", 0x200),
        ("0X600", 0x600),
        ("$600", 0x600),
        ("512", 512),
        (" 0x200 ", 0x200),
    ])
    def test_valid(self, text, expected):
        """Test hex and decimal forms."""
        assert parse_address(text) == expected

    @pytest.mark.parametrize("text", ["", "zz", "0x", "$G00"])
    def test_invalid(self, text):
        """Test invalid input raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            parse_address(text)


class TestTraversalMode:
    """Tests for mode names."""

    def test_parse(self):
        """Test parsing is case-insensitive."""
        assert TraversalMode.parse("recursive") == TraversalMode.RECURSIVE
        assert TraversalMode.parse("LINEAR") == TraversalMode.LINEAR

    def test_parse_unknown(self):
        """Test unknown names list the valid ones."""
        with pytest.raises(ConfigurationError, match="recursive, linear"):
            TraversalMode.parse("sideways")

    def test_str(self):
        """Test string form is the name used on the command line."""
        assert str(TraversalMode.LINEAR) == "linear"


class TestDisassemblerConfig:
    """Tests for DisassemblerConfig."""

    def test_defaults(self):
        """Test default values."""
        config = DisassemblerConfig()
        assert config.base_address == 0x200
        assert config.memory_size == 0x1000
        assert config.mode == TraversalMode.RECURSIVE
        assert config.value_set_limit == 256
        assert config.show_bytes
        assert config.show_header
        assert config.show_diagnostics

    def test_from_env(self, monkeypatch):
        """Test values are read from the environment."""
        monkeypatch.setenv("CHIP8_BASE_ADDRESS", "0x600")
        monkeypatch.setenv("CHIP8_MODE", "linear")
        monkeypatch.setenv("CHIP8_VALUE_SET_LIMIT", "16")
        config = DisassemblerConfig.from_env()
        assert config.base_address == 0x600
        assert config.mode == TraversalMode.LINEAR
        assert config.value_set_limit == 16

    def test_from_env_ignores_invalid(self, monkeypatch):
        """Test invalid environment values keep the defaults."""
        monkeypatch.setenv("CHIP8_BASE_ADDRESS", "nowhere")
        monkeypatch.setenv("CHIP8_MODE", "sideways")
        monkeypatch.setenv("CHIP8_VALUE_SET_LIMIT", "many")
        assert DisassemblerConfig.from_env() == DisassemblerConfig()

    def test_from_env_empty(self, monkeypatch):
        """Test unset variables keep the defaults."""
        for name in ("CHIP8_BASE_ADDRESS", "CHIP8_MODE", "CHIP8_VALUE_SET_LIMIT"):
            monkeypatch.delenv(name, raising=False)
        assert DisassemblerConfig.from_env() == DisassemblerConfig()

    def test_replace(self):
        """Test replace skips None and parses mode names."""
        config = DisassemblerConfig().replace(base_address=None, mode="linear", show_bytes=False)
        assert config.base_address == 0x200
        assert config.mode == TraversalMode.LINEAR
        assert not config.show_bytes

    def test_validate_ok(self):
        """Test a valid config validates to itself."""
        config = DisassemblerConfig()
        assert config.validate() is config

    @pytest.mark.parametrize("changes", [
        {"base_address": 0x1000},
        {"base_address": -1},
        {"value_set_limit": 0},
        {"memory_size": 0},
        {"mode": "recursive"},
    ])
    def test_validate_errors(self, changes):
        """Test contract violations raise ConfigurationError."""
        config = DisassemblerConfig(**changes)
        with pytest.raises(ConfigurationError):
            config.validate()
