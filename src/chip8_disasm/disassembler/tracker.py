"""
Register Value Tracker
======================

A small abstract-interpretation domain for the possible values of a CHIP-8
register along one or more merged traversal paths. It exists to resolve the
only indirect branch of the architecture, JP V0, addr (Bnnn), whose target
is nnn + V0.

Lattice:

    Unknown                      (top: any byte value)
       |
    Exact({v1, ..., vk})         (k <= limit, k < 256)

Join is set union, widening to Unknown once the union grows past the
cardinality limit. A set holding all 256 byte values constrains nothing, so
it is Unknown too: the lattice has a single top element. Join is commutative
and idempotent, and Unknown absorbs everything. The lattice has finite
height, so the analysis always terminates.

Besides V0, the other fifteen registers are tracked with the same rules, so
that LD V0, Vy or ADD V0, Vy resolve when the source register was itself
bound to known values. Values are computed by bounded propagation over the
exact sets, never by symbolic execution.
"""

from dataclasses import dataclass
from itertools import product
from typing import Callable, FrozenSet, Iterable, Iterator, Optional

from chip8_disasm.cpu import (
    BYTE_VALUES,
    FLAG_REGISTER,
    REGISTER_COUNT,
    RegisterEffect,
    register_name,
)


# =============================================================================
# Single Register Domain
# =============================================================================

@dataclass(frozen=True)
class RegisterValueSet:
    """
    Possible values of one register: Exact(set of bytes) or Unknown.

    Attributes:
        values: The tracked values, or None for Unknown
    """
    values: Optional[FrozenSet[int]]

    @classmethod
    def exact(cls, values: Iterable[int], limit: int = BYTE_VALUES) -> "RegisterValueSet":
        """Build an Exact set, widening to Unknown past the limit."""
        values = frozenset(v & 0xFF for v in values)
        if not values or _widens(len(values), limit):
            return UNKNOWN
        return cls(values)

    @property
    def is_unknown(self) -> bool:
        return self.values is None

    @property
    def is_exact(self) -> bool:
        return self.values is not None

    def sorted(self) -> list[int]:
        """The exact values in ascending order (empty for Unknown)."""
        return sorted(self.values) if self.values is not None else []

    def __iter__(self) -> Iterator[int]:
        return iter(self.sorted())

    def __len__(self) -> int:
        return len(self.values) if self.values is not None else BYTE_VALUES

    def join(self, other: "RegisterValueSet", limit: int = BYTE_VALUES) -> "RegisterValueSet":
        return join(self, other, limit)

    def map(self, fn: Callable[[int], int], limit: int = BYTE_VALUES) -> "RegisterValueSet":
        """Apply a unary byte operation to every value."""
        if self.values is None:
            return UNKNOWN
        return RegisterValueSet.exact((fn(v) for v in self.values), limit)

    def combine(
        self,
        other: "RegisterValueSet",
        fn: Callable[[int, int], int],
        limit: int = BYTE_VALUES,
    ) -> "RegisterValueSet":
        """Apply a binary byte operation to every pair of values."""
        if self.values is None or other.values is None:
            return UNKNOWN
        return RegisterValueSet.exact(
            (fn(a, b) for a, b in product(self.values, other.values)), limit
        )

    def __str__(self) -> str:
        if self.values is None:
            return "unknown"
        return "{" + ", ".join(f"${v:02X}" for v in self.sorted()) + "}"


UNKNOWN = RegisterValueSet(None)


def _widens(count: int, limit: int) -> bool:
    """True if a set of this many values must be widened to Unknown."""
    return count > limit or count >= BYTE_VALUES


def join(a: RegisterValueSet, b: RegisterValueSet, limit: int = BYTE_VALUES) -> RegisterValueSet:
    """
    Merge the value sets of two paths meeting at one program point.

    Args:
        a: Values along the first path
        b: Values along the second path
        limit: Largest set kept exact

    Returns:
        The union, or Unknown if either side is Unknown or the union
        exceeds the limit.
    """
    if a.values is None or b.values is None:
        return UNKNOWN
    if a.values == b.values:
        return a
    union = a.values | b.values
    if _widens(len(union), limit):
        return UNKNOWN
    return RegisterValueSet(union)


def assign_literal(value: int) -> RegisterValueSet:
    """Value set after the register is loaded with a literal."""
    return RegisterValueSet(frozenset({value & 0xFF}))


def assign_unknown() -> RegisterValueSet:
    """Value set after the register is loaded from an untracked source."""
    return UNKNOWN


# =============================================================================
# Register File
# =============================================================================

@dataclass(frozen=True)
class RegisterFile:
    """
    Value sets of all sixteen registers at one program point.

    Immutable: every update returns a new RegisterFile, so a worklist entry
    never changes after it is queued.
    """
    registers: tuple[RegisterValueSet, ...]

    @classmethod
    def initial(cls) -> "RegisterFile":
        """Register state at the entry point: nothing is known."""
        return cls((UNKNOWN,) * REGISTER_COUNT)

    def get(self, index: int) -> RegisterValueSet:
        return self.registers[index]

    def set(self, index: int, value: RegisterValueSet) -> "RegisterFile":
        if self.registers[index] == value:
            return self
        registers = list(self.registers)
        registers[index] = value
        return RegisterFile(tuple(registers))

    def join(self, other: "RegisterFile", limit: int = BYTE_VALUES) -> "RegisterFile":
        """Pointwise join of two register files."""
        if self == other:
            return self
        return RegisterFile(tuple(
            join(a, b, limit) for a, b in zip(self.registers, other.registers)
        ))

    def apply(self, instruction, limit: int = BYTE_VALUES) -> "RegisterFile":
        """
        Transfer function: register state after executing an instruction.

        Args:
            instruction: Decoded Instruction
            limit: Largest set kept exact

        Returns:
            Updated register file (self if nothing is written).
        """
        effect = instruction.effect
        if effect == RegisterEffect.NONE:
            return self

        f = instruction.fields
        vx = self.get(f.x)
        vy = self.get(f.y)

        if effect == RegisterEffect.LOAD_LITERAL:
            return self.set(f.x, assign_literal(f.kk))

        if effect == RegisterEffect.ADD_LITERAL:
            return self.set(f.x, vx.map(lambda v: v + f.kk, limit))

        if effect == RegisterEffect.COPY:
            return self.set(f.x, vy)

        if effect == RegisterEffect.RANDOM:
            return self.set(f.x, RegisterValueSet.exact(
                (r & f.kk for r in range(BYTE_VALUES)), limit
            ))

        if effect == RegisterEffect.CLOBBER:
            return self.set(f.x, assign_unknown())

        if effect == RegisterEffect.LOAD_MEMORY:
            state = self
            for index in range(f.x + 1):
                state = state.set(index, assign_unknown())
            return state

        if effect == RegisterEffect.COLLISION:
            return self.set(FLAG_REGISTER, assign_unknown())

        # Register-register arithmetic: VF is written after Vx
        if effect == RegisterEffect.OR:
            result = vx.combine(vy, lambda a, b: a | b, limit)
        elif effect == RegisterEffect.AND:
            result = vx.combine(vy, lambda a, b: a & b, limit)
        elif effect == RegisterEffect.XOR:
            result = vx.combine(vy, lambda a, b: a ^ b, limit)
        elif effect == RegisterEffect.ADD:
            result = vx.combine(vy, lambda a, b: a + b, limit)
        elif effect == RegisterEffect.SUB:
            result = vx.combine(vy, lambda a, b: a - b, limit)
        elif effect == RegisterEffect.SUBN:
            result = vx.combine(vy, lambda a, b: b - a, limit)
        elif effect == RegisterEffect.SHR:
            # Interpreters disagree on whether Vx or Vy is shifted
            result = join(vx.map(lambda v: v >> 1, limit), vy.map(lambda v: v >> 1, limit), limit)
        elif effect == RegisterEffect.SHL:
            result = join(vx.map(lambda v: v << 1, limit), vy.map(lambda v: v << 1, limit), limit)
        else:
            raise ValueError(f"unhandled register effect {effect}")

        return self.set(f.x, result).set(FLAG_REGISTER, assign_unknown())

    def __str__(self) -> str:
        known = [
            f"{register_name(i)}={value}"
            for i, value in enumerate(self.registers)
            if value.is_exact
        ]
        return " ".join(known) if known else "all unknown"
