"""
Optional instruction type

Some steps of a workflow only apply when a precondition holds (the
destination token account is missing, the position still has liquidity,
a reward slot is initialized). Builders return a MaybeInstruction so the
caller can add every step unconditionally and keep the ordering visible;
skipped entries are dropped before the message is compiled.
"""

from dataclasses import dataclass
from typing import Optional

from solders.instruction import Instruction

from ..errors import AssemblyError


@dataclass(frozen=True)
class MaybeInstruction:
    """
    Tagged variant: either Skip(reason) or Instruction(payload)

    Attributes:
        instruction: The instruction, or None for a skip
        reason: Why the step was skipped (for logging)
    """
    instruction: Optional[Instruction] = None
    reason: str = ""

    @classmethod
    def of(cls, instruction: Instruction) -> "MaybeInstruction":
        if instruction is None:
            raise AssemblyError.null_instruction()
        return cls(instruction=instruction)

    @classmethod
    def skip(cls, reason: str = "precondition not met") -> "MaybeInstruction":
        return cls(instruction=None, reason=reason)

    @property
    def is_skip(self) -> bool:
        return self.instruction is None

    def __str__(self) -> str:
        if self.is_skip:
            return f"Skip({self.reason})"
        return f"Instruction({self.instruction.program_id})"
