# SPDX-License-Identifier: Apache-2.0
"""Non-fatal diagnostics produced while evaluating and rendering fields."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class WarningKind(str, Enum):
    """Category of a self-healed evaluation problem."""

    CIRCULAR_REFERENCE = "circular-reference"
    MAX_DEPTH_EXCEEDED = "max-depth-exceeded"
    AMBIGUOUS_CHECKBOX_VALUE = "ambiguous-checkbox-value"
    IMAGE_DECODE_FAILED = "image-decode-failed"


@dataclass(frozen=True)
class EvaluationWarning:
    """A problem in user content that was resolved to a sentinel or default.

    Attributes:
        kind: Warning category
        message: Human-readable description
        field_key: Key of the field being rendered, when known
        detail: The offending path or value
    """

    kind: WarningKind
    message: str
    field_key: Optional[str] = None
    detail: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "field_key": self.field_key,
            "detail": self.detail,
        }


WarningSink = Optional[list[EvaluationWarning]]
