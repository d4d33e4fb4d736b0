# SPDX-License-Identifier: Apache-2.0
"""Fill pipeline error definitions."""

from __future__ import annotations


class FillError(Exception):
    """Base exception for fill pipeline errors."""

    def __init__(
        self,
        message: str,
        stage: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.cause = cause


class TemplateLoadError(FillError):
    """The template PDF could not be opened."""


class RenderError(FillError):
    """Drawing onto or saving the document failed."""
