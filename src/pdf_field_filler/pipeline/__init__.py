# SPDX-License-Identifier: Apache-2.0
"""Fill pipeline package."""

from .errors import FillError, RenderError, TemplateLoadError
from .fill_pipeline import FillConfig, FillPipeline, FillResult
from .progress import ProgressCallback

__all__ = [
    "FillConfig",
    "FillError",
    "FillPipeline",
    "FillResult",
    "ProgressCallback",
    "RenderError",
    "TemplateLoadError",
]
