# SPDX-License-Identifier: Apache-2.0
"""Field rendering onto abstract page surfaces."""

from .options import OptionsFieldRenderer
from .pipeline import FieldRenderPipeline, RenderStats
from .surface import ImageRef, PageSurface, RecordingSurface

__all__ = [
    "FieldRenderPipeline",
    "ImageRef",
    "OptionsFieldRenderer",
    "PageSurface",
    "RecordingSurface",
    "RenderStats",
]
