"""Frame export."""

from sonosphere.io.exporter import FrameExporter

__all__ = ["FrameExporter"]
