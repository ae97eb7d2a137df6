from solarmath.core.context.processing_context import ImageStats, ProcessingContext

__all__ = ["ImageStats", "ProcessingContext"]
