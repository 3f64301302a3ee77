"""
Grepsight Insight Processors - one per content type.

See registry.default_registry() for the declared type of each processor.
"""

from .base import InsightProcessor, NullProcessor, ProcessorOutcome
