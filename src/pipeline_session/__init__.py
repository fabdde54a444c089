"""
Pipeline Session Module

Interactive terminal session for building and running pipelines.
"""

from src.pipeline_session.session import InteractivePipelineSession

__all__ = [
    "InteractivePipelineSession",
]
