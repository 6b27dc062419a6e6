"""Handlers that drive an invocation through the domain stages."""

from .pipeline_driver import PipelineDriver, build_pipeline_driver

__all__ = ["PipelineDriver", "build_pipeline_driver"]
