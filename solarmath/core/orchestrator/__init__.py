from solarmath.core.orchestrator.parallel_executor import ParallelExecutor

__all__ = ["ParallelExecutor"]
