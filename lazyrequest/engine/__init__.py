from .orchestrator import ExecutionOrchestrator, ResultListener

__all__ = ["ExecutionOrchestrator", "ResultListener"]
