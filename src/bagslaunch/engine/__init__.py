from .orchestrator import LaunchOrchestrator, reset_metrics

__all__ = ["LaunchOrchestrator", "reset_metrics"]
