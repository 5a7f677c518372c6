from .orchestrator import ProviderOrchestrator
from .report import ObservationReport, build_observation_report

__all__ = ["ObservationReport", "ProviderOrchestrator", "build_observation_report"]
