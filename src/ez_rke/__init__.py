"""
ez-rke

Terminal dashboard for a managed cluster: shows the configured topology
(control nodes, worker nodes, VIP) next to a live feed of the process's
diagnostic records.

- Topology, Settings: Configuration
- LogRecord, DiagnosticBridge, span: Diagnostic capture
- CLI infrastructure: Typer-based command structure
"""

__version__ = "0.1.0"

from ez_rke.config import Settings, Topology, TopologyError, load_topology
from ez_rke.log import DiagnosticBridge, Level, LoggingSession, LogRecord, instrument, span

__all__ = [
    "__version__",
    # Configuration
    "Settings",
    "Topology",
    "TopologyError",
    "load_topology",
    # Diagnostics
    "DiagnosticBridge",
    "Level",
    "LoggingSession",
    "LogRecord",
    "instrument",
    "span",
]
