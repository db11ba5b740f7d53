"""Network package exports."""

from .monitor import ManualNetworkMonitor, NetworkHandler, NetworkMonitor, NetworkState, ProbeNetworkMonitor, Unsubscribe

__all__ = ["ManualNetworkMonitor", "NetworkHandler", "NetworkMonitor", "NetworkState", "ProbeNetworkMonitor", "Unsubscribe"]
