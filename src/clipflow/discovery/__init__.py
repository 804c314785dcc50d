"""Discover worker: platform search and fan-out of candidate clips into render jobs."""

from clipflow.discovery.processor import ClipDiscoverer, DiscoveryError, DiscoveryProcessor
from clipflow.discovery.simulated import SimulatedClipDiscoverer

__all__ = [
    "ClipDiscoverer",
    "DiscoveryError",
    "DiscoveryProcessor",
    "SimulatedClipDiscoverer",
]
