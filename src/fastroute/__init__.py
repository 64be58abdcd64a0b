"""
FastRoute - shortest-path routing for emergency vehicles on a city grid.

This package provides weighted grid generation, Dijkstra routing and
route statistics, plus a small HTTP API over them.
"""

__version__ = "0.1.0"
