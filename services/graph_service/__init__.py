"""
Graph Service Package — chart-ready series for the performance dashboard.
"""

from services.graph_service.graphing import PerformanceGraphingService, graph_filename

__all__ = ["PerformanceGraphingService", "graph_filename"]
