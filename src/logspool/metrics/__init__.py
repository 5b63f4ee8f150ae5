from .metrics import AppenderMetrics, MetricsCollector

__all__ = ["AppenderMetrics", "MetricsCollector"]
