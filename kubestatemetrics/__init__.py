"""Turn Kubernetes objects into Prometheus metrics in the text exposition format."""

__version__ = "0.1.0"