"""
Prometheus exposition of issue metrics.
"""
