"""
Jira issues exporter package.

Polls the Jira REST API, aggregates issue counts and time spent in each
workflow status, and exposes them to Prometheus on `/metrics`.
"""
