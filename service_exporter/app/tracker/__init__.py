"""
Jira REST API access.

Contains the HTTP client and the pydantic models for the few payloads the
exporter reads (statuses, issue search pages, the current user).
"""
