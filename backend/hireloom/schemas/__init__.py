"""Dataclass schemas for jobs, candidates, tests and workflow messages."""
