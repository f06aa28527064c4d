"""
SentinelLLM - LLM deployment threat modeling and security benchmarking.

Sends deployment descriptors to a hosted analysis model, keeps a local history
of evaluations, and renders dashboards and PDF reports from them.
"""

__version__ = "1.0.0"
