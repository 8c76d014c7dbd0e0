"""Core domain package for a11yscope.

Core contains aggregation, diffing, ranking, and history logic without any
filesystem or CLI-specific code, keeping the business logic portable.
"""
