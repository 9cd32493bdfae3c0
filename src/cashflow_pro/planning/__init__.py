"""
Planning - budget categories, distributions, scenarios and summaries

Stateless components that operate on a Project passed in by the caller.
"""
