"""
Persistence - document store and import/export envelopes
"""
