"""
Cashflow Pro - construction budget cashflow planning

Spreads each budget category across a project timeline (s-curve,
straight-line or manual), keeps what-if scenarios side by side, tracks
actual spend against the plan, and persists projects as shared documents.

Fun fact: the s-curve gets its name from the shape of cumulative spend on a
typical building job - slow mobilisation, a steep middle, and a long tail of
finishes and closeout.
"""

from cashflow_pro.app import CashflowApp

__version__ = "0.1.0"
__all__ = ["CashflowApp", "__version__"]
