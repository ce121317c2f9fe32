"""
Budget Tracker - Source Package

A personal finance tracker: log in, record income and expenses against
categories, set per-category budgets, and review them.

DESIGN PRINCIPLES:
1. Validate before anything leaves the form
2. Fail visibly, keep the user's input on failure
3. One submit, one insert, never retried behind the user's back
4. Every submission is auditable
5. Storage and identity are swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Tracker Team"
