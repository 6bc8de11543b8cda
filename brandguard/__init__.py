"""
brandguard: brand rule set versioning, validation and evaluation orchestration.
"""

__version__ = "0.1.0"
