"""Core components of PolyTrans.

This package contains the translation orchestration engine and its provider adapters, the
response cache with in-flight request coalescing, and the usage statistics.
"""
