"""Unit tests for PolyTrans.

This package contains test modules for the translation engine, its provider adapters, the cache,
statistics and configuration layers. Tests use pytest with asyncio support and replace provider
SDKs and HTTP calls with fakes via monkeypatch.
"""
