"""PolyTrans: multi-provider machine translation with caching, retries and fallback."""

__version__: str = "1.0.0"
