"""
Domain layer for the Shopee catalog sync.

Flat records projected from marketplace payloads, keyed by shop.
"""
