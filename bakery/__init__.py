"""Bakery storefront data layer."""
