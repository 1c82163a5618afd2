"""Compliance lifecycle for personal data.

Subpackages:
- retention: retention policy values and cutoff math
- purge: scheduled retention purge across tenants
- erasure: Article 17 right-to-erasure workflow
"""
