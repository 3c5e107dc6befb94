"""Repository interfaces and implementations.

This package defines the store capabilities the settlement engine and the vote
aggregator consume, plus the SQLite adapters under
:mod:`tipvote.repositories.sqlite`.
"""
