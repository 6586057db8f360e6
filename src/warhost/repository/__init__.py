"""Persistence layer for Warhost rule packs."""
