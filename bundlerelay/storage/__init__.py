"""Artifact storage: object store, storage adapters and the protocol registry."""
