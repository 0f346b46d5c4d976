"""Collector construction from connector configuration."""

from metaingest.factory.registry import CollectorCreator, CollectorRegistry, FactoryError


__all__ = ["CollectorCreator", "CollectorRegistry", "FactoryError"]
