"""
WineScope Domain Layer

Value objects, entities, errors and ports for the wine crawler.
All domain objects are immutable (frozen dataclasses) with ZERO external dependencies.
"""
