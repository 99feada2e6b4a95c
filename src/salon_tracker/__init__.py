"""Salon Tracker - client records, colouring recipes and revenue for a hair salon."""

__version__ = "0.1.0"
