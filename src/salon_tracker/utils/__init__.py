"""Utilities package for the salon-tracker application."""
