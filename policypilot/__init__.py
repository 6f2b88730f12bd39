"""Compliance policy generation pipeline."""
