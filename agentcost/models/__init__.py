"""Pydantic schemas for the dashboard HTTP surface."""
