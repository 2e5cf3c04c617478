"""Schemas — Pydantic records and request payloads for the remote boundary."""
