"""Audit trail for tool calls: one JSON event per call, streamed out immediately."""
