"""Caching primitives (TTL store + list-result memoization for tool handlers)."""
