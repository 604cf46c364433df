"""Dispatch core for a tool-calling server backed by a live infrastructure control plane."""

__version__ = "0.4.0"
