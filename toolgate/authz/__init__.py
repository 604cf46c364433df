"""Authorization layer: tool access and namespace scoping for authenticated callers."""
