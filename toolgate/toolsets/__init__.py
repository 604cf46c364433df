"""Built-in toolsets shipped with the dispatch core."""
