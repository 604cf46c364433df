"""HTTP binding for the dispatch core."""
