"""Infrastructure-facing collaborators (Kubernetes discovery and resource resolution)."""
