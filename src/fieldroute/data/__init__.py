"""Business record loaders."""
