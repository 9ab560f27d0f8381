"""Upstream model access: client descriptor, stream events, generation, usage log."""
