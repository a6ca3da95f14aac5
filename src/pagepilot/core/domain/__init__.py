"""Core domain: agent loop, decision schema, registry, history and cancellation."""
