"""Infrastructure: option persistence, cache store, extension loading, tokens."""
