"""Schema generation, canonical linking, caching and endpoint routing."""
