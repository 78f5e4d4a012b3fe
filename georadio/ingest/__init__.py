"""Network-facing loaders: station catalog and reference tables."""
