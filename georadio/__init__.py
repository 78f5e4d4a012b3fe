"""
GeoRadio station curation pipeline.

Builds the game-ready ``stations.json`` dataset from the public radio
directory: fetch, group, normalize, sample, probe, emit.

Modules:
    logging_config - Shared logging setup for CLI entry points
    config.settings - YAML + environment configuration
    ingest.base_fetcher - Ordered-source fetching with fatal exhaustion
    ingest.fetch_stations - Radio directory catalog fetcher
    ingest.reference_data - Official languages and atlas display names
    pipeline.grouping - Country grouping, rescue pass, deduplication
    pipeline.languages - Language label normalization and matching
    pipeline.sampler - Language-weighted per-country sampling
    pipeline.prober - Stream liveness / CORS probing
    pipeline.emitter - Output dataset and run report
    pipeline.runner - End-to-end orchestration
    cli - Command-line entrypoint
"""

__version__ = "0.3.0"
