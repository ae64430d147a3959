"""Command-line interface for the docaugment pipeline."""
