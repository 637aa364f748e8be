"""HTTP API for the Fit Mapper pipeline."""
