"""HTTP API for the submission delivery pipeline."""
