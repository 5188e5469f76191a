"""HTTP surface of the FireGuardian API."""
