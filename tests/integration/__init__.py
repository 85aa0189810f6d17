"""Integration tests that drive the flexlm-options command line in a subprocess."""
