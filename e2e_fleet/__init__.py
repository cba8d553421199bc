"""Run end-to-end test suites across a fleet of repositories."""
