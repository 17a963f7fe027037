"""Run configuration, release notes configuration, and the command line interface."""
