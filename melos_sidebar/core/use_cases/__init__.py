"""Use cases — orchestration of core services for the CLI and web layers."""
