"""Core domain: models, ports, bucketing and scrape orchestration."""
