"""Pipeline services: validation, statistics, write-back and orchestration."""
