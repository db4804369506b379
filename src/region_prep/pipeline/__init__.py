"""Run orchestration helpers: logging, reports, pre-split table creation."""
