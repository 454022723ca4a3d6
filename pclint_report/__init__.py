"""pclint-report: import PC-lint XML reports as normalized findings."""

__version__ = "0.1.0"
