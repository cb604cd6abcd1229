"""pwreport — PDF and HTML reports with trend history for Playwright runs."""

__version__ = "0.1.0"
