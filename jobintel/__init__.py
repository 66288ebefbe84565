"""In-page job intelligence agent: scan, classify, enrich, persist, autofill."""

__version__ = "0.3.0"
