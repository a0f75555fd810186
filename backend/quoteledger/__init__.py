"""QuoteLedger backend: versioned cost-estimate documents."""

__version__ = "1.0.0"
