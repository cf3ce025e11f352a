"""Sales-order lifecycle service: workflow, stock consistency and audit trail."""

__version__ = "1.0.0"
