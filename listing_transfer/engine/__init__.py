"""Transfer workflow engine."""
