"""Tool handlers, grouped by capability."""
