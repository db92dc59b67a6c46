"""Route modules for the TeaRec API."""
