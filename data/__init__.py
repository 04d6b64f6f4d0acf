"""Demo data for SpendWise."""
