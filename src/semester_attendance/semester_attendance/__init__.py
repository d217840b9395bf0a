"""Semester attendance tracking: course identity, full-year pairing and absence ledger."""
