"""Examination terms for the selected branch and academic session."""
