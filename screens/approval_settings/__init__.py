"""Concession approval workflow settings, one record per branch and session."""
