"""Biometric profile, derived metrics and risk thresholds."""
