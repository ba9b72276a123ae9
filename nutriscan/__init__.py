"""
NutriScan client core.

Authentication, scan capture and upload, result projection and
biometric risk evaluation for the NutriScan scoring backend.

Structure:
- domain/: Models, ports, pure calculators and errors
- application/: Session store, scan orchestrator, profile and history services
- infrastructure/: HTTP client, storage adapters, event bus, config, logging
- cli.py: Command-line front end
- tests/: Test suite (unit)
"""

__version__ = "1.0.0"
