"""Clinic app: hierarchy, test-allocation ledger, appointments and knee test records."""
