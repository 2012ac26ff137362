"""Billing application for the HMSync backend.

This package contains the models, services, serializers and views for
doctor commission accounting and the patient financial ledger.
"""
