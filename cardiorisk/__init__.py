"""Cardiovascular risk-inference engine.

This package holds the domain models and services that turn a vitals reading
into a risk verdict. It has no UI, storage or network surface of its own.
"""
