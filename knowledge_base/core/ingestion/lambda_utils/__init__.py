"""
Lambda helpers for the ingestion function.
"""
