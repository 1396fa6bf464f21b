"""
Core utilities: domain exceptions shared by the provider client,
ingestion pipeline, database layer and CLI.
"""
