"""
Configuration management for the tasklist app.

Contains Pydantic settings that work across local-dev, aws-mock and aws-prod
deployment modes.
"""
