"""
sobject-client - async client for Salesforce-style sObject REST services.

Builds SOQL statements, turns create/update/delete/get/query intents into
authenticated HTTP requests, and maps responses into results or structured
errors.
"""

__version__ = "0.3.1"
