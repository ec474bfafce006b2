"""Business logic services.

Services contain all business logic and are called by routes and the import scripts.
Services should be deterministic when possible and accept dependencies explicitly.
"""
