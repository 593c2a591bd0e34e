"""Business logic services.

Services contain all business logic and are called by routes.
Parsing and aggregation are pure functions; only couples/ingestion/reports
touch the database.
"""
