"""
Energy Measurements API - yearly energy indicators per country

A small service exposing Our World in Data energy measurements over HTTP.

Main components:
- Query validator turning raw parameters into typed filter requests
- Measurement service for paginated lists, statistics and date ranges
- Database service on PostgreSQL with schema setup and bulk import
- Domain exceptions rendered as structured error responses
"""

__version__ = "1.0.0"
