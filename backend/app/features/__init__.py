"""
Feature modules for FitSquad.

- users - Squad members
- strava - OAuth, token store, API client, sync engine, webhook receiver
- fitness - Classification, points, calories, badges, weekly aggregates
"""
