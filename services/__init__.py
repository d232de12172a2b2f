# services/__init__.py
"""
Domain service layer for the soccer teams API.

This package holds the application logic behind the teams blueprint:
  - teams: the Team aggregate operations (list, filter, create, patch, replace, delete)
  - team_repository: persistence of teams and their owned players
  - team_specification: composable team filters
  - team_models / team_schemas: domain values and request/response bodies
"""
