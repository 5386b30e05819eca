# Services package init
"""
WeatherCrops API - Services Layer
==================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
How:   Services accept request data and a session or engine, apply the rules,
       and return schema objects or ORM rows.

Service Inventory:
    - UserService: Registration (validate → duplicate check → hash → insert)
                   and user listing
    - DiagnosticsService: Database health report and liveness echo
"""
