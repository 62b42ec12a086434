"""University attendance service.

Organized by feature modules (settings, attendance, reports, ...) with a thin
Flask controller layer on top of service and repository layers.
"""
