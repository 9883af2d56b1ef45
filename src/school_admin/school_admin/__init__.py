"""School administration API.

Feature modules (users, teachers, library, fees, ...) each carry a model,
a repository interface with its MySQL implementation, a service and a thin
Flask controller; container.py wires them together.
"""
