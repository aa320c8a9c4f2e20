"""
Task Analytics

Event tracking client and reference collection backend for a task-management
application.
"""
