"""
Application Layer - Use Cases

Contains:
- search: query controller, metrics tracking, collaborator ports
"""
