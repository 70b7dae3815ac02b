"""
JuniorHub
A job board connecting junior developers with companies posting short projects.

Architecture:
- MongoDB: every entity (users, projects, applications, comments, notifications)
- WebSocket: real-time notification and comment push
- Groq AI: project description enhancement only
"""

__version__ = "1.0.0"
