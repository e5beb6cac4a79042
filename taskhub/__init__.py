"""
TaskHub Core Service

Multi-tenant project/task management backend. Users belong to companies,
companies own projects, projects own tasks, tasks own subtasks, and notes can
be attached to any of them. Every operation is gated by the hierarchical
access resolution engine in taskhub.core.
"""

__version__ = "1.0.0"
