"""ProjectDesk: project and task management API.

Users register, log in with bearer tokens, create projects and attach
tasks to them. Every project-scoped operation is gated by the
owner-or-admin rule, and every response is wrapped in one envelope that
can be rendered as JSON or XML.
"""

__version__ = "0.1.0"
