"""Authentication and authorization.

Learn: Three layers, used by every protected route:
1. TokenCodec: issues and verifies signed JWT bearer tokens
2. get_current_user: the authentication gate (token → live user)
3. permissions: the owner-or-admin rule for projects and their tasks
"""
