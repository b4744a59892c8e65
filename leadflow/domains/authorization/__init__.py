"""
Authorization and visibility resolution.

Decides, for a user inside an organization, which actions are permitted,
which pages are reachable and how phone numbers are rendered:

- masking: phone rendering per visibility mode
- visibility: cached page and phone visibility rules for one tenant
- catalog: permissions and roles with their grants
- context: the signed-in user's resolved role and pure query functions
- service: the mutation surface that keeps the above in sync
"""
