"""
access/ - who may do what with a form

Modules:
    permission_resolver.py  - principal + form -> view/edit/respond capability
    tokens.py               - per-form access tokens and shareable links
"""
