"""
Key Gate Service Django project.
"""
