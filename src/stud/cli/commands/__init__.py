"""
stud CLI command groups.
"""
