"""stud command line interface."""
